from dataclasses import asdict, dataclass

from .config import clamp


@dataclass
class FallingEntity:
    id: str
    key: str
    text: str
    x: float
    y: float
    vy: float
    born_at: float
    width: int


class EntityStore:
    """Falling words in spawn order. Only the tick loop moves them."""

    def __init__(self):
        self._entities = []

    def __len__(self):
        return len(self._entities)

    def __iter__(self):
        return iter(list(self._entities))

    def __bool__(self):
        return bool(self._entities)

    def add(self, entity):
        self._entities.append(entity)

    def remove(self, entity_id):
        for i, entity in enumerate(self._entities):
            if entity.id == entity_id:
                return self._entities.pop(i)
        return None

    def clear(self):
        self._entities = []

    def advance(self, dt, floor_y):
        """Move every entity by ``vy * dt`` and drop those at or past ``floor_y``.

        Returns the removed entities.
        """
        survivors = []
        crossed = []
        for entity in self._entities:
            entity.y += entity.vy * dt
            if entity.y >= floor_y:
                crossed.append(entity)
            else:
                survivors.append(entity)
        self._entities = survivors
        return crossed

    def clamp_x(self, field_width, margin):
        for entity in self._entities:
            max_x = max(margin, field_width - margin - entity.width)
            entity.x = float(clamp(entity.x, (margin, max_x)))

    def to_list(self):
        return [asdict(e) for e in self._entities]


def lowest(entities):
    """The entity closest to the floor; on a tie the later one wins."""
    found = None
    for entity in entities:
        if found is None or entity.y >= found.y:
            found = entity
    return found
