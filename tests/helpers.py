"""
Shared helpers for engine tests.
"""

import itertools

from typing_rain.entities import FallingEntity


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


TWO_WORDS = {
    "car": {"ko": "자동차", "en": "car", "vi": "ô tô", "th": "รถยนต์"},
    "cat": {"ko": "고양이", "en": "cat", "vi": "con mèo"},
}

_serial = itertools.count(1)


def place(engine, key, y, x=20.0, vy=35.0, width=60):
    """Put a word into the store directly at a chosen height."""
    texts = engine.dataset.texts_for(key)
    entity = FallingEntity(
        id=f"{key}_placed{next(_serial)}",
        key=key,
        text=texts.get(engine.config.display_lang) or next(iter(texts.values())),
        x=x,
        y=y,
        vy=vy,
        born_at=0.0,
        width=width,
    )
    engine.entities.add(entity)
    return entity
