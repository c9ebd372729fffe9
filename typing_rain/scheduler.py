import math

H_MARGIN = 12
PAD_X = 14
BORDER_W = 1
SPAWN_Y = -16


def box_width(text_width):
    return math.ceil(text_width + PAD_X * 2 + BORDER_W * 2)


def spawn_x(field_width, width, rng, margin=H_MARGIN):
    """Uniform integer x in ``[margin, field_width - margin - width]``.

    The upper bound never drops below ``margin``, so a box wider than the
    field starts at the left margin.
    """
    max_x = max(margin, math.floor(field_width - margin - width))
    return rng.randint(margin, max_x)


class SpawnScheduler:
    """Refill-when-empty plus a periodic timer gated by a concurrency cap."""

    def __init__(self):
        self.accumulator_ms = 0.0

    def reset(self):
        self.accumulator_ms = 0.0

    def should_spawn(self, dt, time_left, lives, count, interval_ms, max_concurrent):
        if time_left > 0 and lives > 0 and count == 0:
            self.accumulator_ms = 0.0
            return True

        self.accumulator_ms += dt * 1000
        if self.accumulator_ms >= interval_ms:
            self.accumulator_ms = 0.0
            return count < max_concurrent
        return False
