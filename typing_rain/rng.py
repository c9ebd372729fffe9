import math
import time


class LcgRandom:
    """Park-Miller style generator: reproducible floats in [0, 1) for a given seed."""

    MODULUS = 2147483647
    MULTIPLIER = 48271

    def __init__(self, seed=None):
        self.seed(seed)

    def seed(self, seed=None):
        if seed is None:
            seed = int(time.time() * 1000)
        self.state = int(seed) % self.MODULUS
        # 0 is a fixed point of the recurrence
        if self.state == 0:
            self.state = 1

    def random(self):
        self.state = (self.state * self.MULTIPLIER) % self.MODULUS
        return self.state / 2147483648

    def randint(self, lo, hi):
        return math.floor(lo + (hi - lo + 1) * self.random())

    def __iter__(self):
        while True:
            yield self.random()
