"""
Roulette PRNG - Mersenne Twister (MT19937) owned per simulation run.

Each instance carries its own 624-word state vector and cursor, so several
runs can generate spins side by side without touching each other. Seeding
happens once at construction; there is no reseed API.
"""

import time

from config import MT_STATE_SIZE

_MIDDLE_WORD = 397
_MATRIX_A = 0x9908B0DF
_UPPER_MASK = 0x80000000
_LOWER_MASK = 0x7FFFFFFF
_WORD_MASK = 0xFFFFFFFF
_TWO_POW_32 = 0x100000000


class RoulettePRNG:
    """Seeded 32-bit Mersenne Twister with roulette-friendly helpers."""

    def __init__(self, seed=None):
        if seed is None:
            seed = int(time.time() * 1000)
        try:
            self._seed = int(seed) & _WORD_MASK
        except (TypeError, ValueError):
            raise ValueError(f"Seed must be an integer, got {seed!r}")
        self._mt = [0] * MT_STATE_SIZE
        # Standard MT19937: the state is twisted before the first draw
        self._index = MT_STATE_SIZE
        self._initialize()

    @property
    def seed(self):
        return self._seed

    def _initialize(self):
        mt = self._mt
        mt[0] = self._seed
        for i in range(1, MT_STATE_SIZE):
            prev = mt[i - 1]
            mt[i] = (1812433253 * (prev ^ (prev >> 30)) + i) & _WORD_MASK

    def _generate_numbers(self):
        """Regenerate the whole state vector (the twist step)."""
        mt = self._mt
        for i in range(MT_STATE_SIZE):
            y = (mt[i] & _UPPER_MASK) | (mt[(i + 1) % MT_STATE_SIZE] & _LOWER_MASK)
            value = mt[(i + _MIDDLE_WORD) % MT_STATE_SIZE] ^ (y >> 1)
            if y & 1:
                value ^= _MATRIX_A
            mt[i] = value
        self._index = 0

    def next_uint32(self):
        """Extract one tempered 32-bit word."""
        if self._index >= MT_STATE_SIZE:
            self._generate_numbers()

        y = self._mt[self._index]
        y ^= y >> 11
        y ^= (y << 7) & 0x9D2C5680
        y ^= (y << 15) & 0xEFC60000
        y ^= y >> 18

        self._index += 1
        return y & _WORD_MASK

    def random(self):
        """Uniform float in [0, 1)."""
        return self.next_uint32() / _TWO_POW_32

    def random_int(self, min_value, max_value):
        """Uniform integer in [min_value, max_value], both inclusive."""
        if max_value < min_value:
            raise ValueError(f"Empty range: {min_value}..{max_value}")
        span = max_value - min_value + 1
        return int(self.random() * span) + min_value

    def choice(self, items):
        """Pick one element of a non-empty sequence."""
        if not items:
            raise ValueError("Cannot choose from an empty sequence")
        return items[self.random_int(0, len(items) - 1)]
