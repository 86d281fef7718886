"""
Spin Generator - pull-based sequence of roulette outcomes driven by an
owned RoulettePRNG plus optional streak amplification.
"""

import numpy as np
from scipy import stats

from config import TOTAL_NUMBERS, MAX_NUMBER, DEFAULT_SPIN_COUNT, MAX_SPIN_COUNT
from app.engine.prng import RoulettePRNG
from app.engine.streaks import apply_streak_amplification, resolve_streak_config
from app.engine.wheel import get_roulette_number


class SpinGenerator:
    """Produces one spin per call; replayable when built with the same seed."""

    def __init__(self, seed=None, config=None):
        self.prng = RoulettePRNG(seed)
        self.config = resolve_streak_config(config)
        self.history = []

    @property
    def seed(self):
        return self.prng.seed

    def next_spin(self):
        if self.config['realistic_streaks_enabled'] and self.history:
            number = apply_streak_amplification(self.history, self.prng, self.config)
        else:
            number = self.prng.random_int(0, MAX_NUMBER)
        self.history.append(number)
        return number

    def take(self, count):
        return [self.next_spin() for _ in range(count)]

    def __iter__(self):
        return self

    def __next__(self):
        return self.next_spin()


def validate_spin_count(count):
    try:
        count = int(count)
    except (TypeError, ValueError):
        raise ValueError(f"Spin count must be an integer, got {count!r}")
    if count < 1 or count > MAX_SPIN_COUNT:
        raise ValueError(f"Spin count must be between 1 and {MAX_SPIN_COUNT}")
    return count


def generate_spins(count=DEFAULT_SPIN_COUNT, seed=None, config=None):
    """Generate a fixed list of spins for one simulation run."""
    count = validate_spin_count(count)
    return SpinGenerator(seed=seed, config=config).take(count)


def distribution_report(spins):
    """Per-number counts, color split and a chi-square test against uniform."""
    counts = np.bincount(np.asarray(spins, dtype=int), minlength=TOTAL_NUMBERS)
    total = int(counts.sum())

    colors = {'red': 0, 'black': 0, 'green': 0}
    for number in spins:
        colors[get_roulette_number(number).color] += 1

    if total < TOTAL_NUMBERS:
        chi = {'statistic': 0.0, 'p_value': 1.0, 'significant': False}
    else:
        expected = np.full(TOTAL_NUMBERS, total / TOTAL_NUMBERS)
        statistic, p_value = stats.chisquare(counts, expected)
        chi = {
            'statistic': float(statistic),
            'p_value': float(p_value),
            'significant': bool(p_value < 0.05),
        }

    return {
        'total': total,
        'counts': {n: int(c) for n, c in enumerate(counts)},
        'colors': colors,
        'chi_square': chi,
    }
