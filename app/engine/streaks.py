"""
Streak Amplification - biases the next draw toward continuing the
color or parity run visible in the most recent spins.

Also provides after-the-fact streak analysis of a finished spin list.
"""

from config import (
    REALISTIC_ROULETTE_CONFIG, snake_case_keys, MAX_NUMBER, STREAK_LOOKBACK,
    STREAK_BASE_PROBABILITY, STREAK_DECAY_PER_SPIN,
    STREAK_MIN_PROBABILITY, STREAK_MAX_PROBABILITY,
)
from app.engine.wheel import get_roulette_number, NUMBERS_BY_COLOR, NUMBERS_BY_PARITY

VOLATILITY_MODELS = ('natural', 'enhanced', 'extreme')
PROBABILITY_MODELS = ('MonteCarlo', 'weighted', 'natural')


def resolve_streak_config(overrides=None):
    """Merge user overrides onto the default config and validate them."""
    cfg = dict(REALISTIC_ROULETTE_CONFIG)
    if overrides is not None and not isinstance(overrides, dict):
        raise ValueError("Streak settings must be an object")
    overrides = snake_case_keys(overrides)
    if overrides:
        unknown = set(overrides) - set(cfg)
        if unknown:
            raise ValueError(f"Unknown streak settings: {', '.join(sorted(unknown))}")
        cfg.update(overrides)

    cfg['realistic_streaks_enabled'] = bool(cfg['realistic_streaks_enabled'])
    try:
        cfg['variance_amplifier'] = float(cfg['variance_amplifier'])
        cfg['max_expected_streak_length'] = int(cfg['max_expected_streak_length'])
    except (TypeError, ValueError):
        raise ValueError("variance_amplifier and max_expected_streak_length must be numeric")
    if cfg['variance_amplifier'] < 0:
        raise ValueError("variance_amplifier must be >= 0")
    if cfg['volatility_model'] not in VOLATILITY_MODELS:
        raise ValueError(f"Unknown volatility_model: {cfg['volatility_model']}")
    if cfg['streak_probability_model'] not in PROBABILITY_MODELS:
        raise ValueError(f"Unknown streak_probability_model: {cfg['streak_probability_model']}")
    return cfg


def current_runs(spins, lookback=STREAK_LOOKBACK):
    """Count trailing same-color and same-parity pairs in the last spins.

    Zero breaks both runs. A run of k equal spins counts k - 1 pairs.
    """
    recent = list(spins[-lookback:])
    color_run = 0
    for i in range(len(recent) - 1, 0, -1):
        current = get_roulette_number(recent[i])
        previous = get_roulette_number(recent[i - 1])
        if current.color == previous.color and current.color != 'green':
            color_run += 1
        else:
            break

    parity_run = 0
    for i in range(len(recent) - 1, 0, -1):
        if recent[i] == 0 or recent[i - 1] == 0:
            break
        if get_roulette_number(recent[i]).is_even == get_roulette_number(recent[i - 1]).is_even:
            parity_run += 1
        else:
            break

    return color_run, parity_run


def continuation_probability(pattern_length, variance_amplifier):
    """Chance of continuing a run of the given length, within the envelope."""
    if pattern_length <= 0:
        return STREAK_BASE_PROBABILITY
    p = max(STREAK_MIN_PROBABILITY,
            STREAK_BASE_PROBABILITY - pattern_length * STREAK_DECAY_PER_SPIN)
    p *= variance_amplifier
    return min(STREAK_MAX_PROBABILITY, p)


def apply_streak_amplification(spins, prng, config=None):
    """Draw the next number, possibly continuing the current color/parity run.

    Args:
        spins: previous outcomes, oldest first
        prng: the run's RoulettePRNG
        config: resolved streak config dict (defaults when None)

    Returns:
        int in 0..36
    """
    cfg = config if config is not None else REALISTIC_ROULETTE_CONFIG
    if not cfg['realistic_streaks_enabled'] or len(spins) < 2:
        return prng.random_int(0, MAX_NUMBER)

    color_run, parity_run = current_runs(spins)
    max_pattern_length = max(color_run, parity_run)

    if max_pattern_length > 0:
        p = continuation_probability(max_pattern_length, cfg['variance_amplifier'])
        if prng.random() < p:
            last = get_roulette_number(spins[-1])
            if color_run >= parity_run:
                pool = NUMBERS_BY_COLOR[last.color]
            else:
                pool = NUMBERS_BY_PARITY[last.is_even]
            return prng.choice(pool)

    return prng.random_int(0, MAX_NUMBER)


def _longest_run(values, key, skip=None):
    """Longest run of equal key(value); values whose key equals skip never extend a run."""
    best = {'value': None, 'length': 0, 'start_index': 0}
    current_key = None
    length = 0
    start = 0
    for i, value in enumerate(values):
        k = key(value)
        if k is not None and k != skip and k == current_key:
            length += 1
        else:
            current_key = k
            length = 0 if (k is None or k == skip) else 1
            start = i
        if length > best['length']:
            best = {'value': current_key, 'length': length, 'start_index': start}
    return best


def analyze_streak_patterns(spins):
    """Summarise the longest color, even/odd and repeated-number streaks."""
    if not spins:
        return {
            'longest_color_streak': {'color': '', 'length': 0, 'start_index': 0},
            'longest_even_odd_streak': {'type': '', 'length': 0, 'start_index': 0},
            'longest_number_streak': {'number': 0, 'length': 0, 'start_index': 0},
            'total_streaks_over_5': 0,
            'total_streaks_over_10': 0,
        }

    colors = [get_roulette_number(n).color for n in spins]
    color_best = _longest_run(colors, key=lambda c: c, skip='green')
    parity_best = _longest_run(
        spins, key=lambda n: None if n == 0 else ('even' if n % 2 == 0 else 'odd'))
    number_best = _longest_run(spins, key=lambda n: n)

    # Only runs closed by a color change or a zero are counted
    over_5 = over_10 = 0
    run = 0
    previous = None
    for color in colors:
        if color != 'green' and color == previous:
            run += 1
            continue
        if run > 5:
            over_5 += 1
        if run > 10:
            over_10 += 1
        previous = color
        run = 0 if color == 'green' else 1

    return {
        'longest_color_streak': {
            'color': color_best['value'] or '',
            'length': color_best['length'],
            'start_index': color_best['start_index'],
        },
        'longest_even_odd_streak': {
            'type': parity_best['value'] or '',
            'length': parity_best['length'],
            'start_index': parity_best['start_index'],
        },
        'longest_number_streak': {
            'number': number_best['value'] if number_best['value'] is not None else 0,
            'length': number_best['length'],
            'start_index': number_best['start_index'],
        },
        'total_streaks_over_5': over_5,
        'total_streaks_over_10': over_10,
    }
