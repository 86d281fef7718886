"""
European wheel table and bet win conditions.
"""

from collections import namedtuple

from config import (
    RED_NUMBERS, BLACK_NUMBERS, GREEN_NUMBERS, FIRST_DOZEN, SECOND_DOZEN, THIRD_DOZEN,
    LOW_NUMBERS, HIGH_NUMBERS, MAX_NUMBER, get_number_color,
)


RouletteNumber = namedtuple('RouletteNumber', ['number', 'color', 'is_even', 'dozen'])


def _dozen_of(n):
    if n == 0:
        return None
    return (n - 1) // 12 + 1


ROULETTE_NUMBERS = tuple(
    RouletteNumber(
        number=n,
        color=get_number_color(n),
        is_even=(n != 0 and n % 2 == 0),
        dozen=_dozen_of(n),
    )
    for n in range(MAX_NUMBER + 1)
)

# Pools used when a streak is continued
NUMBERS_BY_COLOR = {
    'red': sorted(RED_NUMBERS),
    'black': sorted(BLACK_NUMBERS),
    'green': sorted(GREEN_NUMBERS),
}
NUMBERS_BY_PARITY = {
    True: [n for n in range(1, MAX_NUMBER + 1) if n % 2 == 0],
    False: [n for n in range(1, MAX_NUMBER + 1) if n % 2 == 1],
}


def is_valid_number(number):
    return isinstance(number, int) and not isinstance(number, bool) and 0 <= number <= MAX_NUMBER


def get_roulette_number(number):
    if not is_valid_number(number):
        raise ValueError(f"Invalid roulette number: {number}")
    return ROULETTE_NUMBERS[number]


# ─── Bet Types ───────────────────────────────────────────────────────

def _single(num, target):
    return num == int(target)


DOZENS = {'1-12': FIRST_DOZEN, '13-24': SECOND_DOZEN, '25-36': THIRD_DOZEN}


def _dozen(num, target):
    return num in DOZENS.get(target, ())


def _color(num, target):
    return get_roulette_number(num).color == target


def _even_odd(num, target):
    if num == 0:
        return False
    is_even = num % 2 == 0
    return is_even if target == 'even' else not is_even


def _high_low(num, target):
    return num in (HIGH_NUMBERS if target == 'high' else LOW_NUMBERS)


def _column(num, target):
    if num == 0:
        return False
    return (num - 1) % 3 + 1 == int(target)


BET_TYPES = {
    'single': _single,
    'dozen': _dozen,
    'color': _color,
    'even_odd': _even_odd,
    'high_low': _high_low,
    'column': _column,
}


def is_winning_bet(bet_type, number, target):
    """Return True when a bet of bet_type on target wins for the drawn number."""
    check = BET_TYPES.get(bet_type)
    if check is None:
        raise ValueError(f"Unknown bet type: {bet_type}")
    return check(number, target)
