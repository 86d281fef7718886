"""
Configuration constants for the Roulette Strategy Simulator backend.
Single source of truth for all tunable parameters.

Environment variables (optionally from a .env file) override the
server and storage settings; roulette and strategy constants are fixed.
"""

import os

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

load_dotenv(os.path.join(BASE_DIR, '.env'))


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def parse_size(value):
    """Convert a size string like '1mb', '512kb' or '2048' to bytes."""
    text = str(value).strip().lower()
    units = {'gb': 1024 ** 3, 'mb': 1024 ** 2, 'kb': 1024, 'b': 1}
    for suffix, factor in units.items():
        if text.endswith(suffix):
            return int(float(text[:-len(suffix)]) * factor)
    return int(text)


def parse_origins(value):
    return [o.strip() for o in (value or '').split(',') if o.strip()]


def snake_case_keys(settings):
    """Accept camelCase keys from the browser alongside snake_case ones."""
    out = {}
    for key, value in (settings or {}).items():
        snake = ''.join('_' + c.lower() if c.isupper() else c for c in key)
        out[snake] = value
    return out


# ─── Environment ─────────────────────────────────────────────────────
APP_ENV = os.environ.get('APP_ENV', 'development')
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

# ─── Storage ─────────────────────────────────────────────────────────
DATABASE_DIR = os.path.join(BASE_DIR, 'database')
DB_FILE = os.environ.get('DB_FILE') or os.path.join(DATABASE_DIR, 'rosistat.db')
MIGRATIONS_DIR = os.environ.get('MIGRATIONS_DIR') or os.path.join(DATABASE_DIR, 'migrations')
SEEDS_DIR = os.environ.get('SEEDS_DIR') or os.path.join(DATABASE_DIR, 'seed')
# Seeds run by default outside production; SEED_ON_START=true/false forces it
SEED_ON_START = _env_bool('SEED_ON_START', APP_ENV != 'production')

# ─── Server Settings ─────────────────────────────────────────────────
HOST = os.environ.get('HOST', '0.0.0.0')
PORT = int(os.environ.get('PORT', 8080))
DEBUG = False
SECRET_KEY = os.environ.get('SECRET_KEY', 'rosistat-dev-secret')
CORS_ORIGINS = parse_origins(os.environ.get('CORS_ORIGINS', ''))
JSON_LIMIT = os.environ.get('JSON_LIMIT', '1mb')
RATE_LIMIT = os.environ.get('RATE_LIMIT', '100 per minute')
SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'threading')
SERVICE_NAME = 'rosistat-backend'

# ─── European Roulette Wheel Layout ──────────────────────────────────
# Number properties
RED_NUMBERS = {1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36}
BLACK_NUMBERS = {2, 4, 6, 8, 10, 11, 13, 15, 17, 20, 22, 24, 26, 28, 29, 31, 33, 35}
GREEN_NUMBERS = {0}

FIRST_DOZEN = set(range(1, 13))
SECOND_DOZEN = set(range(13, 25))
THIRD_DOZEN = set(range(25, 37))

LOW_NUMBERS = set(range(1, 19))
HIGH_NUMBERS = set(range(19, 37))

TOTAL_NUMBERS = 37  # 0-36
MAX_NUMBER = 36

# ─── PRNG ────────────────────────────────────────────────────────────
MT_STATE_SIZE = 624
DEFAULT_SPIN_COUNT = 500
MAX_SPIN_COUNT = 100000

# ─── Streak Amplification ────────────────────────────────────────────
# A short run of one color/parity slightly raises the chance the next
# draw continues it. Probability starts at the base, loses the decay per
# unit of run length down to the floor, then is scaled and capped.
STREAK_LOOKBACK = 10
STREAK_BASE_PROBABILITY = 0.48
STREAK_DECAY_PER_SPIN = 0.04
STREAK_MIN_PROBABILITY = 0.15
STREAK_MAX_PROBABILITY = 0.65

REALISTIC_ROULETTE_CONFIG = {
    'realistic_streaks_enabled': True,
    'max_expected_streak_length': 15,
    'volatility_model': 'natural',          # natural | enhanced | extreme
    'streak_probability_model': 'MonteCarlo',  # MonteCarlo | weighted | natural
    'variance_amplifier': 1.2,
}

# ─── Strategy Defaults ───────────────────────────────────────────────
STRATEGY_TYPES = (
    'standard_martingale',
    'compound_martingale',
    'max_lose',
    'zapping',
)

DEFAULT_STARTING_INVESTMENT = 10000.0
STANDARD_MARTINGALE_BASE_BET = 10.0
STANDARD_MARTINGALE_MAX_BET = 5120.0
ZAPPING_BASE_BET = 10.0

COMPOUND_MARTINGALE_STRATEGIES = [
    {
        'id': 'zero',
        'name': 'Number 0',
        'initial_bet': 1,
        'bet_type': 'single',
        'target': 0,
        'progression': 'custom',
        'win_multiplier': 36,
        'custom_progression': [1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
        'reset_on_win': True,
    },
    {
        'id': 'first_dozen',
        'name': '1st Dozen (1-12)',
        'initial_bet': 12,
        'bet_type': 'dozen',
        'target': '1-12',
        'progression': 'martingale',
        'win_multiplier': 3,
        'reset_on_win': True,
    },
    {
        'id': 'second_dozen',
        'name': '2nd Dozen (13-24)',
        'initial_bet': 12,
        'bet_type': 'dozen',
        'target': '13-24',
        'progression': 'martingale',
        'win_multiplier': 3,
        'reset_on_win': True,
    },
    {
        'id': 'black',
        'name': 'Black',
        'initial_bet': 18,
        'bet_type': 'color',
        'target': 'black',
        'progression': 'martingale',
        'win_multiplier': 2,
        'reset_on_win': True,
    },
    {
        'id': 'even',
        'name': 'Even',
        'initial_bet': 18,
        'bet_type': 'even_odd',
        'target': 'even',
        'progression': 'martingale',
        'win_multiplier': 2,
        'reset_on_win': True,
    },
]

MAX_LOSE_STRATEGIES = [
    {'id': 'red', 'name': 'Red', 'initial_bet': 18, 'bet_type': 'color', 'target': 'red', 'win_multiplier': 2},
    {'id': 'black', 'name': 'Black', 'initial_bet': 18, 'bet_type': 'color', 'target': 'black', 'win_multiplier': 2},
    {'id': 'odd', 'name': 'Odd', 'initial_bet': 18, 'bet_type': 'even_odd', 'target': 'odd', 'win_multiplier': 2},
    {'id': 'even', 'name': 'Even', 'initial_bet': 18, 'bet_type': 'even_odd', 'target': 'even', 'win_multiplier': 2},
    {'id': 'zero', 'name': 'Number 0', 'initial_bet': 1, 'bet_type': 'single', 'target': 0, 'win_multiplier': 36},
]


# ─── Color Mapping for UI ────────────────────────────────────────────
def get_number_color(number):
    if number in RED_NUMBERS:
        return 'red'
    elif number in BLACK_NUMBERS:
        return 'black'
    return 'green'
