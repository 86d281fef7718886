"""
Betting Strategies - stake progressions and the strategies the simulator
can run against a spin sequence.

Every strategy follows the same cycle per spin:
- place_bets() → {bet_id: stake} for the coming spin
- settle(number) → net result of those stakes, then advance progressions
- state() → JSON-ready snapshot recorded with each spin result

Payouts use `win_multiplier` as the total returned on a win (stake included),
so an even-money bet has multiplier 2 and a straight-up bet 36.
"""

import copy

from config import (
    COMPOUND_MARTINGALE_STRATEGIES, MAX_LOSE_STRATEGIES, snake_case_keys,
    STANDARD_MARTINGALE_BASE_BET, STANDARD_MARTINGALE_MAX_BET,
    ZAPPING_BASE_BET, STRATEGY_TYPES,
)
from app.engine.wheel import is_winning_bet, BET_TYPES

PROGRESSIONS = ('flat', 'martingale', 'fibonacci', 'dalembert', 'custom')
REQUIRED_BET_KEYS = ('id', 'initial_bet', 'bet_type', 'target', 'win_multiplier')


def to_amount(value, name):
    """Coerce a stake or bankroll setting to float, raising ValueError when it is not numeric."""
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}")


def _check_bet(bet_type, target, label):
    if not isinstance(bet_type, str) or bet_type not in BET_TYPES:
        raise ValueError(f"Unknown bet type: {bet_type}")
    try:
        is_winning_bet(bet_type, 1, target)
    except (TypeError, ValueError):
        raise ValueError(f"{label} has an invalid target: {target!r}")


def fibonacci(n):
    a, b = 1, 1
    for _ in range(n):
        a, b = b, a + b
    return a


class BetLine:
    """One bet position (type + target) with its own stake progression."""

    def __init__(self, id, name, initial_bet, bet_type, target, win_multiplier,
                 progression='martingale', custom_progression=None,
                 reset_on_win=True, max_bet=None):
        _check_bet(bet_type, target, f"Bet '{id}'")
        if progression not in PROGRESSIONS:
            raise ValueError(f"Unknown progression: {progression}")
        if progression == 'custom' and not custom_progression:
            raise ValueError(f"Bet '{id}' uses a custom progression without steps")
        initial_bet = to_amount(initial_bet, f"Bet '{id}' initial_bet")
        if initial_bet <= 0:
            raise ValueError(f"Bet '{id}' needs a positive initial bet")

        self.id = id
        self.name = name
        self.initial_bet = initial_bet
        self.bet_type = bet_type
        self.target = target
        self.win_multiplier = to_amount(win_multiplier, f"Bet '{id}' win_multiplier")
        self.progression = progression
        if custom_progression is not None and not isinstance(custom_progression, (list, tuple)):
            raise ValueError(f"Bet '{id}' custom_progression must be a list")
        self.custom_progression = [
            to_amount(s, f"Bet '{id}' custom_progression step") for s in custom_progression or []]
        self.reset_on_win = reset_on_win
        self.max_bet = to_amount(max_bet, f"Bet '{id}' max_bet") if max_bet else None

        self.step = 0
        self.current_bet = self._stake_for_step(0)
        self.loss_streak = 0
        self.total_wagered = 0.0
        self.total_won = 0.0
        self.net_result = 0.0

    @classmethod
    def from_config(cls, cfg):
        if not isinstance(cfg, dict):
            raise ValueError(f"Bet must be an object, got {cfg!r}")
        for key in REQUIRED_BET_KEYS:
            if key not in cfg:
                raise ValueError(f"Bet is missing '{key}'")
        return cls(
            id=cfg['id'],
            name=cfg.get('name', cfg['id']),
            initial_bet=cfg['initial_bet'],
            bet_type=cfg['bet_type'],
            target=cfg['target'],
            win_multiplier=cfg['win_multiplier'],
            progression=cfg.get('progression', 'martingale'),
            custom_progression=cfg.get('custom_progression'),
            reset_on_win=cfg.get('reset_on_win', True),
            max_bet=cfg.get('max_bet'),
        )

    def _stake_for_step(self, step):
        if self.progression == 'flat':
            stake = self.initial_bet
        elif self.progression == 'martingale':
            stake = self.initial_bet * (2 ** step)
        elif self.progression == 'fibonacci':
            stake = self.initial_bet * fibonacci(step)
        elif self.progression == 'dalembert':
            stake = self.initial_bet * (step + 1)
        else:
            idx = min(step, len(self.custom_progression) - 1)
            stake = self.initial_bet * self.custom_progression[idx]
        if self.max_bet is not None:
            stake = min(stake, self.max_bet)
        return stake

    def _advance(self, won):
        if won:
            if self.reset_on_win or self.progression in ('martingale', 'custom'):
                self.step = 0
            elif self.progression == 'fibonacci':
                self.step = max(0, self.step - 2)
            elif self.progression == 'dalembert':
                self.step = max(0, self.step - 1)
        else:
            self.step += 1
            if self.progression == 'custom':
                self.step = min(self.step, len(self.custom_progression) - 1)
        self.current_bet = self._stake_for_step(self.step)

    def settle(self, number):
        """Settle the current stake against the drawn number. Returns (won, net)."""
        stake = self.current_bet
        won = is_winning_bet(self.bet_type, number, self.target)
        payout = stake * self.win_multiplier if won else 0.0
        net = payout - stake

        self.total_wagered += stake
        self.total_won += payout
        self.net_result += net
        self.loss_streak = 0 if won else self.loss_streak + 1
        self._advance(won)
        return won, net

    def state(self):
        return {
            'id': self.id,
            'name': self.name,
            'currentBet': self.current_bet,
            'initialBet': self.initial_bet,
            'progressionStep': self.step,
            'lossStreak': self.loss_streak,
            'totalWagered': round(self.total_wagered, 2),
            'totalWon': round(self.total_won, 2),
            'netResult': round(self.net_result, 2),
            'betType': self.bet_type,
            'target': self.target,
        }


class Strategy:
    strategy_type = None
    state_key = None

    def place_bets(self):
        raise NotImplementedError

    def settle(self, number):
        raise NotImplementedError

    def state(self):
        raise NotImplementedError


class MultiLineStrategy(Strategy):
    """Runs several independent bet lines on the same spin."""

    def __init__(self, lines):
        if not lines:
            raise ValueError(f"{self.strategy_type} needs at least one bet")
        self.lines = lines

    def place_bets(self):
        return {line.id: line.current_bet for line in self.lines}

    def settle(self, number):
        wins = {}
        net = 0.0
        for line in self.lines:
            won, line_net = line.settle(number)
            wins[line.id] = won
            net += line_net
        return net, wins

    def state(self):
        return {line.id: line.state() for line in self.lines}


class CompoundMartingale(MultiLineStrategy):
    strategy_type = 'compound_martingale'
    state_key = 'compoundMartingaleState'

    def __init__(self, bets=None):
        configs = bets if bets is not None else COMPOUND_MARTINGALE_STRATEGIES
        super().__init__([BetLine.from_config(c) for c in configs])


class MaxLose(MultiLineStrategy):
    """Parallel bets that double after each loss and reset after a win."""
    strategy_type = 'max_lose'
    state_key = 'maxLoseState'

    def __init__(self, bets=None, max_bet=None):
        configs = bets if bets is not None else MAX_LOSE_STRATEGIES
        lines = []
        for c in configs:
            cfg = dict(c, progression='martingale', reset_on_win=True)
            if max_bet:
                cfg['max_bet'] = max_bet
            lines.append(BetLine.from_config(cfg))
        super().__init__(lines)


class StandardMartingale(Strategy):
    """Classic martingale on one even-money bet.

    Doubles after every loss; when the doubled stake would exceed max_bet
    the progression restarts at the base bet and counts as a reset.
    """
    strategy_type = 'standard_martingale'
    state_key = 'standardMartingaleState'

    def __init__(self, base_bet=STANDARD_MARTINGALE_BASE_BET,
                 max_bet=STANDARD_MARTINGALE_MAX_BET,
                 bet_type='color', target='red'):
        base_bet = to_amount(base_bet, "base_bet")
        max_bet = to_amount(max_bet, "max_bet")
        if base_bet <= 0 or max_bet < base_bet:
            raise ValueError("Martingale needs 0 < base_bet <= max_bet")
        _check_bet(bet_type, target, "Martingale bet")
        self.base_bet = base_bet
        self.max_bet = max_bet
        self.bet_type = bet_type
        self.target = target

        self.current_bet = self.base_bet
        self.total_wagered = 0.0
        self.total_won = 0.0
        self.net_result = 0.0
        self.current_round = 0
        self.loss_streak = 0
        self.max_bet_reached = self.base_bet
        self.total_resets = 0
        self.max_streak_survived = 0

    def place_bets(self):
        return {'martingale': self.current_bet}

    def settle(self, number):
        stake = self.current_bet
        won = is_winning_bet(self.bet_type, number, self.target)
        payout = stake * 2 if won else 0.0
        net = payout - stake

        self.current_round += 1
        self.total_wagered += stake
        self.total_won += payout
        self.net_result += net

        if won:
            self.max_streak_survived = max(self.max_streak_survived, self.loss_streak)
            self.loss_streak = 0
            self.current_bet = self.base_bet
        else:
            self.loss_streak += 1
            next_bet = stake * 2
            if next_bet > self.max_bet:
                self.total_resets += 1
                self.current_bet = self.base_bet
            else:
                self.current_bet = next_bet
                self.max_bet_reached = max(self.max_bet_reached, next_bet)

        return net, {'martingale': won}

    def state(self):
        return {
            'currentBet': self.current_bet,
            'baseBet': self.base_bet,
            'totalWagered': round(self.total_wagered, 2),
            'totalWon': round(self.total_won, 2),
            'netResult': round(self.net_result, 2),
            'currentRound': self.current_round,
            'lossStreak': self.loss_streak,
            'maxBetReached': self.max_bet_reached,
            'totalResets': self.total_resets,
            'maxStreakSurvived': self.max_streak_survived,
        }


class Zapping(Strategy):
    """Even-money color bet that switches color after every loss."""
    strategy_type = 'zapping'
    state_key = 'zappingState'

    def __init__(self, base_bet=ZAPPING_BASE_BET, start_target='red', max_bet=None):
        if start_target not in ('red', 'black'):
            raise ValueError("Zapping target must be 'red' or 'black'")
        self.line = BetLine('zapping', 'Zapping', base_bet, 'color', start_target,
                            win_multiplier=2, progression='martingale', max_bet=max_bet)
        self.zap_position = 0

    def place_bets(self):
        return {self.line.target: self.line.current_bet}

    def settle(self, number):
        target = self.line.target
        won, net = self.line.settle(number)
        if not won:
            self.line.target = 'black' if target == 'red' else 'red'
            self.zap_position += 1
        return net, {target: won}

    def state(self):
        return {
            'currentBet': self.line.current_bet,
            'initialBet': self.line.initial_bet,
            'currentTarget': self.line.target,
            'totalWagered': round(self.line.total_wagered, 2),
            'totalWon': round(self.line.total_won, 2),
            'netResult': round(self.line.net_result, 2),
            'zapPosition': self.zap_position,
        }


def _bet_config(bet):
    if not isinstance(bet, dict):
        raise ValueError(f"Bet must be an object, got {bet!r}")
    return snake_case_keys(bet)


def build_strategy(strategy_type, settings=None):
    """Instantiate a strategy from its type name and optional settings."""
    if settings is not None and not isinstance(settings, dict):
        raise ValueError("Strategy settings must be an object")
    opts = snake_case_keys(settings)
    bets = opts.get('bets')
    if bets is not None and not isinstance(bets, list):
        raise ValueError("Strategy bets must be a list")
    if strategy_type == 'standard_martingale':
        allowed = ('base_bet', 'max_bet', 'bet_type', 'target')
        return StandardMartingale(**{k: opts[k] for k in allowed if k in opts})
    if strategy_type == 'compound_martingale':
        return CompoundMartingale([_bet_config(b) for b in bets] if bets else None)
    if strategy_type == 'max_lose':
        return MaxLose([_bet_config(b) for b in bets] if bets else None,
                       max_bet=opts.get('max_bet'))
    if strategy_type == 'zapping':
        allowed = ('base_bet', 'start_target', 'max_bet')
        return Zapping(**{k: opts[k] for k in allowed if k in opts})
    raise ValueError(
        f"Unknown strategy: {strategy_type!r}. Expected one of {', '.join(STRATEGY_TYPES)}")


def default_strategy_settings(strategy_type):
    if strategy_type == 'compound_martingale':
        return {'bets': copy.deepcopy(COMPOUND_MARTINGALE_STRATEGIES)}
    if strategy_type == 'max_lose':
        return {'bets': copy.deepcopy(MAX_LOSE_STRATEGIES)}
    return {}
