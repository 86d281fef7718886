"""
Simulation Runner - plays a strategy against a spin sequence and records
one result per spin, plus the run summary that gets persisted.
"""

import numpy as np

from config import DEFAULT_STARTING_INVESTMENT, DEFAULT_SPIN_COUNT
from app.engine.spin_generator import SpinGenerator, validate_spin_count
from app.engine.streaks import analyze_streak_patterns
from app.money.strategies import build_strategy, default_strategy_settings, to_amount


class SimulationRunner:
    def __init__(self, strategy, starting_investment=DEFAULT_STARTING_INVESTMENT):
        starting_investment = to_amount(starting_investment, "startingInvestment")
        if starting_investment <= 0:
            raise ValueError("startingInvestment must be positive")
        self.strategy = strategy
        self.starting_investment = starting_investment
        self.cumulative_earnings = 0.0
        self.results = []
        self.spins = []
        self.bankrupt = False

    @property
    def portfolio(self):
        return self.starting_investment + self.cumulative_earnings

    def step(self, number):
        """Settle one spin. Returns the spin result, or None once the
        portfolio can no longer cover the stakes."""
        if self.bankrupt:
            return None

        bets = self.strategy.place_bets()
        if sum(bets.values()) > self.portfolio:
            self.bankrupt = True
            return None

        net, wins = self.strategy.settle(number)
        self.cumulative_earnings += net
        self.spins.append(number)

        result = {
            'spin': len(self.spins),
            'drawnNumber': number,
            'spinNetResult': round(net, 2),
            'cumulativeEarnings': round(self.cumulative_earnings, 2),
            'actualBetsUsed': bets,
            'wins': wins,
            'strategyType': self.strategy.strategy_type,
            self.strategy.state_key: self.strategy.state(),
        }
        self.results.append(result)
        return result

    def run(self, spins):
        for number in spins:
            if self.step(number) is None:
                break
        return self.results

    def summary(self):
        series = self.starting_investment + np.array(
            [0.0] + [r['cumulativeEarnings'] for r in self.results])
        peaks = np.maximum.accumulate(series)
        return {
            'strategy': self.strategy.strategy_type,
            'startingInvestment': self.starting_investment,
            'finalEarnings': round(self.cumulative_earnings, 2),
            'finalPortfolio': round(self.portfolio, 2),
            'totalSpins': len(self.results),
            'peakPortfolio': round(float(peaks.max()), 2),
            'maxDrawdown': round(float((peaks - series).max()), 2),
            'bankrupt': self.bankrupt,
        }


def run_simulation(strategy_type, spins=DEFAULT_SPIN_COUNT, seed=None,
                   starting_investment=DEFAULT_STARTING_INVESTMENT,
                   strategy_settings=None, streak_settings=None):
    """Generate spins and play one strategy over them.

    Returns:
        (summary, results, settings) where settings records everything
        needed to replay the run.
    """
    count = validate_spin_count(spins)
    strategy = build_strategy(strategy_type, strategy_settings)
    generator = SpinGenerator(seed=seed, config=streak_settings)
    runner = SimulationRunner(strategy, starting_investment)

    for _ in range(count):
        if runner.step(generator.next_spin()) is None:
            break

    summary = runner.summary()
    summary['streaks'] = analyze_streak_patterns(runner.spins)
    settings = {
        'seed': generator.seed,
        'requestedSpins': count,
        'streaks': generator.config,
        'strategy': strategy_settings or default_strategy_settings(strategy_type),
    }
    return summary, runner.results, settings


def build_simulation_payload(summary, results, settings=None, user_id=None):
    """Body accepted by POST /api/simulations for a finished run."""
    return {
        'userId': user_id,
        'strategy': summary['strategy'],
        'startingInvestment': summary['startingInvestment'],
        'finalEarnings': summary['finalEarnings'],
        'finalPortfolio': summary['finalPortfolio'],
        'totalSpins': summary['totalSpins'],
        'settings': settings or {},
        'results': results,
    }
