"""
Headless balance simulation
===========================
A scripted trader plays complete games against the real engine so the
event tables and price ranges can be checked over thousands of runs.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from catalog import ALL_LOCATIONS, GOODS, STOCKS, locations_in
from engine import GameEngine
from game_config import GAME_CONSTANTS
from models import EventType, GameState
from rng import RandomProvider

logger = logging.getLogger(__name__)

# Keep enough cash for a flight
TRAVEL_RESERVE = GAME_CONSTANTS.flight_cost


@dataclass
class SimulationSettings:
    """Configuration for simulation runs"""
    hacking_enabled: bool = False
    stocks_enabled: bool = True
    buy_threshold: float = 0.35       # buy a good priced in the bottom 35% of its range
    sell_markup: float = 0.15         # sell once 15% above average cost
    heal_below: int = 60
    fly_chance: float = 0.10
    stock_budget_fraction: float = 0.10

    @staticmethod
    def baseline():
        return SimulationSettings()


# ==================== Scripted trader ====================

class ScriptedTrader:
    """Simple greedy policy: sell high, repay debt, heal, buy cheap, move on"""

    def __init__(self, engine: GameEngine, settings: SimulationSettings, rng: RandomProvider):
        self.engine = engine
        self.settings = settings
        self.rng = rng

    def take_actions(self, state: GameState):
        self._sell_goods(state)
        self._sell_stocks(state)
        self._repay_debt(state)
        self._heal(state)
        self._buy_goods(state)
        self._buy_stocks(state)
        if state.cash > 200_000 and state.capacity < self.engine.constants.max_capacity:
            self.engine.rent_house(state)

    def _sell_goods(self, state: GameState):
        last_days = state.time_left <= 2
        for good_id, item in enumerate(state.inventory):
            price = state.market_prices[good_id]
            if item.quantity == 0 or price == 0:
                continue
            if last_days or price >= item.avg_price * (1 + self.settings.sell_markup):
                self.engine.sell_good(state, good_id, item.quantity)

    def _sell_stocks(self, state: GameState):
        if not self.engine.stocks_enabled:
            return
        for stock_id, holding in enumerate(state.stock_holdings):
            if holding.shares == 0:
                continue
            price = state.stock_prices[stock_id]
            if state.time_left <= 2 or price >= holding.avg_price * 1.2 or price <= holding.avg_price * 0.8:
                self.engine.sell_stock(state, stock_id, holding.shares)

    def _repay_debt(self, state: GameState):
        if state.debt <= 0:
            return
        spare = state.cash - TRAVEL_RESERVE
        if spare > 0:
            self.engine.pay_debt(state, min(state.debt, spare))

    def _heal(self, state: GameState):
        if state.health >= self.settings.heal_below:
            return
        points = min(
            self.engine.constants.max_health - state.health,
            max(0, state.cash - TRAVEL_RESERVE) // self.engine.constants.hospital_cost_per_hp,
        )
        if points > 0:
            self.engine.visit_hospital(state, points)

    def _buy_goods(self, state: GameState):
        if state.time_left <= 2:
            return

        candidates = []
        for good in GOODS:
            price = state.market_prices[good.id]
            if price == 0:
                continue
            position = (price - good.min_price) / (good.max_price - good.min_price)
            if position <= self.settings.buy_threshold:
                candidates.append((position, good.id))

        for _, good_id in sorted(candidates):
            price = state.market_prices[good_id]
            quantity = min(self.engine.get_max_affordable(state, good_id), max(0, state.cash - TRAVEL_RESERVE) // price)
            if quantity > 0:
                self.engine.buy_good(state, good_id, quantity)

    def _buy_stocks(self, state: GameState):
        if not self.engine.stocks_enabled or state.time_left <= 3:
            return
        budget = int(max(0, state.cash - TRAVEL_RESERVE) * self.settings.stock_budget_fraction)
        if budget <= 0:
            return

        stock = min(STOCKS, key=lambda s: (state.stock_prices[s.id] - s.min_price) / (s.max_price - s.min_price))
        price = state.stock_prices[stock.id]
        shares = budget // int(price * (1 + self.engine.constants.stock_trade_fee_rate) + 1)
        if shares > 0:
            self.engine.buy_stock(state, stock.id, shares)

    def choose_destination(self, state: GameState):
        if self.rng.chance(self.settings.fly_chance):
            options = [loc for loc in ALL_LOCATIONS if loc.city != state.city]
        else:
            options = [loc for loc in locations_in(state.city) if loc != state.current_location]
        return self.rng.choice(options)


# ==================== Runs ====================

def run_one_game(seed: int, settings: Optional[SimulationSettings] = None) -> dict:
    """Play one full game with the scripted trader

    Args:
        seed: Random seed for reproducibility (engine and trader)
        settings: Optional simulation settings

    Returns:
        Dictionary with the final numbers and event counts
    """
    settings = settings or SimulationSettings.baseline()
    engine = GameEngine(rng=RandomProvider(seed), stocks_enabled=settings.stocks_enabled)
    state = engine.create_initial_state(hacking_enabled=settings.hacking_enabled)
    trader = ScriptedTrader(engine, settings, RandomProvider(seed + 1_000_003))

    event_counts = Counter()
    turns = 0
    outcome = None

    while not engine.is_game_over(state):
        trader.take_actions(state)

        destination = trader.choose_destination(state)
        fare = engine.travel_cost(state, destination)
        if state.cash < fare and state.bank > 0:
            engine.withdraw_bank(state, min(state.bank, fare - state.cash))
        if state.cash < fare:
            outcome = "stranded"
            break

        state.cash -= fare
        for event in engine.change_location(state, destination):
            event_counts[event.type.value] += 1
            if event.data.get("is_hacker"):
                event_counts["hacker"] += 1
        turns += 1

    if outcome is None:
        outcome = "death" if engine.is_dead(state) else "time"

    score = engine.calculate_score(state)
    result = {
        "seed": seed,
        "score": score,
        "win": score > 0,
        "outcome": outcome,
        "turns": turns,
        "cash": state.cash,
        "bank": state.bank,
        "debt": state.debt,
        "health": state.health,
        "fame": state.fame,
        "capacity": state.capacity,
    }
    for event_type in EventType:
        result[f"events_{event_type.value}"] = event_counts.get(event_type.value, 0)
    result["events_hacker"] = event_counts.get("hacker", 0)
    return result


def run_monte_carlo(n: int, settings: Optional[SimulationSettings] = None, seed_offset: int = 0) -> dict:
    """Run n games (seeds seed_offset .. seed_offset+n-1)

    Returns:
        Dictionary with aggregate statistics and the raw results
    """
    settings = settings or SimulationSettings.baseline()
    results = [run_one_game(seed_offset + i, settings=settings) for i in range(n)]

    scores = [r["score"] for r in results]
    wins = [r for r in results if r["win"]]
    logger.info(f"Monte Carlo finished: {n} runs, {len(wins)} positive scores")

    return {
        "n": len(results),
        "win_rate": len(wins) / len(results) if results else 0.0,
        "median_score": float(np.median(scores)) if scores else 0.0,
        "results": results,
    }


# ==================== Statistics ====================

def calc_stats(values) -> Optional[Dict[str, float]]:
    if len(values) == 0:
        return None
    arr = np.asarray(values, dtype=float)
    return {
        "count": len(arr),
        "mean": float(np.mean(arr)),
        "median": float(np.median(arr)),
        "std": float(np.std(arr)),
        "skew": float(stats.skew(arr)) if len(arr) > 2 else 0.0,
        "kurtosis": float(stats.kurtosis(arr)) if len(arr) > 3 else 0.0,
        "min": float(np.min(arr)),
        "max": float(np.max(arr)),
        "p5": float(np.percentile(arr, 5)),
        "p25": float(np.percentile(arr, 25)),
        "p50": float(np.percentile(arr, 50)),
        "p75": float(np.percentile(arr, 75)),
        "p95": float(np.percentile(arr, 95)),
    }


def compute_detailed_stats(results: List[dict]) -> Optional[dict]:
    """Compute comprehensive statistics from simulation results"""
    if not results:
        return None

    df = pd.DataFrame(results)
    n = len(df)
    event_columns = [c for c in df.columns if c.startswith("events_")]

    return {
        "n": n,
        "wins": int(df["win"].sum()),
        "losses": int(n - df["win"].sum()),
        "win_rate": float(df["win"].mean() * 100),
        "score_stats": calc_stats(df["score"].to_numpy()),
        "debt_stats": calc_stats(df["debt"].to_numpy()),
        "turn_stats": calc_stats(df["turns"].to_numpy()),
        "outcomes": df["outcome"].value_counts().to_dict(),
        # average number of events of each kind per game
        "event_frequencies": {c[len("events_"):]: float(df[c].mean()) for c in event_columns},
        "raw_results": results,
    }
