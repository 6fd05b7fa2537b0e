"""
Stock price walk: shared drift + per-stock noise + rare jumps, and
pseudo OHLC candles for the history charts.
"""

import math
from typing import List, Optional, Tuple

from catalog import STOCKS
from game_config import GAME_CONSTANTS, GameConstants
from models import StockCandle, clamp
from rng import RandomProvider


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class StockPriceGenerator:
    def __init__(self, rng: Optional[RandomProvider] = None, constants: GameConstants = GAME_CONSTANTS):
        self.rng = rng or RandomProvider()
        self.drift_max = constants.stock_drift_max
        self.history_length = constants.stock_history_length

    def generate_initial_prices(self) -> List[int]:
        return [self.rng.random_range(stock.start_min, stock.start_max) for stock in STOCKS]

    def generate_next_prices(self, current_prices: List[int]) -> List[int]:
        """next = round(base * (1 + drift + noise + jump)), clamped per stock"""
        # drift is shared by the whole market this turn
        drift = self.rng.uniform(-self.drift_max, self.drift_max)

        next_prices = []
        for stock in STOCKS:
            if stock.id < len(current_prices) and current_prices[stock.id] > 0:
                base = current_prices[stock.id]
            else:
                base = self.rng.random_range(stock.start_min, stock.start_max)

            noise = self.rng.uniform(-stock.daily_volatility, stock.daily_volatility)

            jump = 0.0
            if self.rng.chance(stock.jump_chance):
                direction = -1 if self.rng.chance(0.5) else 1
                jump = direction * self.rng.uniform(stock.jump_min, stock.jump_max)

            price = round_half_up(base * (1 + drift + noise + jump))
            next_prices.append(clamp(price, stock.min_price, stock.max_price))
        return next_prices

    def clamp_price(self, price: int, stock_id: int) -> int:
        if not 0 <= stock_id < len(STOCKS):
            return price
        stock = STOCKS[stock_id]
        return clamp(price, stock.min_price, stock.max_price)

    def build_candle(self, stock_id: int, open_price: int, close_price: int) -> StockCandle:
        """Inflate/deflate the body by a random fraction of 0.6 x daily volatility"""
        stock = STOCKS[stock_id] if 0 <= stock_id < len(STOCKS) else None
        swing_max = stock.daily_volatility * 0.6 if stock else 0.06

        extra_high = max(open_price, close_price) * (1 + self.rng.random_float() * swing_max)
        extra_low = min(open_price, close_price) * (1 - self.rng.random_float() * swing_max)

        return StockCandle(
            open=open_price,
            high=self.clamp_price(round_half_up(extra_high), stock_id),
            low=self.clamp_price(round_half_up(extra_low), stock_id),
            close=close_price,
        )

    def append_candles(self, history: List[List[StockCandle]], previous: List[int], current: List[int]) -> None:
        """Add one candle per stock and drop the oldest beyond the retained length"""
        while len(history) < len(STOCKS):
            history.append([])
        for stock in STOCKS:
            candles = history[stock.id]
            candles.append(self.build_candle(stock.id, previous[stock.id], current[stock.id]))
            if len(candles) > self.history_length:
                del candles[:len(candles) - self.history_length]

    def generate_initial_history(self, length: int) -> Tuple[List[List[StockCandle]], List[int]]:
        """Simulate ``length`` turns from fresh prices; returns (history, latest prices)"""
        length = max(1, int(length))
        prices = self.generate_initial_prices()
        history = [[self.build_candle(i, price, price)] for i, price in enumerate(prices)]

        for _ in range(1, length):
            next_prices = self.generate_next_prices(prices)
            for i, next_price in enumerate(next_prices):
                history[i].append(self.build_candle(i, prices[i], next_price))
            prices = next_prices

        return history, prices

    def generate_history_from_current(self, prices: List[int], length: int) -> List[List[StockCandle]]:
        """Walk backwards from the given closes to fabricate a plausible history"""
        length = max(1, int(length))
        history = []
        for stock in STOCKS:
            current = prices[stock.id] if stock.id < len(prices) else stock.start_min
            closes = [current]

            cursor = current
            for _ in range(1, length):
                delta = self.rng.uniform(-stock.daily_volatility, stock.daily_volatility)
                denom = 1 + delta
                previous = cursor if denom <= 0.1 else round_half_up(cursor / denom)
                cursor = clamp(previous, stock.min_price, stock.max_price)
                closes.insert(0, cursor)

            candles = []
            for i, close in enumerate(closes):
                open_price = close if i == 0 else closes[i - 1]
                candles.append(self.build_candle(stock.id, open_price, close))
            history.append(candles)
        return history
