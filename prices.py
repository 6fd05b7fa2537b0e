"""
Per-turn market prices for the 8 goods, with the "leaveout" mechanic
(a few goods are randomly unavailable each turn).
"""

import logging
from typing import List, Optional

from catalog import GOOD_COUNT, GOODS
from rng import RandomProvider

logger = logging.getLogger(__name__)


class PriceGenerator:
    def __init__(self, rng: Optional[RandomProvider] = None):
        self.rng = rng or RandomProvider()

    def generate_prices(self, leaveout: int = 3) -> List[int]:
        """Draw a fresh price for every good, then zero ``leaveout`` random slots.

        The upper bound is exclusive (``random_int``), so a good never quotes its
        listed max price. Leaveout draws may repeat, hiding fewer goods.
        """
        prices = [good.min_price + self.rng.random_int(good.max_price - good.min_price) for good in GOODS]

        for _ in range(leaveout):
            prices[self.rng.random_int(GOOD_COUNT)] = 0

        return prices

    @staticmethod
    def multiply_price(prices: List[int], good_id: int, multiplier: int) -> List[int]:
        new_prices = list(prices)
        if new_prices[good_id] > 0:
            new_prices[good_id] = int(new_prices[good_id] * multiplier)
        return new_prices

    @staticmethod
    def divide_price(prices: List[int], good_id: int, divisor: int) -> List[int]:
        new_prices = list(prices)
        if new_prices[good_id] > 0 and divisor > 0:
            new_prices[good_id] = max(1, new_prices[good_id] // divisor)
        return new_prices

    @staticmethod
    def format_price(price: int) -> str:
        if price == 0:
            return "无货"
        if price >= 10000:
            wan, remainder = divmod(price, 10000)
            if remainder == 0:
                return f"¥{wan}万"
            return f"¥{wan}.{remainder // 1000}万"
        return f"¥{price:,}"

    @staticmethod
    def validate_prices(prices: List[int]) -> bool:
        """Shape check; out-of-range prices are only reported (events move them)"""
        if len(prices) != GOOD_COUNT:
            return False
        for price, good in zip(prices, GOODS):
            if price != 0 and not good.min_price <= price < good.max_price:
                logger.warning(
                    f"Price out of range for {good.name}: {price} "
                    f"(expected {good.min_price}-{good.max_price - 1})"
                )
        return True
