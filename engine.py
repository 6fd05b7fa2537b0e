"""
Beijing Fushengji - Game Engine (Pure Logic, No UI)
===================================================
Headless trading engine: buy/sell, bank, services and the per-turn
location change that drives prices, interest and random events.
Used by the state manager, the Streamlit front end and the balance simulator.
"""

import logging
import math
from typing import List, Optional, Tuple

from catalog import BEIJING, BEIJING_LOCATIONS, FAME_PENALTIES, GOOD_COUNT, GOODS, STOCKS, Location
from event_system import EventSystem
from game_config import GAME_CONSTANTS, GameConstants
from models import EventType, GameEvent, GameState, Result, StockHolding, err, ok
from prices import PriceGenerator
from rng import RandomProvider
from stock_prices import StockPriceGenerator

logger = logging.getLogger(__name__)


# ==================== Engine Class ====================

class GameEngine:
    """Pure game logic engine (no UI dependencies).

    All operations mutate the GameState passed in. Player actions return a
    Result; expected failures never raise and leave the state untouched.
    """

    def __init__(
        self,
        rng: Optional[RandomProvider] = None,
        price_generator: Optional[PriceGenerator] = None,
        stock_price_generator: Optional[StockPriceGenerator] = None,
        event_system: Optional[EventSystem] = None,
        constants: GameConstants = GAME_CONSTANTS,
        stocks_enabled: Optional[bool] = None,
    ):
        self.rng = rng or RandomProvider()
        self.constants = constants
        self.price_generator = price_generator or PriceGenerator(self.rng)
        self.stock_price_generator = stock_price_generator or StockPriceGenerator(self.rng, constants)
        self.event_system = event_system or EventSystem(self.rng, constants)
        self.stocks_enabled = constants.stock_market_enabled if stocks_enabled is None else stocks_enabled

    # ==================== Setup ====================

    def create_initial_state(self, player_name: str = "", hacking_enabled: bool = False) -> GameState:
        """Fresh 40-day game: random Beijing start, first prices and a seeded stock history"""
        c = self.constants
        start = self.rng.choice(BEIJING_LOCATIONS)
        history, stock_prices = self.stock_price_generator.generate_initial_history(c.stock_history_length)

        state = GameState(
            cash=c.starting_cash,
            debt=c.starting_debt,
            bank=c.starting_bank,
            health=c.starting_health,
            fame=c.starting_fame,
            capacity=c.starting_capacity,
            current_location=start,
            city=start.city,
            time_left=c.starting_time,
            market_prices=self.price_generator.generate_prices(c.market_leaveout_normal),
            stock_prices=stock_prices,
            stock_history=history,
            hacking_enabled=hacking_enabled,
            player_name=player_name,
        )
        logger.debug(f"New game at {start.name}, score {self.calculate_score(state)}")
        return state

    # ==================== Goods ====================

    def buy_good(self, state: GameState, good_id: int, quantity: int) -> Result:
        if not 0 <= good_id < GOOD_COUNT:
            return err("无效的商品ID")

        price = state.market_prices[good_id]
        if price == 0:
            return err("该商品暂时无货")

        if quantity <= 0:
            return err("购买数量必须大于0")

        total_cost = price * quantity
        if total_cost > state.cash:
            return err(f"现金不足！需要¥{total_cost:,}，你只有¥{state.cash:,}")

        available = state.free_capacity()
        if quantity > available:
            return err(f"容量不足！你只能再携带{available}件商品")

        state.cash -= total_cost
        item = state.inventory[good_id]
        item.avg_price = (item.avg_price * item.quantity + total_cost) // (item.quantity + quantity)
        item.quantity += quantity
        item.good_id = good_id

        return ok(total_cost)

    def sell_good(self, state: GameState, good_id: int, quantity: int) -> Result:
        if not 0 <= good_id < GOOD_COUNT:
            return err("无效的商品ID")

        item = state.inventory[good_id]
        if item.quantity == 0:
            return err("你没有这件商品")

        if quantity <= 0:
            return err("出售数量必须大于0")

        if quantity > item.quantity:
            return err(f"你只有{item.quantity}件{GOODS[good_id].name}")

        price = state.market_prices[good_id]
        if price == 0:
            return err("该商品当前无人收购")

        revenue = price * quantity
        state.cash += revenue
        item.quantity -= quantity
        if item.quantity == 0:
            item.clear()

        penalty = FAME_PENALTIES.get(good_id, 0)
        if penalty:
            state.fame = max(0, state.fame - penalty)

        return ok(revenue)

    def get_max_affordable(self, state: GameState, good_id: int) -> int:
        price = state.market_prices[good_id]
        if price == 0:
            return 0
        return max(0, min(state.cash // price, state.free_capacity()))

    def calculate_profit(self, state: GameState, good_id: int, quantity: int) -> int:
        return (state.market_prices[good_id] - state.inventory[good_id].avg_price) * quantity

    # ==================== Stocks ====================

    def trade_fee(self, value: int) -> int:
        return int(math.ceil(value * self.constants.stock_trade_fee_rate))

    def buy_stock(self, state: GameState, stock_id: int, shares: int) -> Result:
        if not self.stocks_enabled:
            return err("股票市场尚未开放")

        if not 0 <= stock_id < len(STOCKS) or stock_id >= len(state.stock_prices):
            return err("无效的股票ID")

        if shares <= 0:
            return err("购买股数必须大于0")

        # saved games may carry a zero (halted) price
        price = state.stock_prices[stock_id]
        if price <= 0:
            return err("该股票暂停交易")

        value = price * shares
        total_cost = value + self.trade_fee(value)
        if total_cost > state.cash:
            return err(f"现金不足！需要¥{total_cost:,}，你只有¥{state.cash:,}")

        state.cash -= total_cost
        holding = state.stock_holdings[stock_id]
        holding.avg_price = (holding.avg_price * holding.shares + value) // (holding.shares + shares)
        holding.shares += shares

        return ok(total_cost)

    def sell_stock(self, state: GameState, stock_id: int, shares: int) -> Result:
        if not self.stocks_enabled:
            return err("股票市场尚未开放")

        if not 0 <= stock_id < len(STOCKS) or stock_id >= len(state.stock_prices):
            return err("无效的股票ID")

        holding = state.stock_holdings[stock_id]
        if holding.shares == 0:
            return err("你没有持有这只股票")

        if shares <= 0:
            return err("出售股数必须大于0")

        if shares > holding.shares:
            return err(f"你只有{holding.shares}股{STOCKS[stock_id].name}")

        # saved games may carry a zero (halted) price
        price = state.stock_prices[stock_id]
        if price <= 0:
            return err("该股票暂停交易")

        value = price * shares
        proceeds = max(0, value - self.trade_fee(value))
        state.cash += proceeds
        holding.shares -= shares
        if holding.shares == 0:
            holding.avg_price = 0

        return ok(proceeds)

    def stock_value(self, state: GameState) -> int:
        return sum(
            holding.shares * state.stock_prices[i]
            for i, holding in enumerate(state.stock_holdings)
            if i < len(state.stock_prices)
        )

    # ==================== Bank & Debt ====================

    def deposit_bank(self, state: GameState, amount: int) -> Result:
        if amount <= 0:
            return err("存款金额必须大于0")

        if amount > state.cash:
            return err(f"现金不足！你只有¥{state.cash:,}")

        state.cash -= amount
        state.bank += amount
        return ok(amount)

    def withdraw_bank(self, state: GameState, amount: int) -> Result:
        if amount <= 0:
            return err("取款金额必须大于0")

        if amount > state.bank:
            return err(f"存款不足！你只有¥{state.bank:,}")

        state.bank -= amount
        state.cash += amount
        return ok(amount)

    def pay_debt(self, state: GameState, amount: int) -> Result:
        """Repay from cash first, then the bank; capped at the outstanding debt"""
        if amount <= 0:
            return err("还款金额必须大于0")

        if state.debt <= 0:
            return err("你没有欠债")

        amount = min(amount, state.debt)
        total_available = state.cash + state.bank
        if amount > total_available:
            return err(f"资金不足！你总共只有¥{total_available:,}")

        if amount <= state.cash:
            state.cash -= amount
        else:
            state.bank -= amount - state.cash
            state.cash = 0

        state.debt = max(0, state.debt - amount)
        return ok(amount)

    # ==================== Services ====================

    def visit_hospital(self, state: GameState, health_points: int) -> Result:
        c = self.constants
        if health_points <= 0:
            return err("恢复点数必须大于0")

        if state.health >= c.max_health:
            return err("你的健康已经满了")

        max_restore = c.max_health - state.health
        if health_points > max_restore:
            return err(f"最多只能恢复{max_restore}点健康")

        cost = health_points * c.hospital_cost_per_hp
        if state.cash < cost:
            return err(f"现金不足！需要¥{cost:,}，你只有¥{state.cash:,}")

        state.cash -= cost
        state.health += health_points
        return ok(cost)

    def house_rent_cost(self, state: GameState) -> int:
        c = self.constants
        if state.cash <= c.house_rent_rich_threshold:
            return c.house_rent_flat_cost
        return state.cash // 2 - c.house_rent_rich_discount

    def rent_house(self, state: GameState) -> Result:
        """+10 capacity; flat 25000 for the poor, half the cash minus 2000 for the rich"""
        c = self.constants
        if state.capacity >= c.max_capacity:
            return err(f"容量已达上限{c.max_capacity}")

        cost = self.house_rent_cost(state)
        if state.cash < cost:
            return err(f"现金不足！需要¥{cost:,}，你只有¥{state.cash:,}")

        state.cash -= cost
        state.capacity = min(c.max_capacity, state.capacity + c.house_capacity_increase)
        return ok(cost)

    def visit_wangba(self, state: GameState, reward_range: Optional[Tuple[int, int]] = None) -> Result:
        c = self.constants
        if state.wangba_visits >= c.max_wangba_visits:
            return err(f"你已经访问了{c.max_wangba_visits}次网吧，不能再去了")

        if state.cash < c.wangba_entry_cost:
            return err(f"现金不足！需要¥{c.wangba_entry_cost}")

        state.cash -= c.wangba_entry_cost
        state.wangba_visits += 1

        reward_min, reward_max = reward_range or (c.wangba_reward_min, c.wangba_reward_max)
        reward = self.rng.random_range(reward_min, reward_max)
        if state.hacking_enabled:
            reward = int(reward * c.wangba_hacking_multiplier)

        state.cash += reward
        return ok(reward)

    # ==================== Travel ====================

    def travel_cost(self, state: GameState, destination: Location) -> int:
        """Subway fare of the current city, or a flight when changing city"""
        c = self.constants
        if destination.city != state.city:
            return c.flight_cost
        return c.subway_cost_beijing if state.city == BEIJING else c.subway_cost_shanghai

    def change_location(self, state: GameState, new_location: Location) -> List[GameEvent]:
        """Resolve one turn. The order of the steps matters: later steps read
        state mutated by earlier ones. The travel fare is charged by the caller.
        """
        c = self.constants
        events: List[GameEvent] = []

        # 1. Market prices (everything on sale for the last two days)
        leaveout = c.market_leaveout_endgame if state.time_left <= c.endgame_leaveout_time else c.market_leaveout_normal
        state.market_prices = self.price_generator.generate_prices(leaveout)

        # 2. Stock prices + one candle per stock
        self._advance_stock_prices(state)

        # 3. Interest
        self._apply_interest(state)

        # 4-7. Random events
        events.extend(self.event_system.trigger_commercial_events(state))
        if self.stocks_enabled:
            events.extend(self.event_system.trigger_stock_events(state))
        events.extend(self.event_system.trigger_health_events(state))
        events.extend(self.event_system.trigger_theft_events(state))

        # 8. Debt collectors
        penalty = self.event_system.check_debt_penalty(state)
        if penalty:
            events.append(penalty)

        # 9. Commit the move
        state.current_location = new_location
        state.city = new_location.city
        state.time_left -= 1
        logger.debug(f"Moved to {new_location.name}, {state.time_left} day(s) left, {len(events)} event(s)")

        # 10. Time over (auto-hospital can push time_left below zero)
        if self.is_time_up(state):
            goods_revenue = self.force_sell_all_items(state)
            stock_revenue = self.liquidate_stocks(state)
            liquidation_revenue = goods_revenue + stock_revenue
            final_score = self.calculate_score(state)
            logger.debug(f"Time up: liquidated for {liquidation_revenue}, final score {final_score}")
            events.append(GameEvent(
                type=EventType.GAME_OVER,
                message=f"{c.starting_time}天已到！\n自动卖出所有商品，获得¥{liquidation_revenue:,}",
                data={
                    "reason": "time",
                    "goods_revenue": goods_revenue,
                    "stock_revenue": stock_revenue,
                    "liquidation_revenue": liquidation_revenue,
                    "final_score": final_score,
                },
            ))
            return events

        # 11. Death
        if self.is_dead(state):
            logger.debug("Player died")
            events.append(GameEvent(
                type=EventType.GAME_OVER,
                message="你倒下了！游戏结束。",
                sound="death",
                data={"reason": "health", "final_score": self.calculate_score(state)},
            ))
            return events

        # 12. Last-day warning goes first
        warning = self.event_system.get_end_game_warning(state)
        if warning:
            return [GameEvent(type=EventType.WARNING, message=warning, data={"is_endgame_warning": True})] + events

        return events

    def _advance_stock_prices(self, state: GameState):
        previous = state.stock_prices
        if len(previous) < len(STOCKS):
            previous = self.stock_price_generator.generate_initial_prices()

        current = self.stock_price_generator.generate_next_prices(previous)
        self.stock_price_generator.append_candles(state.stock_history, previous, current)
        state.stock_prices = current

        while len(state.stock_holdings) < len(STOCKS):
            state.stock_holdings.append(StockHolding())

    def _apply_interest(self, state: GameState):
        c = self.constants
        state.debt = int(math.floor(state.debt + state.debt * c.debt_interest_rate))
        state.bank = int(math.floor(state.bank + state.bank * c.bank_interest_rate))
        if state.cash < 0:
            state.cash = 0

    # ==================== Liquidation & Scoring ====================

    def force_sell_all_items(self, state: GameState) -> int:
        """Put every good on sale and sell all holdings; returns the revenue"""
        state.market_prices = self.price_generator.generate_prices(self.constants.market_leaveout_endgame)

        revenue = 0
        for good_id, item in enumerate(state.inventory):
            price = state.market_prices[good_id]
            if item.quantity > 0 and price > 0:
                revenue += price * item.quantity
                item.clear()
        state.cash += revenue
        return revenue

    def liquidate_stocks(self, state: GameState) -> int:
        """Sell every share at the current price, paying the usual fee"""
        revenue = 0
        for stock_id, holding in enumerate(state.stock_holdings):
            if holding.shares <= 0 or stock_id >= len(state.stock_prices):
                continue
            value = holding.shares * state.stock_prices[stock_id]
            revenue += max(0, value - self.trade_fee(value))
            holding.shares = 0
            holding.avg_price = 0
        state.cash += revenue
        return revenue

    def calculate_score(self, state: GameState) -> int:
        """Score = cash + bank + stock value - debt"""
        return state.cash + state.bank + self.stock_value(state) - state.debt

    def is_time_up(self, state: GameState) -> bool:
        return state.time_left <= 0

    def is_dead(self, state: GameState) -> bool:
        return state.health <= 0

    def is_game_over(self, state: GameState) -> bool:
        return self.is_time_up(state) or self.is_dead(state)

    def get_game_over_event(self, state: GameState) -> GameEvent:
        final_score = self.calculate_score(state)
        if self.is_time_up(state):
            return GameEvent(
                type=EventType.GAME_OVER,
                message=f"{self.constants.starting_time}天已到！游戏结束。",
                data={"reason": "time", "final_score": final_score},
            )
        if self.is_dead(state):
            return GameEvent(
                type=EventType.GAME_OVER,
                message="你倒下了！游戏结束。",
                sound="death",
                data={"reason": "health", "final_score": final_score},
            )
        return GameEvent(type=EventType.GAME_OVER, message="游戏结束。", data={"final_score": final_score})


# ==================== Public API ====================

def new_game(seed: Optional[int] = None, hacking_enabled: bool = False,
             stocks_enabled: Optional[bool] = None) -> Tuple[GameEngine, GameState]:
    """Create an engine and a fresh game

    Args:
        seed: Random seed for reproducibility
        hacking_enabled: Start with the hacker mode on
        stocks_enabled: Override the stock market flag

    Returns:
        (engine, state) ready to play
    """
    engine = GameEngine(rng=RandomProvider(seed), stocks_enabled=stocks_enabled)
    return engine, engine.create_initial_state(hacking_enabled=hacking_enabled)
