"""
Event System - random event triggering and application.

Rolls the weighted tables from ``events.py`` against a mutable GameState:
1. Commercial events - price changes, free goods (any number per turn)
2. Stock events - single-stock price shocks (any number per turn)
3. Health events - damage (at most one) + auto-hospitalization
4. Theft events - cash/bank loss (at most one) + hacker event
5. Debt penalty - beating when debt is too high
"""

import logging
from typing import List, Optional

from catalog import STOCKS
from events import COMMERCIAL_EVENTS, HEALTH_EVENTS, STOCK_EVENTS, THEFT_EVENTS, CommercialEvent, StockEvent, TheftEvent
from game_config import GAME_CONSTANTS, GameConstants
from models import EventType, GameEvent, GameState, clamp
from rng import RandomProvider
from stock_prices import round_half_up

logger = logging.getLogger(__name__)


class EventSystem:
    def __init__(self, rng: Optional[RandomProvider] = None, constants: GameConstants = GAME_CONSTANTS):
        self.rng = rng or RandomProvider()
        self.constants = constants

    # ==================== Commercial ====================

    def trigger_commercial_events(self, state: GameState) -> List[GameEvent]:
        """Roll every commercial event independently; 0-18 may fire"""
        events = []
        for event in COMMERCIAL_EVENTS:
            if self.rng.roll(self.constants.commercial_event_modulus, event.freq):
                events.append(self._apply_commercial_event(state, event))
        return events

    def _apply_commercial_event(self, state: GameState, event: CommercialEvent) -> GameEvent:
        good_id = event.good_id

        if event.plus > 0 and state.market_prices[good_id] > 0:
            state.market_prices[good_id] *= event.plus

        if event.minus > 0 and state.market_prices[good_id] > 0:
            state.market_prices[good_id] = max(1, state.market_prices[good_id] // event.minus)

        granted = 0
        if event.add > 0 and state.total_items() + event.add <= state.capacity:
            item = state.inventory[good_id]
            was_empty = item.quantity == 0
            item.quantity += event.add
            item.good_id = good_id
            # free goods keep an existing average, but start a new slot at 0
            if was_empty:
                item.avg_price = 0
            granted = event.add

        if event.extra_debt:
            state.debt += event.extra_debt

        logger.debug(f"Commercial event on good {good_id}: {event.msg}")
        return GameEvent(
            type=EventType.COMMERCIAL,
            message=event.msg,
            data={
                "good_id": good_id,
                "plus": event.plus,
                "minus": event.minus,
                "add": event.add,
                "granted": granted,
                "extra_debt": event.extra_debt,
            },
        )

    # ==================== Stocks ====================

    def trigger_stock_events(self, state: GameState) -> List[GameEvent]:
        """Same weighted pattern as commercial events, against stock prices"""
        events = []
        for event in STOCK_EVENTS:
            if self.rng.roll(self.constants.stock_event_modulus, event.freq):
                fired = self._apply_stock_event(state, event)
                if fired:
                    events.append(fired)
        return events

    def _apply_stock_event(self, state: GameState, event: StockEvent) -> Optional[GameEvent]:
        stock_id = event.stock_id
        if stock_id >= len(state.stock_prices) or state.stock_prices[stock_id] <= 0:
            return None

        stock = STOCKS[stock_id]
        old_price = state.stock_prices[stock_id]
        new_price = clamp(round_half_up(old_price * event.factor), stock.min_price, stock.max_price)
        state.stock_prices[stock_id] = new_price

        # the latest candle closes at the shocked price
        if stock_id < len(state.stock_history) and state.stock_history[stock_id]:
            candle = state.stock_history[stock_id][-1]
            candle.close = new_price
            candle.high = max(candle.high, new_price)
            candle.low = min(candle.low, new_price)

        return GameEvent(
            type=EventType.STOCK,
            message=event.msg,
            data={"stock_id": stock_id, "factor": event.factor, "old_price": old_price, "new_price": new_price},
        )

    # ==================== Health ====================

    def trigger_health_events(self, state: GameState) -> List[GameEvent]:
        """At most one health event per turn, then the auto-hospital check.

        The hospital check runs whether or not a health event fired.
        """
        events = []

        for event in HEALTH_EVENTS:
            if self.rng.roll(self.constants.health_event_modulus, event.freq):
                state.health = max(0, state.health - event.damage)
                events.append(GameEvent(
                    type=EventType.HEALTH,
                    message=event.msg,
                    sound=event.sound,
                    data={"damage": event.damage, "new_health": state.health},
                ))
                break

        if (state.health < self.constants.auto_hospital_health_threshold
                and state.time_left > self.constants.auto_hospital_min_time):
            events.append(self._auto_hospitalize(state))

        return events

    def _auto_hospitalize(self, state: GameState) -> GameEvent:
        """Forced treatment paid with debt; costs 1-2 days of the remaining time"""
        c = self.constants
        days = c.auto_hospital_days_min + self.rng.random_int(c.auto_hospital_days_max - c.auto_hospital_days_min + 1)
        cost_per_day = c.auto_hospital_cost_min + self.rng.random_int(c.auto_hospital_cost_max - c.auto_hospital_cost_min)
        total_cost = days * cost_per_day

        state.debt += total_cost
        state.health = min(c.max_health, state.health + c.auto_hospital_heal)
        # may push time_left below zero; the engine checks with <= 0
        state.time_left -= days

        logger.debug(f"Auto-hospitalized for {days} day(s), cost {total_cost}")
        return GameEvent(
            type=EventType.AUTO_HOSPITAL,
            message=f"你的健康状况太差，被强制送往医院治疗{days}天，花费¥{total_cost:,}（已计入债务）",
            sound="hos",
            data={"days": days, "cost": total_cost, "cost_per_day": cost_per_day},
        )

    # ==================== Theft ====================

    def trigger_theft_events(self, state: GameState) -> List[GameEvent]:
        """At most one catalog theft, plus an independent hacker roll"""
        events = []

        for event in THEFT_EVENTS:
            if self.rng.roll(self.constants.theft_event_modulus, event.freq):
                loss = self._apply_theft_event(state, event)
                events.append(GameEvent(
                    type=EventType.THEFT,
                    message=event.msg,
                    sound=event.sound,
                    data={"ratio": event.ratio, "loss_amount": loss, "targets_bank": event.targets_bank},
                ))
                break

        if state.hacking_enabled:
            hacker_event = self._trigger_hacker_event(state)
            if hacker_event:
                events.append(hacker_event)

        return events

    def _apply_theft_event(self, state: GameState, event: TheftEvent) -> int:
        if event.fixed_loss > 0:
            loss = min(state.cash, event.fixed_loss)
            state.cash -= loss
            return loss

        if event.targets_bank:
            old_bank = state.bank
            state.bank = max(0, state.bank * (100 - event.ratio) // 100)
            return old_bank - state.bank

        old_cash = state.cash
        state.cash = max(0, state.cash * (100 - event.ratio) // 100)
        return old_cash - state.cash

    def _trigger_hacker_event(self, state: GameState) -> Optional[GameEvent]:
        """Bank-tiered hacker roll (2.5% chance).

        - bank < 1000: nothing to hack
        - 1000 <= bank <= 100000: always a gain of bank / [1..15]
        - bank > 100000: bank / [2..21], lost 2 times in 3, gained otherwise
        """
        c = self.constants
        if not self.rng.roll(c.hacker_event_modulus, c.hacker_event_freq):
            return None

        if state.bank < c.hacker_min_bank:
            return None

        if state.bank > c.hacker_rich_threshold:
            amount = state.bank // (2 + self.rng.random_int(20))
            if self.rng.random_int(20) % 3 != 0:
                state.bank = max(0, state.bank - amount)
                is_gain = False
                message = f"你的银行账户遭遇黑客入侵，修改了数据库，你的存款减少了¥{amount:,}！"
            else:
                state.bank += amount
                is_gain = True
                message = f"你的黑客技术修改了银行数据库，你的存款增加了¥{amount:,}！"
        else:
            amount = state.bank // (1 + self.rng.random_int(15))
            state.bank += amount
            is_gain = True
            message = f"你的黑客技术修改了银行数据库，你的存款增加了¥{amount:,}！"

        logger.debug(f"Hacker event: {'+' if is_gain else '-'}{amount}")
        return GameEvent(
            type=EventType.THEFT,
            message=message,
            data={"is_hacker": True, "is_gain": is_gain, "amount": amount},
        )

    # ==================== Penalties & warnings ====================

    def check_debt_penalty(self, state: GameState) -> Optional[GameEvent]:
        c = self.constants
        if state.debt <= c.debt_penalty_threshold:
            return None

        state.health = max(0, state.health - c.debt_penalty_damage)
        return GameEvent(
            type=EventType.DEBT_PENALTY,
            message=f"你的债务超过¥{c.debt_penalty_threshold:,}，债主派人来教训你！你损失了{c.debt_penalty_damage}点健康！",
            sound="kill",
            data={"damage": c.debt_penalty_damage},
        )

    def get_end_game_warning(self, state: GameState) -> Optional[str]:
        if state.time_left == self.constants.endgame_warning_day:
            return "最后一天了！赶快抛售你的货物吧！"
        return None
