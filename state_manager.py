"""
Game State Manager - owns the canonical GameState.

- Snapshots: get_state() hands out deep copies, never the live state
- Observers: subscribe()/unsubscribe, synchronous, one failing listener
  does not stop the others
- Persistence: autosave after every successful action, export/import
- Actions delegate to GameEngine; sounds, analytics and the leaderboard
  are optional collaborators and never break a game action
"""

import copy
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

import regex

from audio import NullAudio
from catalog import BEIJING, GOOD_COUNT, SHANGHAI, STOCK_COUNT, Location
from engine import GameEngine
from game_config import GAME_CONSTANTS, GameConstants
from models import GameEvent, GameState, Result, err, ok
from storage import MemoryStorage

logger = logging.getLogger(__name__)

StateListener = Callable[[GameState], None]


# ==================== Collaborator contracts ====================

@runtime_checkable
class SaveStorage(Protocol):
    def save(self, payload: Dict[str, Any]) -> None: ...
    def load(self) -> Optional[Dict[str, Any]]: ...
    def exists(self) -> bool: ...
    def delete(self) -> None: ...


@runtime_checkable
class AudioPlayer(Protocol):
    def play(self, sound_id: str) -> None: ...
    def set_enabled(self, enabled: bool) -> None: ...


@runtime_checkable
class AnalyticsTracker(Protocol):
    def track_event(self, name: str, params: Optional[Dict[str, Any]] = None) -> bool: ...


@runtime_checkable
class ScoreBoard(Protocol):
    def submit_score(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...
    def fetch_leaderboard(self) -> Optional[List[Dict[str, Any]]]: ...


class GameStateManager:
    def __init__(
        self,
        engine: Optional[GameEngine] = None,
        storage: Optional[SaveStorage] = None,
        audio: Optional[AudioPlayer] = None,
        analytics: Optional[AnalyticsTracker] = None,
        leaderboard: Optional[ScoreBoard] = None,
        constants: GameConstants = GAME_CONSTANTS,
        initial_state: Optional[GameState] = None,
        autosave: bool = True,
    ):
        self.engine = engine or GameEngine(constants=constants)
        self.storage = storage if storage is not None else MemoryStorage()
        self.audio = audio if audio is not None else NullAudio()
        self.analytics = analytics
        self.leaderboard = leaderboard
        self.constants = constants
        self.autosave = autosave

        self._state = initial_state or self.engine.create_initial_state()
        self._listeners: List[StateListener] = []
        self._call_collaborator(self.audio, "set_enabled", self._state.sound_enabled)

    # ==================== Snapshots & observers ====================

    def get_state(self) -> GameState:
        """Deep copy of the current state; mutating it has no effect on the game"""
        return copy.deepcopy(self._state)

    def set_state(self, **updates) -> None:
        for name, value in updates.items():
            if not hasattr(self._state, name):
                raise AttributeError(f"GameState has no field {name!r}")
            setattr(self._state, name, value)

        if "sound_enabled" in updates:
            self._call_collaborator(self.audio, "set_enabled", updates["sound_enabled"])

        self._commit()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener (called right away with a snapshot); returns an unsubscribe function"""
        self._listeners.append(listener)
        self._call_listener(listener, self.get_state())

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _call_listener(self, listener: StateListener, snapshot: GameState) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception("Error in state listener")

    def _notify_listeners(self) -> None:
        snapshot = self.get_state()
        for listener in list(self._listeners):
            self._call_listener(listener, snapshot)

    def _commit(self) -> None:
        self._notify_listeners()
        if self.autosave:
            self.save_game()

    def _commit_if_ok(self, result: Result, sound: Optional[str] = None) -> Result:
        if result.success:
            if sound:
                self.play_sound(sound)
            self._commit()
        return result

    # ==================== Collaborators ====================

    def _call_collaborator(self, collaborator, method: str, *args, **kwargs):
        if collaborator is None:
            return None
        try:
            return getattr(collaborator, method)(*args, **kwargs)
        except Exception:
            logger.exception(f"{type(collaborator).__name__}.{method} failed")
            return None

    def play_sound(self, sound_id: Optional[str]) -> None:
        if sound_id and self._state.sound_enabled:
            self._call_collaborator(self.audio, "play", sound_id)

    def play_event_sounds(self, events: List[GameEvent]) -> None:
        for event in events:
            self.play_sound(event.sound)

    def track(self, name: str, params: Optional[Dict[str, Any]] = None) -> None:
        self._call_collaborator(self.analytics, "track_event", name, params or {})

    # ==================== Persistence ====================

    def _save_payload(self) -> Dict[str, Any]:
        return {
            "version": self.constants.save_version,
            "timestamp": int(time.time() * 1000),
            "state": self._state.to_dict(),
        }

    def _state_from_payload(self, payload: Any) -> Optional[GameState]:
        """Validate a save document; None when it is not usable"""
        if not isinstance(payload, dict) or not payload.get("version") or not payload.get("state"):
            return None

        if payload["version"] != self.constants.save_version:
            logger.warning(f"Save version mismatch: {payload['version']} vs {self.constants.save_version}")
            return None

        data = payload["state"]
        if not isinstance(data, dict) or not self._has_valid_shape(data):
            logger.warning("Save rejected: malformed state")
            return None

        state = GameState.from_dict(data)
        if state.stock_prices and not state.stock_history:
            state.stock_history = self.engine.stock_price_generator.generate_history_from_current(
                state.stock_prices, self.constants.stock_history_length
            )
        return state

    @staticmethod
    def _has_valid_shape(data: Dict[str, Any]) -> bool:
        """Fixed-size slots must match the catalogs, or engine indexing breaks mid-action"""
        def sized(key, size, optional=False):
            value = data.get(key)
            if optional and not value:
                return True
            return isinstance(value, list) and len(value) == size

        return (
            sized("inventory", GOOD_COUNT)
            and sized("market_prices", GOOD_COUNT)
            and sized("stock_holdings", STOCK_COUNT, optional=True)
            and sized("stock_prices", STOCK_COUNT, optional=True)
        )

    def save_game(self) -> bool:
        try:
            self.storage.save(self._save_payload())
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save game")
            return False
        return True

    def load_game(self) -> bool:
        """Replace the state with the stored save; on any failure the current state is kept"""
        try:
            payload = self.storage.load()
            if payload is None:
                return False
            state = self._state_from_payload(payload)
        except (OSError, ValueError, KeyError, TypeError, AttributeError):
            logger.exception("Failed to load game")
            return False

        if state is None:
            return False

        self._state = state
        self._call_collaborator(self.audio, "set_enabled", state.sound_enabled)
        self._notify_listeners()
        return True

    def has_saved_game(self) -> bool:
        try:
            return self.storage.exists()
        except OSError:
            logger.exception("Failed to check for a saved game")
            return False

    def delete_save(self) -> None:
        try:
            self.storage.delete()
        except OSError:
            logger.exception("Failed to delete save")

    def export_save(self) -> str:
        return json.dumps(self._save_payload(), ensure_ascii=False, indent=2)

    def import_save(self, save_json: str) -> bool:
        try:
            state = self._state_from_payload(json.loads(save_json))
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.exception("Failed to import save")
            return False

        if state is None:
            return False

        self._state = state
        self._call_collaborator(self.audio, "set_enabled", state.sound_enabled)
        self._notify_listeners()
        self.save_game()
        return True

    def reset_game(self) -> None:
        """Start over, keeping the player's name and settings"""
        previous = self._state
        self._state = self.engine.create_initial_state(
            player_name=previous.player_name,
            hacking_enabled=previous.hacking_enabled,
        )
        self._state.sound_enabled = previous.sound_enabled
        self._notify_listeners()
        self.save_game()

    def new_game(self) -> None:
        has_save = self.has_saved_game()
        self.reset_game()
        self.track("game_start", {"has_save": 1 if has_save else 0})

    # ==================== Game actions ====================

    def buy_good(self, good_id: int, quantity: int) -> Result:
        return self._commit_if_ok(self.engine.buy_good(self._state, good_id, quantity), sound="buy")

    def sell_good(self, good_id: int, quantity: int) -> Result:
        return self._commit_if_ok(self.engine.sell_good(self._state, good_id, quantity), sound="sell")

    def buy_stock(self, stock_id: int, shares: int) -> Result:
        return self._commit_if_ok(self.engine.buy_stock(self._state, stock_id, shares), sound="buy")

    def sell_stock(self, stock_id: int, shares: int) -> Result:
        return self._commit_if_ok(self.engine.sell_stock(self._state, stock_id, shares), sound="sell")

    def deposit_bank(self, amount: int) -> Result:
        return self._commit_if_ok(self.engine.deposit_bank(self._state, amount), sound="money")

    def withdraw_bank(self, amount: int) -> Result:
        return self._commit_if_ok(self.engine.withdraw_bank(self._state, amount), sound="money")

    def pay_debt(self, amount: int) -> Result:
        return self._commit_if_ok(self.engine.pay_debt(self._state, amount), sound="money")

    def visit_hospital(self, health_points: int) -> Result:
        return self._commit_if_ok(self.engine.visit_hospital(self._state, health_points), sound="hos")

    def rent_house(self) -> Result:
        return self._commit_if_ok(self.engine.rent_house(self._state))

    def visit_wangba(self, min_reward: Optional[int] = None, max_reward: Optional[int] = None) -> Result:
        reward_range = None
        if min_reward is not None and max_reward is not None:
            reward_range = (min_reward, max_reward)
        return self._commit_if_ok(self.engine.visit_wangba(self._state, reward_range))

    def change_location(self, location: Location) -> List[GameEvent]:
        """Run one turn without charging a fare (see travel())"""
        self.play_sound("door_close")
        events = self.engine.change_location(self._state, location)
        self._commit()
        if self.is_game_over():
            self._track_game_over()
        return events

    def travel_cost(self, location: Location) -> int:
        return self.engine.travel_cost(self._state, location)

    def travel(self, location: Location) -> Result:
        """Pay the fare and move; value is the list of events from the turn"""
        if self.is_game_over():
            return err("游戏已经结束")

        current = self._state.current_location
        if current is not None and current.id == location.id:
            return err("你已经在这里了")

        fare = self.travel_cost(location)
        if self._state.cash < fare:
            return err(f"现金不足！需要¥{fare:,}，你只有¥{self._state.cash:,}")

        if self._state.city == BEIJING and location.city == SHANGHAI:
            self.play_sound("airport")

        self._state.cash -= fare
        return ok(self.change_location(location))

    def force_sell_all_items(self) -> int:
        revenue = self.engine.force_sell_all_items(self._state)
        self._commit()
        return revenue

    # ==================== Settings ====================

    def toggle_sound(self) -> bool:
        self.set_state(sound_enabled=not self._state.sound_enabled)
        return self._state.sound_enabled

    def toggle_hacking(self) -> bool:
        self.set_state(hacking_enabled=not self._state.hacking_enabled)
        return self._state.hacking_enabled

    def set_player_name(self, name: str) -> str:
        """Trim and cut to the allowed number of characters (grapheme clusters)"""
        graphemes = regex.findall(r"\X", (name or "").strip())
        cleaned = "".join(graphemes[:self.constants.max_player_name_length])
        self.set_state(player_name=cleaned)
        return cleaned

    # ==================== Queries ====================

    def get_max_affordable(self, good_id: int) -> int:
        return self.engine.get_max_affordable(self._state, good_id)

    def calculate_profit(self, good_id: int, quantity: int) -> int:
        return self.engine.calculate_profit(self._state, good_id, quantity)

    def calculate_score(self) -> int:
        return self.engine.calculate_score(self._state)

    def get_game_over_event(self) -> GameEvent:
        return self.engine.get_game_over_event(self._state)

    def is_dead(self) -> bool:
        return self.engine.is_dead(self._state)

    def is_time_up(self) -> bool:
        return self.engine.is_time_up(self._state)

    def is_game_over(self) -> bool:
        return self.engine.is_game_over(self._state)

    # ==================== Leaderboard ====================

    def _track_game_over(self) -> None:
        state = self._state
        self.track("game_over", {
            "score": self.calculate_score(),
            "cash": state.cash,
            "bank": state.bank,
            "debt": state.debt,
            "time_left": state.time_left,
            "city": state.city,
        })

    def submit_final_score(self) -> Optional[Dict[str, Any]]:
        """Post the final result; returns the stored record or None"""
        state = self._state
        payload = {
            "playerName": state.player_name.strip() or self.constants.default_player_name,
            "totalWealth": self.calculate_score(),
            "cash": state.cash,
            "bank": state.bank,
            "debt": state.debt,
            "health": state.health,
            "fame": state.fame,
        }
        record = self._call_collaborator(self.leaderboard, "submit_score", payload)
        if record:
            self.track("score_submitted", {"total_wealth": record.get("totalWealth", payload["totalWealth"])})
        else:
            self.track("score_submit_failed", {"reason": "network"})
        return record

    def fetch_leaderboard(self) -> Optional[List[Dict[str, Any]]]:
        return self._call_collaborator(self.leaderboard, "fetch_leaderboard")
