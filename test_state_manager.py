"""GameStateManager: snapshots, observers, persistence and collaborators"""

import json

import pytest

from audio import NullAudio
from catalog import BEIJING_LOCATIONS, SHANGHAI, SHANGHAI_LOCATIONS
from state_manager import GameStateManager
from storage import JsonFileStorage, MemoryStorage


class FakeAnalytics:
    def __init__(self):
        self.events = []

    def track_event(self, name, params=None):
        self.events.append((name, params))
        return True

    def names(self):
        return [name for name, _ in self.events]


class FakeLeaderboard:
    def __init__(self, record=None, items=None):
        self.record = record
        self.items = items
        self.submitted = []

    def submit_score(self, payload):
        self.submitted.append(payload)
        return self.record

    def fetch_leaderboard(self):
        return self.items


class Broken:
    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise RuntimeError(f"{name} is broken")
        return fail


@pytest.fixture
def analytics():
    return FakeAnalytics()


@pytest.fixture
def manager(quiet_engine, analytics):
    return GameStateManager(engine=quiet_engine, audio=NullAudio(), analytics=analytics)


# ==================== Snapshots & observers ====================

def test_snapshots_are_copies(manager):
    snapshot = manager.get_state()
    snapshot.cash = 999_999
    snapshot.inventory[0].quantity = 50
    assert manager.get_state().cash == 2000
    assert manager.get_state().inventory[0].quantity == 0


def test_subscribe_and_unsubscribe(manager):
    seen = []
    unsubscribe = manager.subscribe(lambda state: seen.append(state.cash))
    assert seen == [2000]

    manager.buy_good(0, 1)
    assert seen == [2000, 1899]

    unsubscribe()
    manager.buy_good(0, 1)
    assert seen == [2000, 1899]


def test_failing_listener_does_not_block_others(manager):
    def broken(state):
        raise ValueError("boom")

    seen = []
    manager.subscribe(broken)
    manager.subscribe(lambda state: seen.append(state.cash))
    manager.deposit_bank(500)
    assert seen == [2000, 1500]


def test_failed_action_changes_nothing(manager):
    seen = []
    manager.subscribe(lambda state: seen.append(state))
    result = manager.buy_good(4, 1)
    assert not result.success
    assert len(seen) == 1
    assert not manager.has_saved_game()
    assert manager.audio.played == []


def test_set_state_rejects_unknown_fields(manager):
    with pytest.raises(AttributeError):
        manager.set_state(gold=1)


# ==================== Persistence ====================

def test_actions_autosave(quiet_engine):
    storage = MemoryStorage()
    first = GameStateManager(engine=quiet_engine, storage=storage)
    first.buy_good(0, 5)
    assert first.has_saved_game()

    second = GameStateManager(engine=quiet_engine, storage=storage)
    assert second.load_game()
    assert second.get_state().to_dict() == first.get_state().to_dict()


def test_json_file_round_trip(quiet_engine, tmp_path):
    storage = JsonFileStorage(tmp_path / "saves" / "game.json")
    first = GameStateManager(engine=quiet_engine, storage=storage)
    first.buy_good(0, 5)
    first.travel(SHANGHAI_LOCATIONS[0])

    payload = json.loads((tmp_path / "saves" / "game.json").read_text(encoding="utf-8"))
    assert payload["version"] == "1.0.0"
    assert isinstance(payload["timestamp"], int)

    second = GameStateManager(engine=quiet_engine, storage=storage)
    assert second.load_game()
    loaded = second.get_state()
    assert loaded.to_dict() == first.get_state().to_dict()
    assert loaded.city == SHANGHAI
    assert loaded.current_location == SHANGHAI_LOCATIONS[0]


def test_load_without_save(manager):
    assert not manager.load_game()


def test_version_mismatch_keeps_state(quiet_engine):
    storage = MemoryStorage()
    manager = GameStateManager(engine=quiet_engine, storage=storage)
    stale = manager.get_state()
    stale.cash = 1
    storage.save({"version": "0.9.0", "timestamp": 0, "state": stale.to_dict()})

    assert not manager.load_game()
    assert manager.get_state().cash == 2000


def test_corrupt_save_file(quiet_engine, tmp_path):
    path = tmp_path / "game.json"
    path.write_text("{not json", encoding="utf-8")
    manager = GameStateManager(engine=quiet_engine, storage=JsonFileStorage(path))
    before = manager.get_state().to_dict()
    assert not manager.load_game()
    assert manager.get_state().to_dict() == before


def test_delete_save(manager):
    manager.deposit_bank(100)
    assert manager.has_saved_game()
    manager.delete_save()
    assert not manager.has_saved_game()


def test_export_import(quiet_engine, manager):
    manager.buy_good(2, 10)
    manager.buy_stock(0, 5)
    manager.set_player_name("小明")
    exported = manager.export_save()

    other = GameStateManager(engine=quiet_engine)
    assert other.import_save(exported)
    assert other.get_state().to_dict() == manager.get_state().to_dict()
    assert other.has_saved_game()


def test_import_rejects_garbage(manager):
    before = manager.get_state().to_dict()
    assert not manager.import_save("not json")
    assert not manager.import_save(json.dumps({"version": "1.0.0"}))
    assert not manager.import_save(json.dumps({"version": "1.0.0", "state": {"cash": 5}}))
    assert manager.get_state().to_dict() == before


@pytest.mark.parametrize("bad_state", ["garbage", ["x"], 42])
def test_import_rejects_non_object_state(manager, bad_state):
    before = manager.get_state().to_dict()
    assert not manager.import_save(json.dumps({"version": "1.0.0", "timestamp": 0, "state": bad_state}))
    assert manager.get_state().to_dict() == before


def test_load_rejects_non_object_state(quiet_engine):
    storage = MemoryStorage()
    manager = GameStateManager(engine=quiet_engine, storage=storage)
    before = manager.get_state().to_dict()
    storage.save({"version": "1.0.0", "timestamp": 0, "state": ["x"]})
    assert not manager.load_game()
    assert manager.get_state().to_dict() == before


@pytest.mark.parametrize("field, size", [
    ("inventory", 2),
    ("market_prices", 3),
    ("stock_holdings", 4),
    ("stock_prices", 5),
])
def test_import_rejects_wrong_slot_counts(manager, field, size):
    payload = json.loads(manager.export_save())
    payload["state"][field] = payload["state"][field][:size]
    before = manager.get_state().to_dict()

    assert not manager.import_save(json.dumps(payload))
    assert manager.get_state().to_dict() == before

    # the game keeps working on the untouched state
    result = manager.buy_good(5, 1)
    assert result.success
    assert manager.get_state().cash == 2000 - 251
    assert manager.get_state().inventory[5].quantity == 1


def test_imported_halted_stock_is_not_tradeable(manager):
    payload = json.loads(manager.export_save())
    payload["state"]["stock_prices"][3] = 0
    assert manager.import_save(json.dumps(payload))

    assert manager.buy_stock(3, 1).error == "该股票暂停交易"
    assert manager.get_state().cash == 2000


def test_import_rebuilds_missing_stock_history(manager):
    payload = json.loads(manager.export_save())
    payload["state"]["stock_history"] = []
    assert manager.import_save(json.dumps(payload))
    state = manager.get_state()
    assert all(len(candles) == 25 for candles in state.stock_history)
    assert [candles[-1].close for candles in state.stock_history] == state.stock_prices


def test_reset_keeps_settings(manager):
    manager.set_player_name("老王")
    manager.toggle_hacking()
    manager.toggle_sound()
    manager.buy_good(0, 3)

    manager.reset_game()
    state = manager.get_state()
    assert state.player_name == "老王"
    assert state.hacking_enabled
    assert not state.sound_enabled
    assert state.total_items() == 0
    assert state.cash == 2000


def test_new_game_is_tracked(manager, analytics):
    manager.new_game()
    assert analytics.events[-1] == ("game_start", {"has_save": 0})
    manager.new_game()
    assert analytics.events[-1] == ("game_start", {"has_save": 1})


# ==================== Travel & sounds ====================

def test_travel_within_city(manager):
    # quiet games start at location 1
    assert manager.travel(BEIJING_LOCATIONS[1]).error == "你已经在这里了"

    result = manager.travel(BEIJING_LOCATIONS[0])
    assert result.success
    assert result.value == []
    state = manager.get_state()
    assert state.cash == 1998
    assert state.time_left == 39
    assert manager.audio.played == ["door_close"]


def test_flight_to_shanghai(manager):
    assert manager.travel_cost(SHANGHAI_LOCATIONS[0]) == 500
    assert manager.travel(SHANGHAI_LOCATIONS[0]).success
    assert manager.get_state().cash == 1500
    assert manager.audio.played == ["airport", "door_close"]


def test_travel_needs_fare(manager):
    manager.set_state(cash=100)
    result = manager.travel(SHANGHAI_LOCATIONS[0])
    assert result.error == "现金不足！需要¥500，你只有¥100"
    assert manager.get_state().time_left == 40


def test_no_travel_after_game_over(manager):
    manager.set_state(time_left=0)
    assert manager.travel(BEIJING_LOCATIONS[0]).error == "游戏已经结束"


def test_last_turn_tracks_game_over(manager, analytics):
    manager.set_state(time_left=1)
    result = manager.travel(BEIJING_LOCATIONS[0])
    assert result.value[-1].data["reason"] == "time"
    assert manager.is_game_over()
    name, params = analytics.events[-1]
    assert name == "game_over"
    assert params["score"] == manager.calculate_score()
    assert params["time_left"] == 0


def test_action_sounds(manager):
    manager.buy_good(0, 2)
    manager.sell_good(0, 1)
    manager.deposit_bank(100)
    manager.set_state(health=90)
    manager.set_state(cash=10_000)
    manager.visit_hospital(1)
    assert manager.audio.played == ["buy", "sell", "money", "hos"]


def test_sound_toggle_silences_audio(manager):
    assert manager.toggle_sound() is False
    assert manager.audio.enabled is False
    manager.buy_good(0, 1)
    assert manager.audio.played == []
    assert manager.toggle_sound() is True


def test_play_event_sounds(manager):
    manager.set_state(health=20, debt=200_000, time_left=20)
    events = manager.change_location(BEIJING_LOCATIONS[0])
    manager.play_event_sounds(events)
    assert manager.audio.played == ["door_close", "hos", "kill", "death"]


def test_broken_audio_does_not_break_actions(quiet_engine):
    manager = GameStateManager(engine=quiet_engine, audio=Broken())
    assert manager.buy_good(0, 1).success
    assert manager.travel(BEIJING_LOCATIONS[0]).success


# ==================== Settings ====================

def test_player_name_is_trimmed_and_cut():
    manager = GameStateManager()
    assert manager.set_player_name("  张三李四王五赵六钱七  ") == "张三李四王五赵六"
    assert manager.get_state().player_name == "张三李四王五赵六"


def test_player_name_counts_graphemes():
    manager = GameStateManager()
    family = "\U0001F468\u200d\U0001F469\u200d\U0001F467"
    assert manager.set_player_name(family * 10) == family * 8
    accented = "e\u0301"
    assert manager.set_player_name(accented * 9) == accented * 8


def test_toggle_hacking(manager):
    assert manager.toggle_hacking() is True
    assert manager.get_state().hacking_enabled
    assert manager.toggle_hacking() is False


def test_visit_wangba_range(manager):
    result = manager.visit_wangba(100, 200)
    assert result.value == 101
    assert manager.get_state().cash == 2000 - 15 + 101


# ==================== Leaderboard ====================

def test_submit_final_score(quiet_engine, analytics):
    board = FakeLeaderboard(record={"id": 7, "totalWealth": -3000})
    manager = GameStateManager(engine=quiet_engine, analytics=analytics, leaderboard=board)

    assert manager.submit_final_score() == {"id": 7, "totalWealth": -3000}
    assert board.submitted == [{
        "playerName": "无名小卒",
        "totalWealth": -3000,
        "cash": 2000,
        "bank": 0,
        "debt": 5000,
        "health": 100,
        "fame": 100,
    }]
    assert analytics.events[-1] == ("score_submitted", {"total_wealth": -3000})


def test_rejected_score_is_tracked(quiet_engine, analytics):
    manager = GameStateManager(engine=quiet_engine, analytics=analytics, leaderboard=FakeLeaderboard())
    manager.set_player_name("阿强")
    assert manager.submit_final_score() is None
    assert manager.leaderboard.submitted[0]["playerName"] == "阿强"
    assert analytics.names()[-1] == "score_submit_failed"


def test_broken_leaderboard(quiet_engine, analytics):
    manager = GameStateManager(engine=quiet_engine, analytics=analytics, leaderboard=Broken())
    assert manager.submit_final_score() is None
    assert manager.fetch_leaderboard() is None
    assert analytics.names()[-1] == "score_submit_failed"


def test_fetch_leaderboard(quiet_engine):
    items = [{"playerName": "A", "totalWealth": 10}]
    manager = GameStateManager(engine=quiet_engine, leaderboard=FakeLeaderboard(items=items))
    assert manager.fetch_leaderboard() == items


def test_no_collaborators():
    manager = GameStateManager(leaderboard=None, analytics=None)
    assert manager.submit_final_score() is None
    assert manager.fetch_leaderboard() is None
