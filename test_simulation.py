"""Balance simulation: scripted games and statistics"""

from models import EventType
from simulation import SimulationSettings, calc_stats, compute_detailed_stats, run_monte_carlo, run_one_game


def test_single_game_is_reproducible():
    assert run_one_game(17) == run_one_game(17)


def test_single_game_finishes():
    result = run_one_game(3)
    assert result["outcome"] in ("time", "death", "stranded")
    assert 0 < result["turns"] <= 40
    assert 0 <= result["health"] <= 100
    assert 100 <= result["capacity"] <= 140
    for event_type in EventType:
        assert result[f"events_{event_type.value}"] >= 0


def test_games_that_run_out_of_time_are_fully_liquidated():
    for seed in range(5):
        result = run_one_game(seed)
        if result["outcome"] == "time":
            assert result["events_game_over"] == 1
            # stocks are sold too, so the score is plain money
            assert result["score"] == result["cash"] + result["bank"] - result["debt"]


def test_no_hacker_events_without_hacking():
    results = run_monte_carlo(5, SimulationSettings(hacking_enabled=False))["results"]
    assert all(r["events_hacker"] == 0 for r in results)


def test_no_stock_events_when_market_closed():
    results = run_monte_carlo(5, SimulationSettings(stocks_enabled=False))["results"]
    assert all(r["events_stock"] == 0 for r in results)


def test_monte_carlo_summary():
    summary = run_monte_carlo(6, seed_offset=100)
    assert summary["n"] == 6
    assert [r["seed"] for r in summary["results"]] == list(range(100, 106))
    assert 0.0 <= summary["win_rate"] <= 1.0


def test_calc_stats():
    stats = calc_stats([1, 2, 3, 4, 5])
    assert stats["count"] == 5
    assert stats["mean"] == 3.0
    assert stats["median"] == 3.0
    assert stats["min"] == 1.0 and stats["max"] == 5.0
    assert stats["skew"] == 0.0
    assert calc_stats([]) is None


def test_detailed_stats():
    results = run_monte_carlo(8)["results"]
    detailed = compute_detailed_stats(results)
    assert detailed["n"] == 8
    assert detailed["wins"] + detailed["losses"] == 8
    assert 0.0 <= detailed["win_rate"] <= 100.0
    assert sum(detailed["outcomes"].values()) == 8
    assert "theft" in detailed["event_frequencies"]
    assert "hacker" in detailed["event_frequencies"]
    assert detailed["score_stats"]["count"] == 8
    assert compute_detailed_stats([]) is None
