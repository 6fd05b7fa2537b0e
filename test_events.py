"""Event tables"""

from catalog import GOOD_COUNT, STOCK_COUNT
from events import COMMERCIAL_EVENTS, EVENT_COUNTS, HEALTH_EVENTS, STOCK_EVENTS, THEFT_EVENTS, validate_events


def test_table_sizes():
    assert EVENT_COUNTS == {"commercial": 18, "stock": 10, "health": 12, "theft": 7}


def test_tables_validate():
    assert validate_events()


def test_commercial_events_target_real_goods():
    for event in COMMERCIAL_EVENTS:
        assert 0 <= event.good_id < GOOD_COUNT
        assert event.freq > 0
        assert event.plus or event.minus or event.add


def test_only_one_commercial_event_adds_debt():
    debt_events = [e for e in COMMERCIAL_EVENTS if e.extra_debt]
    assert len(debt_events) == 1
    assert debt_events[0].extra_debt == 2500


def test_every_stock_has_an_event():
    assert sorted(e.stock_id for e in STOCK_EVENTS) == list(range(STOCK_COUNT))


def test_health_events_have_sounds():
    assert all(e.sound for e in HEALTH_EVENTS)


def test_bank_thefts():
    assert [i for i, e in enumerate(THEFT_EVENTS) if e.targets_bank] == [4, 5]
