"""Goods price generation and formatting"""

from catalog import GOODS
from prices import PriceGenerator
from rng import RandomProvider


def test_prices_stay_in_catalog_range():
    generator = PriceGenerator(RandomProvider(seed=7))
    for _ in range(500):
        prices = generator.generate_prices(3)
        assert len(prices) == 8
        for price, good in zip(prices, GOODS):
            assert price == 0 or good.min_price <= price <= good.max_price - 1


def test_leaveout_hides_at_most_n_goods():
    generator = PriceGenerator(RandomProvider(seed=11))
    for _ in range(200):
        prices = generator.generate_prices(3)
        assert 1 <= prices.count(0) <= 3


def test_no_leaveout_shows_everything():
    generator = PriceGenerator(RandomProvider(seed=3))
    for _ in range(200):
        assert 0 not in generator.generate_prices(0)


def test_scripted_draws(scripted_rng):
    # price draws first (offset from min), then leaveout slots
    rng = scripted_rng(ints=[0, 10, 0, 0, 0, 0, 0, 0, 2, 2, 5])
    prices = PriceGenerator(rng).generate_prices(3)
    assert prices == [100, 15010, 0, 1000, 5000, 0, 750, 65]


def test_multiply_and_divide_skip_unavailable_goods():
    prices = [100, 0, 6, 1000, 5000, 250, 750, 65]
    assert PriceGenerator.multiply_price(prices, 0, 3)[0] == 300
    assert PriceGenerator.multiply_price(prices, 1, 3)[1] == 0
    assert PriceGenerator.divide_price(prices, 2, 8)[2] == 1
    assert PriceGenerator.divide_price(prices, 3, 3)[3] == 333
    assert PriceGenerator.divide_price(prices, 1, 3)[1] == 0
    # input list is not modified
    assert prices[0] == 100


def test_format_price():
    assert PriceGenerator.format_price(0) == "无货"
    assert PriceGenerator.format_price(999) == "¥999"
    assert PriceGenerator.format_price(1234) == "¥1,234"
    assert PriceGenerator.format_price(20000) == "¥2万"
    assert PriceGenerator.format_price(15500) == "¥1.5万"


def test_validate_prices():
    assert PriceGenerator.validate_prices([100, 0, 6, 1000, 5000, 250, 750, 65])
    assert not PriceGenerator.validate_prices([100, 200])
