"""
Static catalogs: tradeable goods, stocks and the 20 subway/flight locations.
"""

from dataclasses import dataclass
from typing import List, Optional

BEIJING = "beijing"
SHANGHAI = "shanghai"
CITIES = (BEIJING, SHANGHAI)

GOOD_COUNT = 8
STOCK_COUNT = 10


@dataclass(frozen=True)
class GoodInfo:
    id: int
    name: str
    min_price: int  # inclusive
    max_price: int  # exclusive: the market never quotes max_price itself


@dataclass(frozen=True)
class StockInfo:
    id: int
    name: str
    start_min: int
    start_max: int
    min_price: int  # hard clamp
    max_price: int  # hard clamp
    daily_volatility: float
    jump_chance: float
    jump_min: float
    jump_max: float


@dataclass(frozen=True)
class Location:
    id: int
    name: str
    city: str


GOODS: List[GoodInfo] = [
    GoodInfo(0, "古董瓷器", 100, 450),
    GoodInfo(1, "走私电器", 15000, 30000),
    GoodInfo(2, "盗版A片", 5, 55),
    GoodInfo(3, "劣质假酒", 1000, 3500),
    GoodInfo(4, "上海小宝贝", 5000, 14000),
    GoodInfo(5, "仿爱马仕", 250, 850),
    GoodInfo(6, "越南翡翠手镯", 750, 1500),
    GoodInfo(7, "印度神油", 65, 245),
]

# Selling these goods costs reputation regardless of quantity
FAME_PENALTIES = {
    3: 10,
    4: 7,
}

STOCKS: List[StockInfo] = [
    StockInfo(0, "京华地产", 20, 40, 3, 300, 0.05, 0.04, 0.10, 0.25),
    StockInfo(1, "浦江银行", 8, 15, 2, 80, 0.03, 0.02, 0.05, 0.15),
    StockInfo(2, "华夏芯片", 30, 60, 5, 500, 0.08, 0.06, 0.15, 0.35),
    StockInfo(3, "神州汽车", 15, 30, 3, 200, 0.05, 0.03, 0.10, 0.20),
    StockInfo(4, "东海航运", 10, 20, 2, 150, 0.06, 0.04, 0.10, 0.25),
    StockInfo(5, "燕山酒业", 80, 150, 20, 900, 0.04, 0.02, 0.08, 0.18),
    StockInfo(6, "申城医药", 25, 50, 4, 400, 0.07, 0.05, 0.12, 0.30),
    StockInfo(7, "中原煤业", 5, 12, 1, 60, 0.04, 0.03, 0.08, 0.20),
    StockInfo(8, "南方传媒", 12, 25, 2, 180, 0.06, 0.04, 0.10, 0.28),
    StockInfo(9, "星海游戏", 40, 90, 5, 800, 0.10, 0.08, 0.20, 0.45),
]

BEIJING_LOCATIONS: List[Location] = [
    Location(0, "建国门", BEIJING),
    Location(1, "北京站", BEIJING),
    Location(2, "西直门", BEIJING),
    Location(3, "崇文门", BEIJING),
    Location(4, "东直门", BEIJING),
    Location(5, "复兴门", BEIJING),
    Location(6, "积水潭", BEIJING),
    Location(7, "长春街", BEIJING),
    Location(8, "公主坟", BEIJING),
    Location(9, "苹果园", BEIJING),
]

SHANGHAI_LOCATIONS: List[Location] = [
    Location(10, "东方明珠", SHANGHAI),
    Location(11, "浦东新区", SHANGHAI),
    Location(12, "外滩", SHANGHAI),
    Location(13, "南京路", SHANGHAI),
    Location(14, "人民广场", SHANGHAI),
    Location(15, "徐家汇", SHANGHAI),
    Location(16, "静安寺", SHANGHAI),
    Location(17, "虹桥", SHANGHAI),
    Location(18, "陆家嘴", SHANGHAI),
    Location(19, "豫园", SHANGHAI),
]

ALL_LOCATIONS: List[Location] = BEIJING_LOCATIONS + SHANGHAI_LOCATIONS


def get_location(location_id: int) -> Optional[Location]:
    if 0 <= location_id < len(ALL_LOCATIONS):
        return ALL_LOCATIONS[location_id]
    return None


def locations_in(city: str) -> List[Location]:
    return [loc for loc in ALL_LOCATIONS if loc.city == city]
