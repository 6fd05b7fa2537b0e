"""
Core data types for the trading simulation (pure data, no behaviour beyond
(de)serialisation and small helpers).
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from catalog import BEIJING, GOOD_COUNT, STOCK_COUNT, Location


# ==================== Enums ====================

class EventType(Enum):
    """Kinds of event descriptors returned by a turn"""
    COMMERCIAL = "commercial"
    STOCK = "stock"
    HEALTH = "health"
    AUTO_HOSPITAL = "auto_hospital"
    THEFT = "theft"
    DEBT_PENALTY = "debt_penalty"
    WARNING = "warning"
    GAME_OVER = "game_over"


# ==================== Data Classes ====================

@dataclass
class InventoryItem:
    """One of the 8 fixed inventory slots (slot index == good id)"""
    good_id: int = -1  # -1 while the slot is empty
    quantity: int = 0
    avg_price: int = 0

    def clear(self):
        self.good_id = -1
        self.quantity = 0
        self.avg_price = 0


@dataclass
class StockHolding:
    shares: int = 0
    avg_price: int = 0


@dataclass
class StockCandle:
    open: int
    high: int
    low: int
    close: int


@dataclass
class GameEvent:
    """Event descriptor shown to the player, one modal at a time"""
    type: EventType
    message: str
    sound: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Result:
    """Tagged success/failure for player actions"""
    success: bool
    value: Any = None
    error: str = ""

    def __bool__(self):
        return self.success


def ok(value: Any = None) -> Result:
    return Result(success=True, value=value)


def err(message: str) -> Result:
    return Result(success=False, error=message)


def _empty_inventory() -> List[InventoryItem]:
    return [InventoryItem() for _ in range(GOOD_COUNT)]


def _empty_holdings() -> List[StockHolding]:
    return [StockHolding() for _ in range(STOCK_COUNT)]


@dataclass
class GameState:
    """Complete game state (pure data, no UI)"""
    # Finance
    cash: int = 0
    debt: int = 0
    bank: int = 0

    # Character
    health: int = 100
    fame: int = 100

    # Inventory
    inventory: List[InventoryItem] = field(default_factory=_empty_inventory)
    capacity: int = 100

    # World
    current_location: Optional[Location] = None
    city: str = BEIJING
    time_left: int = 40

    # Market
    market_prices: List[int] = field(default_factory=lambda: [0] * GOOD_COUNT)

    # Stock market
    stock_prices: List[int] = field(default_factory=list)
    stock_holdings: List[StockHolding] = field(default_factory=_empty_holdings)
    stock_history: List[List[StockCandle]] = field(default_factory=list)

    # Flags & counters
    sound_enabled: bool = True
    hacking_enabled: bool = False
    wangba_visits: int = 0
    player_name: str = ""

    def total_items(self) -> int:
        return sum(item.quantity for item in self.inventory)

    def free_capacity(self) -> int:
        return self.capacity - self.total_items()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """Rebuild a state from ``to_dict`` output (e.g. a JSON save)"""
        location = data.get("current_location")
        defaults = cls()
        return cls(
            cash=int(data["cash"]),
            debt=int(data["debt"]),
            bank=int(data["bank"]),
            health=int(data["health"]),
            fame=int(data["fame"]),
            inventory=[InventoryItem(**item) for item in data["inventory"]],
            capacity=int(data["capacity"]),
            current_location=Location(**location) if location else None,
            city=data.get("city", BEIJING),
            time_left=int(data["time_left"]),
            market_prices=[int(p) for p in data["market_prices"]],
            stock_prices=[int(p) for p in data.get("stock_prices", [])],
            stock_holdings=[StockHolding(**h) for h in data.get("stock_holdings", [])] or defaults.stock_holdings,
            stock_history=[
                [StockCandle(**candle) for candle in candles]
                for candles in data.get("stock_history", [])
            ],
            sound_enabled=bool(data.get("sound_enabled", True)),
            hacking_enabled=bool(data.get("hacking_enabled", False)),
            wangba_visits=int(data.get("wangba_visits", 0)),
            player_name=data.get("player_name", ""),
        )


# ==================== Helper Functions ====================

def clamp(x, a, b):
    """Clamp value between min and max"""
    return max(a, min(b, x))


def money(x):
    """Format an amount the way the Chinese UI does (¥1,234)"""
    return f"¥{x:,}"
