"""
Textile catalog: what can be counted and how a counted line looks.

Stock is keyed by (location, item_type, color). Towels and robes are
always grey; bedding color is chosen per request.
"""

from dataclasses import dataclass
from enum import Enum

from core.errors import UnknownLocationOrItemError


class ItemType(str, Enum):
    SHEETS = "sheets"
    DUVET_COVERS = "duvet_covers"
    PILLOWCASES = "pillowcases"
    TOWELS_LARGE = "towels_large"
    TOWELS_SMALL = "towels_small"
    ROBES = "robes"
    MATTRESS_COVERS = "mattress_covers"


class Color(str, Enum):
    WHITE = "white"
    BEIGE = "beige"
    GREEN = "green"
    GREY = "grey"


class EventType(str, Enum):
    INIT_STOCK = "init_stock"
    CHECK_IN = "check_in"
    MARK_DIRTY = "mark_dirty"
    MARK_CLEAN = "mark_clean"
    ADJUSTMENT = "adjustment"


# Event types that assign absolute quantities instead of moving them.
SET_EVENT_TYPES = frozenset({EventType.INIT_STOCK, EventType.ADJUSTMENT})


def parse_item_type(value) -> ItemType:
    if isinstance(value, ItemType):
        return value
    try:
        return ItemType(str(value).strip())
    except ValueError:
        raise UnknownLocationOrItemError("item_type", value) from None


def parse_color(value) -> Color:
    if isinstance(value, Color):
        return value
    try:
        return Color(str(value).strip())
    except ValueError:
        raise UnknownLocationOrItemError("color", value) from None


def stock_key(item_type: ItemType, color: Color) -> str:
    return f"{item_type.value}_{color.value}"


@dataclass(frozen=True)
class LineItem:
    item_type: ItemType
    color: Color
    quantity: int

    @classmethod
    def parse(cls, item_type, color, quantity) -> "LineItem":
        return cls(parse_item_type(item_type), parse_color(color), int(quantity))

    @property
    def key(self) -> str:
        return stock_key(self.item_type, self.color)

    def to_dict(self) -> dict:
        return {"item_type": self.item_type.value, "color": self.color.value, "quantity": int(self.quantity)}

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        return cls.parse(data.get("item_type"), data.get("color"), data.get("quantity", 0))
