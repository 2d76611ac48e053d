"""Typed failures raised by the textile ledger.

Every error is scoped to the single requested operation: by the time the
caller sees one, the enclosing transaction has been rolled back.
"""

from dataclasses import dataclass
from typing import List


class TextileLedgerError(Exception):
    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "detail": str(self)}


@dataclass(frozen=True)
class Shortage:
    item_type: str
    color: str
    required: int
    available: int

    def to_dict(self) -> dict:
        return {
            "item_type": self.item_type,
            "color": self.color,
            "required": int(self.required),
            "available": int(self.available),
        }


class InsufficientStockError(TextileLedgerError):
    """Check-in pre-validation found lines the source can't cover."""

    def __init__(self, location: str, shortages: List[Shortage]):
        self.location = location
        self.shortages = list(shortages)
        lines = ", ".join(f"{s.item_type}/{s.color}: need {s.required}, have {s.available}" for s in self.shortages)
        super().__init__(f"Not enough stock in {location}: {lines}")

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["location"] = self.location
        out["shortages"] = [s.to_dict() for s in self.shortages]
        return out


class NegativeBalanceError(TextileLedgerError):
    """An adjustment would have driven a stock entry below zero."""

    def __init__(self, location: str, item_type: str, color: str, current: int, delta: int):
        self.location = location
        self.item_type = item_type
        self.color = color
        self.current = int(current)
        self.delta = int(delta)
        super().__init__(
            f"Cannot adjust {item_type}/{color} in {location} by {self.delta}: "
            f"current quantity is {self.current}"
        )

    def to_dict(self) -> dict:
        out = super().to_dict()
        out.update(
            {
                "location": self.location,
                "item_type": self.item_type,
                "color": self.color,
                "current": self.current,
                "delta": self.delta,
            }
        )
        return out


class UnknownLocationOrItemError(TextileLedgerError):
    """Malformed input: unknown item type, color, or location."""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Unknown {field}: {value!r}")

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["field"] = self.field
        out["value"] = None if self.value is None else str(self.value)
        return out


class EmptyRequestError(TextileLedgerError):
    """The operation would move nothing at all."""


class InvalidQuantityError(TextileLedgerError):
    """A count or quantity outside the range the operation accepts."""

    def __init__(self, field: str, value, expected: str):
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(f"Invalid {field}: {value!r} (expected {expected})")

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["field"] = self.field
        out["value"] = self.value
        return out
