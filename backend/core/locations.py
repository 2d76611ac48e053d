"""
Locations textile stock can sit in.

`Warehouse`, `Laundry` and `Unit(code)` are distinct types so an illegal
location can't be built; storage still keys rows by the plain string
returned from `.key`.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union

from core.errors import UnknownLocationOrItemError

WAREHOUSE_KEY = "warehouse"
LAUNDRY_KEY = "laundry"
RESERVED_KEYS = frozenset({WAREHOUSE_KEY, LAUNDRY_KEY})


@dataclass(frozen=True)
class Warehouse:
    @property
    def key(self) -> str:
        return WAREHOUSE_KEY


@dataclass(frozen=True)
class Laundry:
    @property
    def key(self) -> str:
        return LAUNDRY_KEY


@dataclass(frozen=True)
class Unit:
    code: str

    def __post_init__(self):
        code = (self.code or "").strip()
        if not code or code.lower() in RESERVED_KEYS:
            raise UnknownLocationOrItemError("unit_code", self.code)
        object.__setattr__(self, "code", code)

    @property
    def key(self) -> str:
        return self.code


Location = Union[Warehouse, Laundry, Unit]

WAREHOUSE = Warehouse()
LAUNDRY = Laundry()


def parse_location(value: str, allowed_units: Optional[Iterable[str]] = None) -> Location:
    """Turn a stored key back into a Location.

    `allowed_units`, when non-empty, restricts which unit codes are valid.
    """
    raw = (value or "").strip()
    if raw.lower() == WAREHOUSE_KEY:
        return WAREHOUSE
    if raw.lower() == LAUNDRY_KEY:
        return LAUNDRY
    unit = Unit(raw)
    allowed = list(allowed_units or [])
    if allowed and unit.code not in allowed:
        raise UnknownLocationOrItemError("unit_code", raw)
    return unit


def is_unit(key: str) -> bool:
    return key not in RESERVED_KEYS
