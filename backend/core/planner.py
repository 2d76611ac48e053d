"""
Check-in planner.

Turns a guest-facing request (bedding sets per color, towel sets, robes)
into the physical line items that leave the warehouse:

- bedding set of color c  -> 1 sheet, 1 duvet cover, 2 pillowcases (all c)
- towel set               -> 2 large + 2 small towels (grey)
- robe                    -> 1 robe (grey)

Pure: no I/O, no state.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from core.catalog import Color, ItemType, LineItem, parse_color

TOWEL_COLOR = Color.GREY
ROBE_COLOR = Color.GREY

BEDDING_PER_SET: Tuple[Tuple[ItemType, int], ...] = (
    (ItemType.SHEETS, 1),
    (ItemType.DUVET_COVERS, 1),
    (ItemType.PILLOWCASES, 2),
)
TOWELS_PER_SET: Tuple[Tuple[ItemType, int], ...] = (
    (ItemType.TOWELS_LARGE, 2),
    (ItemType.TOWELS_SMALL, 2),
)


@dataclass(frozen=True)
class BeddingSet:
    color: Color
    count: int

    @classmethod
    def parse(cls, color, count) -> "BeddingSet":
        return cls(parse_color(color), int(count))

    def to_dict(self) -> dict:
        return {"color": self.color.value, "count": int(self.count)}


class CheckInPlanner:
    @staticmethod
    def expand(bedding_sets: Iterable[BeddingSet], towel_sets: int = 0, robes: int = 0) -> List[LineItem]:
        # insertion-ordered; repeated bedding colors add up, distinct colors stay apart
        totals: Dict[Tuple[ItemType, Color], int] = {}

        def _add(item_type: ItemType, color: Color, qty: int) -> None:
            if qty <= 0:
                return
            k = (item_type, color)
            totals[k] = totals.get(k, 0) + qty

        for bs in bedding_sets:
            n = int(bs.count)
            for item_type, per_set in BEDDING_PER_SET:
                _add(item_type, bs.color, n * per_set)

        n_towels = int(towel_sets or 0)
        for item_type, per_set in TOWELS_PER_SET:
            _add(item_type, TOWEL_COLOR, n_towels * per_set)

        _add(ItemType.ROBES, ROBE_COLOR, int(robes or 0))

        return [LineItem(t, c, q) for (t, c), q in totals.items()]


@dataclass(frozen=True)
class CheckInRequest:
    unit_code: str
    bedding_sets: Tuple[BeddingSet, ...] = ()
    towel_sets: int = 0
    robes: int = 0
    notes: Optional[str] = None

    def expand(self) -> List[LineItem]:
        return CheckInPlanner.expand(self.bedding_sets, self.towel_sets, self.robes)
