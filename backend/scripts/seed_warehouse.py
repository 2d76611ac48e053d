"""
Seed warehouse textile stock.

This script:
- Sets absolute warehouse quantities for every bedding color plus grey towels/robes.
- Logs one init_stock event (administrative reset; run against an empty warehouse).

Run inside docker (recommended):
  docker exec -i textile-api sh -lc "cd /app && PYTHONPATH=/app uv run python scripts/seed_warehouse.py"

Optional env vars:
- SEED_ACTOR (default: seed-script)
- BEDDING_SETS_PER_COLOR (default: 6)
- BEDDING_COLORS (default: white,beige,green,grey)
- TOWEL_SETS (default: 12)
- ROBES (default: 8)
- MATTRESS_COVERS (default: 4)
"""

from __future__ import annotations

import asyncio
import os
from typing import List

from core.catalog import Color, ItemType, LineItem, parse_color
from core.movements import MovementEngine
from core.planner import BeddingSet, CheckInPlanner
from db.database import async_session_maker, create_db_and_tables


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)).strip())
    except Exception:
        return default


def build_seed_items() -> List[LineItem]:
    per_color = _env_int("BEDDING_SETS_PER_COLOR", 6)
    colors = [c.strip() for c in os.getenv("BEDDING_COLORS", "white,beige,green,grey").split(",") if c.strip()]

    # stock sized in guest-facing sets, expanded with the same ratios check-in uses
    items = CheckInPlanner.expand(
        [BeddingSet(parse_color(c), per_color) for c in colors],
        towel_sets=_env_int("TOWEL_SETS", 12),
        robes=_env_int("ROBES", 8),
    )
    mattress = _env_int("MATTRESS_COVERS", 4)
    if mattress > 0:
        items.append(LineItem(ItemType.MATTRESS_COVERS, Color.WHITE, mattress))
    return items


async def main(session_maker=None) -> None:
    actor = os.getenv("SEED_ACTOR", "seed-script")
    items = build_seed_items()

    if session_maker is None:
        await create_db_and_tables()
        session_maker = async_session_maker

    async with session_maker() as db:
        ev = await MovementEngine(db).init_warehouse_stock(items, actor)

    total = sum(li.quantity for li in items)
    print(f"Warehouse seeded. Lines: {len(items)}. Items: {total}. Event: {ev.id}")


if __name__ == "__main__":
    asyncio.run(main())
