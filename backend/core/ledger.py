"""
Stock ledger: current quantity per (location, item_type, color).

No business rules live here beyond non-negativity. The ledger never
commits; the caller owns the transaction, so several adjustments can be
grouped into one atomic movement.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from core.catalog import Color, ItemType
from core.errors import NegativeBalanceError
from core.locations import Location
from db.textile.stock import TextileStock

logger = structlog.get_logger(__name__)

StockKey = Tuple[str, str, str]  # (location, item_type, color)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_key(location: Location, item_type: ItemType, color: Color) -> StockKey:
    return (location.key, item_type.value, color.value)


class StockLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, location: Location, include_zero: bool = True) -> List[TextileStock]:
        stmt = select(TextileStock).where(TextileStock.location == location.key)
        if not include_zero:
            stmt = stmt.where(TextileStock.quantity > 0)
        res = await self.db.execute(
            stmt.order_by(TextileStock.item_type, TextileStock.color).execution_options(populate_existing=True)
        )
        return list(res.scalars().all())

    async def get_all(self, include_zero: bool = True) -> List[TextileStock]:
        stmt = select(TextileStock)
        if not include_zero:
            stmt = stmt.where(TextileStock.quantity > 0)
        res = await self.db.execute(
            stmt.order_by(TextileStock.location, TextileStock.item_type, TextileStock.color)
            .execution_options(populate_existing=True)
        )
        return list(res.scalars().all())

    async def quantity(self, location: Location, item_type: ItemType, color: Color) -> int:
        row = await self._find(make_key(location, item_type, color))
        return int(row.quantity) if row else 0

    async def lock(self, keys: Iterable[StockKey], create_missing: bool = True) -> Dict[StockKey, TextileStock]:
        """Row-lock every key for the rest of the transaction.

        Keys are locked in sorted order so two operations touching
        overlapping keys queue up instead of deadlocking. Missing rows are
        created at quantity 0 first (only rows that exist can be locked).
        """
        wanted = sorted(set(keys))
        if not wanted:
            return {}
        if create_missing:
            await self._ensure_rows(wanted)

        cond = or_(
            *[
                and_(
                    TextileStock.location == loc,
                    TextileStock.item_type == it,
                    TextileStock.color == col,
                )
                for (loc, it, col) in wanted
            ]
        )
        stmt = (
            select(TextileStock)
            .where(cond)
            .order_by(TextileStock.location, TextileStock.item_type, TextileStock.color)
            .with_for_update()
            # rows already in the identity map must reflect the locked read
            .execution_options(populate_existing=True)
        )
        res = await self.db.execute(stmt)
        return {(r.location, r.item_type, r.color): r for r in res.scalars().all()}

    async def set(
        self,
        location: Location,
        item_type: ItemType,
        color: Color,
        quantity: int,
        actor: str,
    ) -> TextileStock:
        quantity = int(quantity)
        key = make_key(location, item_type, color)
        if quantity < 0:
            current = await self.quantity(location, item_type, color)
            raise NegativeBalanceError(key[0], key[1], key[2], current, quantity - current)

        row = (await self.lock([key])).get(key)
        row.quantity = quantity
        row.updated_by = actor
        row.updated_at = _utcnow()
        await self.db.flush()
        return row

    async def adjust_by(
        self,
        location: Location,
        item_type: ItemType,
        color: Color,
        delta: int,
        actor: str,
    ) -> TextileStock:
        delta = int(delta)
        key = make_key(location, item_type, color)
        row = (await self.lock([key], create_missing=False)).get(key)
        current = int(row.quantity) if row else 0
        new_qty = current + delta
        if new_qty < 0:
            logger.warning(
                "Rejected stock adjustment",
                location=key[0],
                item_type=key[1],
                color=key[2],
                current=current,
                delta=delta,
            )
            raise NegativeBalanceError(key[0], key[1], key[2], current, delta)

        if row is None:
            row = (await self.lock([key])).get(key)
        row.quantity = new_qty
        row.updated_by = actor
        row.updated_at = _utcnow()
        await self.db.flush()
        return row

    async def _find(self, key: StockKey) -> Optional[TextileStock]:
        loc, it, col = key
        res = await self.db.execute(
            select(TextileStock).where(
                TextileStock.location == loc,
                TextileStock.item_type == it,
                TextileStock.color == col,
            )
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def _ensure_rows(self, keys: List[StockKey]) -> None:
        dialect = self.db.get_bind().dialect.name
        make_insert = _UPSERT_INSERTS.get(dialect)
        if make_insert is None:
            # generic fallback: insert whatever isn't there yet
            for key in keys:
                if await self._find(key) is None:
                    self.db.add(self._new_row(key))
            await self.db.flush()
            return

        now = _utcnow()
        stmt = (
            make_insert(TextileStock.__table__)
            .values(
                [
                    {
                        "id": uuid.uuid4(),
                        "location": loc,
                        "item_type": it,
                        "color": col,
                        "quantity": 0,
                        "updated_at": now,
                    }
                    for (loc, it, col) in keys
                ]
            )
            .on_conflict_do_nothing(index_elements=["location", "item_type", "color"])
        )
        await self.db.execute(stmt)

    @staticmethod
    def _new_row(key: StockKey) -> TextileStock:
        loc, it, col = key
        return TextileStock(
            id=uuid.uuid4(),
            location=loc,
            item_type=it,
            color=col,
            quantity=0,
            updated_at=_utcnow(),
        )
