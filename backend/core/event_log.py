"""
Append-only movement log.

Events are written inside the same transaction as the stock writes they
describe and are never updated or deleted. `replay` rebuilds balances
from the stream so it can be checked against the live ledger.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.catalog import SET_EVENT_TYPES, EventType, LineItem
from db.textile.event import TextileEvent


class EventLog:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        event_type: EventType,
        items: Sequence[LineItem],
        created_by: str,
        from_location: Optional[str] = None,
        to_location: Optional[str] = None,
        related_unit_code: Optional[str] = None,
        notes: Optional[str] = None,
        event_id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> TextileEvent:
        ev = TextileEvent(
            id=event_id or uuid.uuid4(),
            event_type=EventType(event_type).value,
            from_location=from_location,
            to_location=to_location,
            items=[li.to_dict() for li in items],
            related_unit_code=related_unit_code,
            notes=notes,
            created_by=created_by,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.db.add(ev)
        await self.db.flush()
        return ev

    async def list(self, limit: int = 50, location: Optional[str] = None) -> List[TextileEvent]:
        """Most recent first. `location` matches either side of a movement."""
        stmt = select(TextileEvent)
        if location:
            stmt = stmt.where(
                or_(TextileEvent.from_location == location, TextileEvent.to_location == location)
            )
        stmt = stmt.order_by(TextileEvent.created_at.desc()).limit(limit)
        res = await self.db.execute(stmt)
        return list(res.scalars().all())

    async def all_in_order(self) -> List[TextileEvent]:
        res = await self.db.execute(select(TextileEvent).order_by(TextileEvent.created_at.asc()))
        return list(res.scalars().all())


def replay(events: Iterable[TextileEvent]) -> Dict[str, Dict[str, int]]:
    """Rebuild {location: {"{item_type}_{color}": quantity}} from oldest-first events.

    Set-events (init_stock, adjustment) assign the quantity at `to_location`;
    every other event moves it from `from_location` to `to_location`.
    """
    balances: Dict[str, Dict[str, int]] = {}

    def _bucket(loc: str) -> Dict[str, int]:
        return balances.setdefault(loc, {})

    for ev in events:
        event_type = EventType(ev.event_type)
        for raw in ev.items or []:
            li = LineItem.from_dict(raw)
            if event_type in SET_EVENT_TYPES:
                _bucket(ev.to_location)[li.key] = li.quantity
                continue
            src = _bucket(ev.from_location)
            dst = _bucket(ev.to_location)
            src[li.key] = src.get(li.key, 0) - li.quantity
            dst[li.key] = dst.get(li.key, 0) + li.quantity
    return balances
