"""
Movement engine: the only way textile stock changes.

Each public operation runs as one transaction on the injected session:
lock every touched (location, item_type, color) row, validate, apply all
adjustments, append exactly one event, commit. Any failure rolls the
whole operation back, so a failed call leaves no stock change and no
event behind.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.catalog import Color, EventType, ItemType, LineItem, parse_color, parse_item_type, stock_key
from core.config import settings
from core.errors import (
    EmptyRequestError,
    InsufficientStockError,
    InvalidQuantityError,
    Shortage,
    UnknownLocationOrItemError,
)
from core.event_log import EventLog, replay
from core.ledger import StockKey, StockLedger, make_key
from core.locations import LAUNDRY, WAREHOUSE, Location, Unit, is_unit, parse_location
from core.planner import CheckInRequest
from db.textile.audit import TextileAudit
from db.textile.check_in import TextileCheckIn
from db.textile.event import TextileEvent
from db.textile.stock import TextileStock

logger = structlog.get_logger(__name__)

AUDIT_CONDITIONS = ("good", "worn", "damaged")
DEFAULT_ADJUSTMENT_NOTE = "Manual correction"


def _merge(items: Iterable[LineItem]) -> List[LineItem]:
    """Sum lines sharing (item_type, color), keeping first-seen order."""
    totals: Dict[Tuple[ItemType, Color], int] = {}
    for li in items:
        k = (li.item_type, li.color)
        totals[k] = totals.get(k, 0) + int(li.quantity)
    return [LineItem(t, c, q) for (t, c), q in totals.items()]


def _require_positive(items: Sequence[LineItem]) -> None:
    for li in items:
        if int(li.quantity) <= 0:
            raise InvalidQuantityError(f"quantity[{li.key}]", li.quantity, "> 0")


class MovementEngine:
    def __init__(self, db: AsyncSession, allowed_units: Optional[Sequence[str]] = None):
        self.db = db
        self.ledger = StockLedger(db)
        self.events = EventLog(db)
        self.allowed_units = list(settings.textile_units if allowed_units is None else allowed_units)

    @asynccontextmanager
    async def _transaction(self):
        # The session may already have autobegun (e.g. an earlier read on it),
        # so rely on that transaction and commit/rollback explicitly.
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    def _unit(self, unit_code: str) -> Unit:
        loc = parse_location(unit_code, self.allowed_units)
        if not isinstance(loc, Unit):
            raise UnknownLocationOrItemError("unit_code", unit_code)
        return loc

    def location(self, value: str) -> Location:
        return parse_location(value, self.allowed_units)

    # ------------------------------------------------------------------ writes

    async def init_warehouse_stock(self, items: Sequence[LineItem], actor: str) -> TextileEvent:
        """Seed absolute warehouse quantities (administrative reset)."""
        lines = _merge(items)
        if not lines:
            raise EmptyRequestError("No items to initialize")
        for li in lines:
            if li.quantity < 0:
                raise InvalidQuantityError(f"quantity[{li.key}]", li.quantity, ">= 0")

        async with self._transaction():
            await self.ledger.lock(make_key(WAREHOUSE, li.item_type, li.color) for li in lines)
            for li in lines:
                await self.ledger.set(WAREHOUSE, li.item_type, li.color, li.quantity, actor)
            ev = await self.events.append(
                EventType.INIT_STOCK,
                lines,
                created_by=actor,
                to_location=WAREHOUSE.key,
            )

        logger.info("Warehouse stock initialized", event_id=str(ev.id), line_count=len(lines), actor=actor)
        return ev

    async def check_in(self, request: CheckInRequest, actor: str) -> TextileCheckIn:
        """Move the textiles a guest arrival needs from the warehouse to a unit.

        Every required line is validated against the warehouse before any
        write; one short line rejects the whole check-in.
        """
        unit = self._unit(request.unit_code)
        for bs in request.bedding_sets:
            if int(bs.count) < 1:
                raise InvalidQuantityError(f"bedding_sets[{bs.color.value}].count", bs.count, ">= 1")
        if int(request.towel_sets or 0) < 0:
            raise InvalidQuantityError("towel_sets", request.towel_sets, ">= 0")
        if int(request.robes or 0) < 0:
            raise InvalidQuantityError("robes", request.robes, ">= 0")

        lines = request.expand()
        if not lines:
            raise EmptyRequestError(f"Check-in for {unit.code} needs no textiles")

        async with self._transaction():
            keys: List[StockKey] = []
            for li in lines:
                keys.append(make_key(WAREHOUSE, li.item_type, li.color))
                keys.append(make_key(unit, li.item_type, li.color))
            locked = await self.ledger.lock(keys)

            shortages: List[Shortage] = []
            for li in lines:
                row = locked.get(make_key(WAREHOUSE, li.item_type, li.color))
                available = int(row.quantity) if row else 0
                if li.quantity > available:
                    shortages.append(Shortage(li.item_type.value, li.color.value, li.quantity, available))
            if shortages:
                logger.warning(
                    "Check-in rejected: insufficient stock",
                    unit_code=unit.code,
                    shortages=[s.to_dict() for s in shortages],
                )
                raise InsufficientStockError(WAREHOUSE.key, shortages)

            for li in lines:
                await self.ledger.adjust_by(WAREHOUSE, li.item_type, li.color, -li.quantity, actor)
                await self.ledger.adjust_by(unit, li.item_type, li.color, li.quantity, actor)

            now = datetime.now(timezone.utc)
            check_in = TextileCheckIn(
                id=uuid.uuid4(),
                unit_code=unit.code,
                bedding_sets=[bs.to_dict() for bs in request.bedding_sets],
                towel_sets=int(request.towel_sets or 0),
                robes=int(request.robes or 0),
                notes=request.notes,
                created_by=actor,
                created_at=now,
            )
            self.db.add(check_in)
            await self.events.append(
                EventType.CHECK_IN,
                lines,
                created_by=actor,
                from_location=WAREHOUSE.key,
                to_location=unit.key,
                related_unit_code=unit.code,
                notes=request.notes,
                created_at=now,
            )

        logger.info("Textile check-in applied", unit_code=unit.code, line_count=len(lines), actor=actor)
        return check_in

    async def mark_dirty(self, unit_code: str, actor: str, notes: Optional[str] = None) -> Optional[TextileEvent]:
        """Send everything currently in a unit to the laundry.

        Returns None (and logs no event) when the unit holds nothing.
        """
        unit = self._unit(unit_code)

        async with self._transaction():
            present = await self.ledger.get(unit, include_zero=False)
            keys: List[StockKey] = []
            for row in present:
                keys.append((unit.key, row.item_type, row.color))
                keys.append((LAUNDRY.key, row.item_type, row.color))
            locked = await self.ledger.lock(keys)

            lines: List[LineItem] = []
            for row in present:
                current = locked.get((unit.key, row.item_type, row.color))
                qty = int(current.quantity) if current else 0
                if qty > 0:
                    lines.append(LineItem.parse(row.item_type, row.color, qty))

            if not lines:
                ev = None
            else:
                for li in lines:
                    await self.ledger.adjust_by(unit, li.item_type, li.color, -li.quantity, actor)
                    await self.ledger.adjust_by(LAUNDRY, li.item_type, li.color, li.quantity, actor)
                ev = await self.events.append(
                    EventType.MARK_DIRTY,
                    lines,
                    created_by=actor,
                    from_location=unit.key,
                    to_location=LAUNDRY.key,
                    related_unit_code=unit.code,
                    notes=notes,
                )

        if ev is None:
            logger.info("Nothing to mark dirty", unit_code=unit.code)
        else:
            logger.info("Unit textiles sent to laundry", unit_code=unit.code, line_count=len(lines), actor=actor)
        return ev

    async def mark_clean(self, items: Sequence[LineItem], actor: str, notes: Optional[str] = None) -> TextileEvent:
        """Return laundered items to the warehouse.

        Quantities are what the caller says came back clean; a line larger
        than the laundry balance fails with NegativeBalanceError.
        """
        lines = _merge(items)
        if not lines:
            raise EmptyRequestError("No items to mark clean")
        _require_positive(lines)

        async with self._transaction():
            keys: List[StockKey] = []
            for li in lines:
                keys.append(make_key(LAUNDRY, li.item_type, li.color))
                keys.append(make_key(WAREHOUSE, li.item_type, li.color))
            await self.ledger.lock(keys)

            for li in lines:
                await self.ledger.adjust_by(LAUNDRY, li.item_type, li.color, -li.quantity, actor)
                await self.ledger.adjust_by(WAREHOUSE, li.item_type, li.color, li.quantity, actor)
            ev = await self.events.append(
                EventType.MARK_CLEAN,
                lines,
                created_by=actor,
                from_location=LAUNDRY.key,
                to_location=WAREHOUSE.key,
                notes=notes,
            )

        logger.info("Laundry returned to warehouse", event_id=str(ev.id), line_count=len(lines), actor=actor)
        return ev

    async def adjust_stock(
        self,
        location: str,
        item_type,
        color,
        quantity: int,
        actor: str,
        notes: Optional[str] = None,
    ) -> TextileStock:
        """Corrective absolute write, logged as an `adjustment` event."""
        loc = self.location(location)
        li = LineItem.parse(item_type, color, quantity)
        if li.quantity < 0:
            raise InvalidQuantityError("quantity", li.quantity, ">= 0")

        async with self._transaction():
            row = await self.ledger.set(loc, li.item_type, li.color, li.quantity, actor)
            await self.events.append(
                EventType.ADJUSTMENT,
                [li],
                created_by=actor,
                to_location=loc.key,
                related_unit_code=loc.key if is_unit(loc.key) else None,
                notes=notes or DEFAULT_ADJUSTMENT_NOTE,
            )

        logger.info(
            "Stock adjusted",
            location=loc.key,
            item_type=li.item_type.value,
            color=li.color.value,
            quantity=li.quantity,
            actor=actor,
        )
        return row

    async def record_audit(
        self,
        location: str,
        audit_date: date,
        items: Sequence[dict],
        actor: str,
        notes: Optional[str] = None,
    ) -> TextileAudit:
        """Store a physical count and how it differs from the ledger. Stock is untouched."""
        loc = self.location(location)
        counted_lines = []
        counted: Dict[Tuple[str, str], int] = {}
        for raw in items:
            it = parse_item_type(raw.get("item_type"))
            col = parse_color(raw.get("color"))
            count = int(raw.get("count", 0))
            if count < 0:
                raise InvalidQuantityError(f"count[{stock_key(it, col)}]", count, ">= 0")
            condition = (raw.get("condition") or "good").strip().lower()
            if condition not in AUDIT_CONDITIONS:
                raise InvalidQuantityError("condition", condition, " | ".join(AUDIT_CONDITIONS))
            counted_lines.append({"item_type": it.value, "color": col.value, "count": count, "condition": condition})
            # all conditions count toward the physical total
            counted[(it.value, col.value)] = counted.get((it.value, col.value), 0) + count
        if not counted_lines:
            raise EmptyRequestError("Audit has no counted items")

        async with self._transaction():
            recorded = {(r.item_type, r.color): int(r.quantity) for r in await self.ledger.get(loc)}

            discrepancies = []
            for it, col in sorted(set(recorded) | set(counted)):
                found = counted.get((it, col), 0)
                on_record = recorded.get((it, col), 0)
                if found != on_record:
                    discrepancies.append(
                        {
                            "item_type": it,
                            "color": col,
                            "counted": found,
                            "recorded": on_record,
                            "difference": found - on_record,
                        }
                    )

            audit = TextileAudit(
                id=uuid.uuid4(),
                location=loc.key,
                audit_date=audit_date,
                items=counted_lines,
                discrepancies=discrepancies,
                notes=notes,
                audited_by=actor,
                created_at=datetime.now(timezone.utc),
            )
            self.db.add(audit)

        if discrepancies:
            logger.warning("Audit found discrepancies", location=loc.key, discrepancy_count=len(discrepancies))
        else:
            logger.info("Audit matches ledger", location=loc.key)
        return audit

    # ------------------------------------------------------------------- reads

    async def get_stock(self, location: Optional[str] = None, include_zero: bool = False) -> List[TextileStock]:
        async with self._transaction():
            if location:
                return await self.ledger.get(self.location(location), include_zero=include_zero)
            return await self.ledger.get_all(include_zero=include_zero)

    async def get_stock_summary(self) -> dict:
        async with self._transaction():
            rows = await self.ledger.get_all(include_zero=False)

        summary = {"warehouse": {}, "laundry": {}, "units": {}}
        for r in rows:
            key = f"{r.item_type}_{r.color}"
            if r.location in (WAREHOUSE.key, LAUNDRY.key):
                bucket = summary[r.location]
            else:
                bucket = summary["units"].setdefault(r.location, {})
            bucket[key] = bucket.get(key, 0) + int(r.quantity)
        return summary

    async def get_events(self, limit: int = 50, location: Optional[str] = None) -> List[TextileEvent]:
        loc_key = self.location(location).key if location else None
        async with self._transaction():
            return await self.events.list(limit=limit, location=loc_key)

    async def list_check_ins(self, unit_code: Optional[str] = None, limit: int = 50) -> List[TextileCheckIn]:
        stmt = select(TextileCheckIn)
        if unit_code:
            stmt = stmt.where(TextileCheckIn.unit_code == self._unit(unit_code).code)
        stmt = stmt.order_by(TextileCheckIn.created_at.desc()).limit(limit)
        async with self._transaction():
            res = await self.db.execute(stmt)
            return list(res.scalars().all())

    async def list_audits(self, location: Optional[str] = None, limit: int = 50) -> List[TextileAudit]:
        stmt = select(TextileAudit)
        if location:
            stmt = stmt.where(TextileAudit.location == self.location(location).key)
        stmt = stmt.order_by(TextileAudit.created_at.desc()).limit(limit)
        async with self._transaction():
            res = await self.db.execute(stmt)
            return list(res.scalars().all())

    async def reconcile(self) -> List[dict]:
        """Replay the event stream and list every balance that disagrees with the ledger."""
        async with self._transaction():
            expected = replay(await self.events.all_in_order())
            rows = await self.ledger.get_all()

        actual: Dict[str, Dict[str, int]] = {}
        for r in rows:
            actual.setdefault(r.location, {})[f"{r.item_type}_{r.color}"] = int(r.quantity)

        mismatches = []
        for loc in sorted(set(expected) | set(actual)):
            exp_loc = expected.get(loc, {})
            act_loc = actual.get(loc, {})
            for key in sorted(set(exp_loc) | set(act_loc)):
                e = exp_loc.get(key, 0)
                a = act_loc.get(key, 0)
                if e != a:
                    mismatches.append({"location": loc, "key": key, "expected": e, "actual": a})
        if mismatches:
            logger.warning("Ledger does not match event replay", mismatch_count=len(mismatches))
        return mismatches
