from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.catalog import LineItem
from core.config import settings
from core.movements import MovementEngine
from core.planner import BeddingSet, CheckInRequest
from db.database import get_async_session
from schemas.textile import (
    AdjustStockRequest,
    AuditCreate,
    CheckInCreate,
    InitStockRequest,
    MarkCleanRequest,
    MarkDirtyRequest,
    ReconcileMismatchOut,
    StockSummaryOut,
    TextileAuditOut,
    TextileCheckInOut,
    TextileEventOut,
    TextileStockOut,
)

router = APIRouter()


async def get_movement_engine(db: AsyncSession = Depends(get_async_session)) -> MovementEngine:
    return MovementEngine(db)


async def current_actor(x_actor_id: Optional[str] = Header(None)) -> str:
    actor = (x_actor_id or "").strip()
    if not actor:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-Actor-Id header is required")
    return actor


def _lines(items) -> List[LineItem]:
    return [LineItem.parse(i.item_type, i.color, i.quantity) for i in items]


@router.get("/stock", response_model=List[TextileStockOut])
async def get_stock(
    location: Optional[str] = None,
    include_zero: bool = False,
    engine: MovementEngine = Depends(get_movement_engine),
):
    return await engine.get_stock(location=location, include_zero=include_zero)


@router.get("/stock/summary", response_model=StockSummaryOut)
async def get_stock_summary(engine: MovementEngine = Depends(get_movement_engine)):
    return await engine.get_stock_summary()


@router.post("/stock/init", status_code=status.HTTP_201_CREATED, response_model=TextileEventOut)
async def init_warehouse_stock(
    payload: InitStockRequest,
    actor: str = Depends(current_actor),
    engine: MovementEngine = Depends(get_movement_engine),
):
    return await engine.init_warehouse_stock(_lines(payload.items), actor)


@router.post("/stock/adjust", response_model=TextileStockOut)
async def adjust_stock(
    payload: AdjustStockRequest,
    actor: str = Depends(current_actor),
    engine: MovementEngine = Depends(get_movement_engine),
):
    return await engine.adjust_stock(
        payload.location,
        payload.item_type,
        payload.color,
        payload.quantity,
        actor,
        notes=payload.notes,
    )


@router.get("/check-ins", response_model=List[TextileCheckInOut])
async def list_check_ins(
    unit_code: Optional[str] = None,
    limit: int = Query(50, ge=1, le=1000),
    engine: MovementEngine = Depends(get_movement_engine),
):
    return await engine.list_check_ins(unit_code=unit_code, limit=limit)


@router.post("/check-ins", status_code=status.HTTP_201_CREATED, response_model=TextileCheckInOut)
async def create_check_in(
    payload: CheckInCreate,
    actor: str = Depends(current_actor),
    engine: MovementEngine = Depends(get_movement_engine),
):
    """
    Move textiles for a guest arrival from the warehouse to a unit.

    - 409 with the full shortage list when the warehouse can't cover every line.
    """
    request = CheckInRequest(
        unit_code=payload.unit_code,
        bedding_sets=tuple(BeddingSet.parse(b.color, b.count) for b in payload.bedding_sets),
        towel_sets=payload.towel_sets,
        robes=payload.robes,
        notes=payload.notes,
    )
    return await engine.check_in(request, actor)


@router.post("/mark-dirty")
async def mark_dirty(
    payload: MarkDirtyRequest,
    actor: str = Depends(current_actor),
    engine: MovementEngine = Depends(get_movement_engine),
):
    ev = await engine.mark_dirty(payload.unit_code, actor, notes=payload.notes)
    return {
        "ok": True,
        "moved": ev is not None,
        "event": TextileEventOut.model_validate(ev).model_dump(mode="json") if ev else None,
    }


@router.post("/mark-clean", response_model=TextileEventOut)
async def mark_clean(
    payload: MarkCleanRequest,
    actor: str = Depends(current_actor),
    engine: MovementEngine = Depends(get_movement_engine),
):
    return await engine.mark_clean(_lines(payload.items), actor, notes=payload.notes)


@router.get("/events", response_model=List[TextileEventOut])
async def list_events(
    limit: Optional[int] = Query(None, ge=1),
    location: Optional[str] = None,
    engine: MovementEngine = Depends(get_movement_engine),
):
    lim = min(limit or settings.textile_events_default_limit, settings.textile_events_max_limit)
    return await engine.get_events(limit=lim, location=location)


@router.get("/audits", response_model=List[TextileAuditOut])
async def list_audits(
    location: Optional[str] = None,
    limit: int = Query(50, ge=1, le=1000),
    engine: MovementEngine = Depends(get_movement_engine),
):
    return await engine.list_audits(location=location, limit=limit)


@router.post("/audits", status_code=status.HTTP_201_CREATED, response_model=TextileAuditOut)
async def create_audit(
    payload: AuditCreate,
    actor: str = Depends(current_actor),
    engine: MovementEngine = Depends(get_movement_engine),
):
    return await engine.record_audit(
        payload.location,
        payload.audit_date,
        [i.model_dump() for i in payload.items],
        actor,
        notes=payload.notes,
    )


@router.get("/reconcile", response_model=List[ReconcileMismatchOut])
async def reconcile(engine: MovementEngine = Depends(get_movement_engine)):
    return await engine.reconcile()
