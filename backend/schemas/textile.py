from datetime import date, datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


TextileItemType = Literal[
    "sheets",
    "duvet_covers",
    "pillowcases",
    "towels_large",
    "towels_small",
    "robes",
    "mattress_covers",
]
TextileColor = Literal["white", "beige", "green", "grey"]
TextileEventType = Literal["init_stock", "check_in", "mark_dirty", "mark_clean", "adjustment"]
AuditCondition = Literal["good", "worn", "damaged"]


def _strip_nullable(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


def _strip_required(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("field is required")
    return v


class TextileLine(BaseModel):
    item_type: TextileItemType
    color: TextileColor
    quantity: int


class InitStockRequest(BaseModel):
    items: List[TextileLine] = Field(min_length=1)

    @field_validator("items")
    @classmethod
    def _non_negative(cls, v: List[TextileLine]) -> List[TextileLine]:
        for line in v:
            if line.quantity < 0:
                raise ValueError("quantity must be >= 0")
        return v


class AdjustStockRequest(BaseModel):
    location: str
    item_type: TextileItemType
    color: TextileColor
    quantity: int = Field(ge=0)
    notes: Optional[str] = None

    @field_validator("location")
    @classmethod
    def _location(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class BeddingSetIn(BaseModel):
    color: TextileColor
    count: int = Field(ge=1)


class CheckInCreate(BaseModel):
    unit_code: str
    bedding_sets: List[BeddingSetIn] = Field(default_factory=list)
    towel_sets: int = Field(default=0, ge=0)
    robes: int = Field(default=0, ge=0)
    notes: Optional[str] = None

    @field_validator("unit_code")
    @classmethod
    def _unit_code(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class MarkDirtyRequest(BaseModel):
    unit_code: str
    notes: Optional[str] = None

    @field_validator("unit_code")
    @classmethod
    def _unit_code(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class MarkCleanRequest(BaseModel):
    items: List[TextileLine] = Field(min_length=1)
    notes: Optional[str] = None

    @field_validator("items")
    @classmethod
    def _positive(cls, v: List[TextileLine]) -> List[TextileLine]:
        for line in v:
            if line.quantity <= 0:
                raise ValueError("quantity must be > 0")
        return v

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class AuditLineIn(BaseModel):
    item_type: TextileItemType
    color: TextileColor
    count: int = Field(ge=0)
    condition: AuditCondition = "good"


class AuditCreate(BaseModel):
    location: str
    audit_date: date
    items: List[AuditLineIn] = Field(min_length=1)
    notes: Optional[str] = None

    @field_validator("location")
    @classmethod
    def _location(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class TextileStockOut(BaseModel):
    id: UUID
    location: str
    item_type: TextileItemType
    color: TextileColor
    quantity: int
    updated_by: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class StockSummaryOut(BaseModel):
    warehouse: Dict[str, int]
    laundry: Dict[str, int]
    units: Dict[str, Dict[str, int]]


class TextileEventOut(BaseModel):
    id: UUID
    event_type: TextileEventType
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    items: List[TextileLine]
    related_unit_code: Optional[str] = None
    notes: Optional[str] = None
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class TextileCheckInOut(BaseModel):
    id: UUID
    unit_code: str
    bedding_sets: List[BeddingSetIn]
    towel_sets: int
    robes: int
    notes: Optional[str] = None
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuditDiscrepancyOut(BaseModel):
    item_type: TextileItemType
    color: TextileColor
    counted: int
    recorded: int
    difference: int


class TextileAuditOut(BaseModel):
    id: UUID
    location: str
    audit_date: date
    items: List[AuditLineIn]
    discrepancies: List[AuditDiscrepancyOut]
    notes: Optional[str] = None
    audited_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReconcileMismatchOut(BaseModel):
    location: str
    key: str
    expected: int
    actual: int
