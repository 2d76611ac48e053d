import uuid

from sqlalchemy import JSON, Column, Date, DateTime, Text, Uuid

from ..database import Base


class TextileAudit(Base):
    __tablename__ = "textile_audits"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    location = Column(Text, nullable=False, index=True)
    audit_date = Column(Date, nullable=False)

    # [{"item_type": ..., "color": ..., "count": ..., "condition": "good" | "worn" | "damaged"}]
    items = Column(JSON, nullable=False, default=list)
    # counted vs ledger, frozen at the time the audit was recorded
    discrepancies = Column(JSON, nullable=False, default=list)

    notes = Column(Text, nullable=True)
    audited_by = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
