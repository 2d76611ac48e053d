import uuid

from sqlalchemy import JSON, Column, DateTime, Text, Uuid

from ..database import Base


class TextileEvent(Base):
    __tablename__ = "textile_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # 'init_stock' | 'check_in' | 'mark_dirty' | 'mark_clean' | 'adjustment'
    event_type = Column(Text, nullable=False, index=True)

    from_location = Column(Text, nullable=True, index=True)  # absent for set-events
    to_location = Column(Text, nullable=True, index=True)

    # [{"item_type": ..., "color": ..., "quantity": ...}]
    items = Column(JSON, nullable=False, default=list)

    related_unit_code = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_by = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
