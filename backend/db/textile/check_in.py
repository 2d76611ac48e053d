import uuid

from sqlalchemy import JSON, Column, DateTime, Integer, Text, Uuid

from ..database import Base


class TextileCheckIn(Base):
    __tablename__ = "textile_check_ins"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    unit_code = Column(Text, nullable=False, index=True)

    # [{"color": ..., "count": ...}]
    bedding_sets = Column(JSON, nullable=False, default=list)
    towel_sets = Column(Integer, nullable=False, default=0)
    robes = Column(Integer, nullable=False, default=0)

    notes = Column(Text, nullable=True)
    created_by = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
