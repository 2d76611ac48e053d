import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from ..database import Base


class TextileStock(Base):
    __tablename__ = "textile_stock"
    __table_args__ = (
        UniqueConstraint("location", "item_type", "color", name="ux_textile_stock_location_type_color"),
        CheckConstraint("quantity >= 0", name="ck_textile_stock_quantity_non_negative"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    location = Column(Text, nullable=False, index=True)  # 'warehouse' | 'laundry' | unit code
    item_type = Column(Text, nullable=False)
    color = Column(Text, nullable=False)

    quantity = Column(Integer, nullable=False, default=0)

    updated_by = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
