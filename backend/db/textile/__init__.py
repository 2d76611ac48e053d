"""
Textile ledger tables.

Models:
- TextileStock (quantity per location/item_type/color)
- TextileEvent (append-only movement log)
- TextileCheckIn (guest arrival request, kept for traceability)
- TextileAudit (physical counts taken by staff)
"""

from .audit import TextileAudit
from .check_in import TextileCheckIn
from .event import TextileEvent
from .stock import TextileStock

__all__ = ["TextileAudit", "TextileCheckIn", "TextileEvent", "TextileStock"]
