"""Search and statistics schemas."""
from typing import List
from pydantic import BaseModel

from boxmanager.schemas.box import BoxWithStats
from boxmanager.schemas.item import ItemResponse


class SearchResults(BaseModel):
    """Boxes and items matching a search query."""
    boxes: List[BoxWithStats] = []
    items: List[ItemResponse] = []


class StatsResponse(BaseModel):
    """Inventory-wide totals."""
    total_boxes: int
    total_items: int
    total_value: float
    items_with_receipts: int
