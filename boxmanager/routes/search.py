"""Search and statistics routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from boxmanager.database import get_db
from boxmanager.models.box import Box
from boxmanager.models.item import Item
from boxmanager.routes.boxes import box_with_stats
from boxmanager.schemas.item import ItemResponse
from boxmanager.schemas.search import SearchResults, StatsResponse

router = APIRouter(tags=["Search"])


@router.get("/")
async def api_root():
    """API liveness message."""
    return {"message": "Box Management API is running"}


@router.get("/stats", response_model=StatsResponse)
async def get_stats(db: Session = Depends(get_db)):
    """Totals across all boxes and items."""
    total_value = db.query(
        func.coalesce(func.sum(Item.value * Item.quantity), 0)
    ).scalar()
    return StatsResponse(
        total_boxes=db.query(Box).count(),
        total_items=db.query(Item).count(),
        total_value=float(total_value or 0),
        items_with_receipts=db.query(Item).filter(Item.receipt_filename.isnot(None)).count(),
    )


@router.get("/search", response_model=SearchResults)
async def search(
    q: Optional[str] = Query(None, description="Text to look for in boxes and items"),
    db: Session = Depends(get_db)
):
    """Search boxes by name, location or description and items by name or details."""
    if not q or not q.strip():
        return SearchResults()

    search_term = f"%{q.strip()}%"
    boxes = db.query(Box).filter(
        or_(
            Box.name.ilike(search_term),
            Box.location.ilike(search_term),
            Box.description.ilike(search_term)
        )
    ).all()
    items = db.query(Item).filter(
        or_(
            Item.name.ilike(search_term),
            Item.details.ilike(search_term)
        )
    ).all()

    return SearchResults(
        boxes=[box_with_stats(box) for box in boxes],
        items=[ItemResponse.model_validate(item) for item in items],
    )
