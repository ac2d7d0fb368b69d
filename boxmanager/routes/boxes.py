"""Box routes."""
from typing import List
import csv
import io

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from boxmanager.config import Settings, get_settings
from boxmanager.database import get_db
from boxmanager.models.activity_log import ActivityAction, ActivityEntity
from boxmanager.models.box import Box
from boxmanager.models.item import Item
from boxmanager.schemas.box import BoxCreate, BoxUpdate, BoxResponse, BoxWithStats, BoxWithItems
from boxmanager.schemas.item import ItemResponse
from boxmanager.services.activity import log_activity
from boxmanager.services.receipts import remove_receipt_file

router = APIRouter(prefix="/boxes", tags=["Boxes"])


def box_with_stats(box: Box) -> BoxWithStats:
    """Attach item count, total value and receipt count to a box."""
    items = box.items or []
    return BoxWithStats(
        **BoxResponse.model_validate(box).model_dump(),
        item_count=len(items),
        total_value=sum((item.value or 0) * item.quantity for item in items),
        with_receipts=sum(1 for item in items if item.receipt_filename),
    )


def get_box_or_404(db: Session, box_id: str) -> Box:
    box = db.query(Box).filter(Box.id == box_id).first()
    if not box:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Box not found"
        )
    return box


@router.get("/", response_model=List[BoxWithStats])
async def list_boxes(db: Session = Depends(get_db)):
    """List all boxes with item statistics."""
    boxes = db.query(Box).order_by(Box.created_at, Box.name).all()
    return [box_with_stats(box) for box in boxes]


@router.post("/", response_model=BoxResponse, status_code=status.HTTP_201_CREATED)
async def create_box(
    box_data: BoxCreate,
    db: Session = Depends(get_db)
):
    """Create a new box."""
    db_box = Box(**box_data.model_dump())
    db.add(db_box)
    db.flush()
    log_activity(
        db, ActivityAction.CREATE, ActivityEntity.BOX,
        entity_id=db_box.id, entity_name=db_box.name,
        details=f"Location: {db_box.location}"
    )
    db.commit()
    db.refresh(db_box)
    return db_box


@router.get("/export/csv")
async def export_boxes_csv(db: Session = Depends(get_db)):
    """Export all boxes to CSV file."""
    boxes = db.query(Box).order_by(Box.name).all()

    output = io.StringIO()
    writer = csv.writer(output)

    # Write header
    writer.writerow(['id', 'name', 'location', 'description', 'item_count', 'total_value'])

    # Write data
    for box in boxes:
        stats = box_with_stats(box)
        writer.writerow([
            box.id,
            box.name,
            box.location,
            box.description or '',
            stats.item_count,
            f"{stats.total_value:.2f}"
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=boxes.csv"}
    )


@router.get("/{box_id}", response_model=BoxWithItems)
async def get_box(
    box_id: str,
    db: Session = Depends(get_db)
):
    """Get a specific box with its items."""
    box = get_box_or_404(db, box_id)
    return BoxWithItems(
        **box_with_stats(box).model_dump(),
        items=[ItemResponse.model_validate(item) for item in box.items],
    )


@router.get("/{box_id}/items", response_model=List[ItemResponse])
async def list_box_items(
    box_id: str,
    db: Session = Depends(get_db)
):
    """List the items stored in a box."""
    return db.query(Item).filter(Item.box_id == box_id).all()


@router.get("/{box_id}/export/csv")
async def export_box_items_csv(
    box_id: str,
    db: Session = Depends(get_db)
):
    """Export the contents of one box to CSV file."""
    box = get_box_or_404(db, box_id)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(['name', 'quantity', 'details', 'value', 'total_value', 'receipt'])
    for item in box.items:
        writer.writerow([
            item.name,
            item.quantity,
            item.details or '',
            f"{item.value:.2f}" if item.value is not None else '',
            f"{item.value * item.quantity:.2f}" if item.value is not None else '',
            'Yes' if item.receipt_filename else 'No'
        ])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=box-{box.id}-contents.csv"}
    )


@router.put("/{box_id}", response_model=BoxResponse)
async def update_box(
    box_id: str,
    box_update: BoxUpdate,
    db: Session = Depends(get_db)
):
    """Update a box."""
    box = get_box_or_404(db, box_id)

    update_data = box_update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(box, field, value)

    log_activity(
        db, ActivityAction.UPDATE, ActivityEntity.BOX,
        entity_id=box.id, entity_name=box.name,
        details=f"Updated fields: {', '.join(sorted(update_data)) or 'none'}"
    )
    db.commit()
    db.refresh(box)
    return box


@router.delete("/{box_id}")
async def delete_box(
    box_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Delete a box together with its items and their receipt files."""
    box = get_box_or_404(db, box_id)

    item_count = len(box.items)
    receipts = [item.receipt_filename for item in box.items if item.receipt_filename]

    log_activity(
        db, ActivityAction.DELETE, ActivityEntity.BOX,
        entity_id=box.id, entity_name=box.name,
        details=f"Deleted with {item_count} item(s)"
    )
    db.delete(box)
    db.commit()
    for filename in receipts:
        remove_receipt_file(settings.receipts_dir, filename)
    return {"message": "Box deleted successfully"}
