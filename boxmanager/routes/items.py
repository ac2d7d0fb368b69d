"""Item routes."""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from boxmanager.config import Settings, get_settings
from boxmanager.database import get_db
from boxmanager.models.activity_log import ActivityAction, ActivityEntity
from boxmanager.models.box import Box
from boxmanager.models.item import Item
from boxmanager.schemas.item import ItemCreate, ItemResponse, ItemUpdate, ReceiptUploadResponse
from boxmanager.services.activity import log_activity
from boxmanager.services.receipts import (
    generate_receipt_filename,
    receipt_extension,
    receipt_path,
    remove_receipt_file,
)

router = APIRouter(prefix="/items", tags=["Items"])


def get_item_or_404(db: Session, item_id: str) -> Item:
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )
    return item


def ensure_box_exists(db: Session, box_id: str) -> Box:
    box = db.query(Box).filter(Box.id == box_id).first()
    if not box:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Box not found"
        )
    return box


@router.post("/", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    db: Session = Depends(get_db)
):
    """Create a new item inside a box."""
    box = ensure_box_exists(db, item_data.box_id)

    db_item = Item(**item_data.model_dump())
    db.add(db_item)
    db.flush()
    log_activity(
        db, ActivityAction.CREATE, ActivityEntity.ITEM,
        entity_id=db_item.id, entity_name=db_item.name,
        details=f"Added to box {box.name}"
    )
    db.commit()
    db.refresh(db_item)
    return db_item


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(
    item_id: str,
    db: Session = Depends(get_db)
):
    """Get a specific item."""
    return get_item_or_404(db, item_id)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    item_update: ItemUpdate,
    db: Session = Depends(get_db)
):
    """Update an item."""
    item = get_item_or_404(db, item_id)

    update_data = item_update.model_dump(exclude_unset=True)
    # value may be cleared explicitly; the other fields are NOT NULL
    update_data = {k: v for k, v in update_data.items() if v is not None or k == "value"}

    if "box_id" in update_data and update_data["box_id"] != item.box_id:
        ensure_box_exists(db, update_data["box_id"])

    for field, value in update_data.items():
        setattr(item, field, value)

    log_activity(
        db, ActivityAction.UPDATE, ActivityEntity.ITEM,
        entity_id=item.id, entity_name=item.name,
        details=f"Updated fields: {', '.join(sorted(update_data)) or 'none'}"
    )
    db.commit()
    db.refresh(item)
    return item


@router.delete("/{item_id}")
async def delete_item(
    item_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Delete an item and its receipt file."""
    item = get_item_or_404(db, item_id)
    receipt = item.receipt_filename

    log_activity(
        db, ActivityAction.DELETE, ActivityEntity.ITEM,
        entity_id=item.id, entity_name=item.name
    )
    db.delete(item)
    db.commit()
    remove_receipt_file(settings.receipts_dir, receipt)
    return {"message": "Item deleted successfully"}


# ============================================================================
# Receipts
# ============================================================================

@router.post("/{item_id}/receipt", response_model=ReceiptUploadResponse)
async def upload_receipt(
    item_id: str,
    receipt: UploadFile = File(...),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Attach a receipt (PDF, JPG, PNG or GIF) to an item."""
    item = get_item_or_404(db, item_id)

    extension = receipt_extension(receipt.filename)
    if not extension:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only PDF, JPG, PNG, and GIF files are allowed."
        )

    content = await receipt.read(settings.MAX_RECEIPT_SIZE + 1)
    if len(content) > settings.MAX_RECEIPT_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Receipt exceeds the {settings.MAX_RECEIPT_SIZE} byte limit"
        )

    settings.receipts_dir.mkdir(parents=True, exist_ok=True)
    filename = generate_receipt_filename(extension)
    with open(settings.receipts_dir / filename, "wb") as f:
        f.write(content)

    previous = item.receipt_filename
    item.receipt_filename = filename
    log_activity(
        db, ActivityAction.UPDATE, ActivityEntity.ITEM,
        entity_id=item.id, entity_name=item.name,
        details="Receipt uploaded"
    )
    db.commit()

    if previous and previous != filename:
        remove_receipt_file(settings.receipts_dir, previous)

    return ReceiptUploadResponse(message="Receipt uploaded successfully", filename=filename)


@router.get("/{item_id}/receipt")
async def download_receipt(
    item_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Download the receipt attached to an item."""
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item or not item.receipt_filename:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Receipt not found"
        )

    path = receipt_path(settings.receipts_dir, item.receipt_filename)
    if path is None or not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Receipt file not found"
        )
    return FileResponse(path, filename=item.receipt_filename)


@router.delete("/{item_id}/receipt")
async def delete_receipt(
    item_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """Remove the receipt from an item and delete the file."""
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item or not item.receipt_filename:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Receipt not found"
        )

    receipt = item.receipt_filename
    item.receipt_filename = None
    log_activity(
        db, ActivityAction.UPDATE, ActivityEntity.ITEM,
        entity_id=item.id, entity_name=item.name,
        details="Receipt removed"
    )
    db.commit()
    remove_receipt_file(settings.receipts_dir, receipt)
    return {"message": "Receipt deleted successfully"}
