"""Location routes."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from boxmanager.database import get_db
from boxmanager.models.activity_log import ActivityAction, ActivityEntity
from boxmanager.models.box import Box
from boxmanager.models.location import Location
from boxmanager.schemas.location import (
    LocationCreate,
    LocationResponse,
    LocationUpdate,
)
from boxmanager.services.activity import log_activity

router = APIRouter(prefix="/locations", tags=["Locations"])


def get_location_or_404(db: Session, location_id: str) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Location not found"
        )
    return location


def ensure_name_available(db: Session, name: str):
    if db.query(Location).filter(Location.name == name).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A location with this name already exists"
        )


@router.get("/", response_model=List[LocationResponse])
async def list_locations(db: Session = Depends(get_db)):
    """List all locations."""
    return db.query(Location).order_by(Location.name).all()


@router.post("/", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    location_data: LocationCreate,
    db: Session = Depends(get_db)
):
    """Create a new location."""
    ensure_name_available(db, location_data.name)

    db_location = Location(**location_data.model_dump())
    db.add(db_location)
    db.flush()
    log_activity(
        db, ActivityAction.CREATE, ActivityEntity.LOCATION,
        entity_id=db_location.id, entity_name=db_location.name
    )
    db.commit()
    db.refresh(db_location)
    return db_location


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(
    location_id: str,
    db: Session = Depends(get_db)
):
    """Get a specific location."""
    return get_location_or_404(db, location_id)


@router.put("/{location_id}", response_model=LocationResponse)
async def update_location(
    location_id: str,
    location_update: LocationUpdate,
    db: Session = Depends(get_db)
):
    """Update a location. A rename is carried over to the boxes stored there."""
    location = get_location_or_404(db, location_id)

    update_data = location_update.model_dump(exclude_unset=True)
    new_name = update_data.pop("name", None)
    renamed = 0
    if new_name and new_name != location.name:
        ensure_name_available(db, new_name)
        renamed = (
            db.query(Box)
            .filter(Box.location == location.name)
            .update({Box.location: new_name}, synchronize_session=False)
        )
        location.name = new_name

    for field, value in update_data.items():
        setattr(location, field, value)

    log_activity(
        db, ActivityAction.UPDATE, ActivityEntity.LOCATION,
        entity_id=location.id, entity_name=location.name,
        details=f"{renamed} box(es) moved to the new name" if renamed else None
    )
    db.commit()
    db.refresh(location)
    return location


@router.delete("/{location_id}")
async def delete_location(
    location_id: str,
    db: Session = Depends(get_db)
):
    """Delete a location that no box refers to."""
    location = get_location_or_404(db, location_id)

    in_use = db.query(Box).filter(Box.location == location.name).count()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot delete location used by {in_use} box(es). Move the boxes first."
        )

    log_activity(
        db, ActivityAction.DELETE, ActivityEntity.LOCATION,
        entity_id=location.id, entity_name=location.name
    )
    db.delete(location)
    db.commit()
    return {"message": "Location deleted successfully"}
