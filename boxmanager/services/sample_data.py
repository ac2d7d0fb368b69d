"""Sample boxes and items created on first start."""
from loguru import logger
from sqlalchemy.orm import Session

from boxmanager.models.box import Box
from boxmanager.models.item import Item

SAMPLE_BOXES = [
    {
        "id": "box-kitchen-storage",
        "name": "Kitchen Storage",
        "location": "Basement Shelf A-1",
        "description": "Kitchen appliances and utensils stored for seasonal use. Includes stand mixer, food processor, and specialty cookware.",
    },
    {
        "id": "box-garage-tools",
        "name": "Garage Tools",
        "location": "Garage Wall Mount",
        "description": "Hand tools and hardware for home maintenance and DIY projects. Includes screwdrivers, wrenches, drill bits.",
    },
    {
        "id": "box-office-supplies",
        "name": "Office Supplies",
        "location": "Closet Top Shelf",
        "description": "Stationery, printer supplies, and office equipment. Includes paper, pens, staplers, and backup cables.",
    },
]

SAMPLE_ITEMS = [
    {
        "id": "item-stand-mixer",
        "box_id": "box-kitchen-storage",
        "name": "KitchenAid Stand Mixer",
        "quantity": 1,
        "details": "Professional 5-quart bowl-lift mixer with attachments",
        "value": 349.99,
        "receipt_filename": "mixer-receipt.pdf",
    },
    {
        "id": "item-utensil-set",
        "box_id": "box-kitchen-storage",
        "name": "Stainless Steel Utensil Set",
        "quantity": 1,
        "details": "12-piece professional kitchen utensil set with holder",
        "value": 89.99,
        "receipt_filename": None,
    },
    {
        "id": "item-food-processor",
        "box_id": "box-kitchen-storage",
        "name": "Food Processor",
        "quantity": 1,
        "details": "Cuisinart 14-cup food processor with multiple blades",
        "value": 199.99,
        "receipt_filename": "processor-receipt.jpg",
    },
    {
        "id": "item-power-drill",
        "box_id": "box-garage-tools",
        "name": "Cordless Power Drill",
        "quantity": 1,
        "details": "18V lithium-ion drill with battery and charger",
        "value": 129.99,
        "receipt_filename": "drill-receipt.pdf",
    },
    {
        "id": "item-wrench-set",
        "box_id": "box-garage-tools",
        "name": "Wrench Set",
        "quantity": 12,
        "details": "Metric and SAE combination wrench set 8mm-19mm",
        "value": 45.99,
        "receipt_filename": None,
    },
    {
        "id": "item-printer-paper",
        "box_id": "box-office-supplies",
        "name": "Printer Paper",
        "quantity": 5,
        "details": "20lb white copy paper, 500 sheets per ream",
        "value": 25.99,
        "receipt_filename": None,
    },
]


def seed_sample_data(db: Session) -> bool:
    """Insert the sample boxes and items if there are no boxes yet."""
    if db.query(Box).first():
        return False

    logger.info("Initializing sample data...")
    for box_data in SAMPLE_BOXES:
        db.add(Box(**box_data))
    db.flush()
    for item_data in SAMPLE_ITEMS:
        db.add(Item(**item_data))
    db.commit()
    logger.info("Sample data initialized successfully")
    return True
