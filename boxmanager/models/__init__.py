# Models package
from boxmanager.models.box import Box
from boxmanager.models.item import Item
from boxmanager.models.location import Location
from boxmanager.models.activity_log import ActivityLog, ActivityAction, ActivityEntity
