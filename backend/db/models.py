"""Import every mapped model so relationships resolve and create_all sees all tables."""

from db.users import User  # noqa: F401
from db.product import Product  # noqa: F401
from db.storage_unit import StorageUnit  # noqa: F401
from db.inventory.inventory import Inventory  # noqa: F401
from db.inventory.holding import InventoryHolding  # noqa: F401
from db.inventory.movement import LedgerMovement  # noqa: F401
