from .auth import User, SessionToken
from .warehouses import Warehouse, WarehouseFlow
from .support import SupportComment

__all__ = [
    'User', 'SessionToken',
    'Warehouse', 'WarehouseFlow',
    'SupportComment',
]
