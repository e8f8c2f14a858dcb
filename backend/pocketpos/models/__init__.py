from .catalog import ProductRecord, CategoryRecord, InventoryMovementRecord
from .sales import SaleRecord, SaleItemRecord
from .settings import AppSettingsRecord

__all__ = [
    'ProductRecord', 'CategoryRecord', 'InventoryMovementRecord',
    'SaleRecord', 'SaleItemRecord',
    'AppSettingsRecord',
]
