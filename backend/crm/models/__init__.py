from .auth import User, Role, UserRole, SessionToken
from .inventory import ProductCategory, Product, PriceTier, Batch, InventoryMovement
from .directory import Client, Supplier, SupplierCategory, Salesperson
from .sales import Sale
from .recruitment import Job, JobApplication

__all__ = [
    'User', 'Role', 'UserRole', 'SessionToken',
    'ProductCategory', 'Product', 'PriceTier', 'Batch', 'InventoryMovement',
    'Client', 'Supplier', 'SupplierCategory', 'Salesperson',
    'Sale',
    'Job', 'JobApplication',
]
