from .auth import User
from .customers import Customer
from .inventory import InventoryItem, CartLine, INVENTORY_CATEGORIES
from .clinical import Appointment, EyeTest, Prescription, APPOINTMENT_STATUSES
from .communications import Notification, NOTIFICATION_CATEGORIES
from .audit import ActivityLog
from .sales import Sale, SaleLine

__all__ = [
    'User',
    'Customer',
    'InventoryItem', 'CartLine', 'INVENTORY_CATEGORIES',
    'Appointment', 'EyeTest', 'Prescription', 'APPOINTMENT_STATUSES',
    'Notification', 'NOTIFICATION_CATEGORIES',
    'ActivityLog',
    'Sale', 'SaleLine',
]
