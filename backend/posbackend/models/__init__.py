from .catalog import Category, Product
from .staff import Staff, STAFF_ROLES
from .pricing import Tax, Discount, DISCOUNT_TYPES
from .peripherals import Printer, PRINTER_TYPES
from .sales import Sale, SaleItem, PAYMENT_METHODS, SALE_STATUSES

__all__ = [
    'Category', 'Product',
    'Staff', 'STAFF_ROLES',
    'Tax', 'Discount', 'DISCOUNT_TYPES',
    'Printer', 'PRINTER_TYPES',
    'Sale', 'SaleItem', 'PAYMENT_METHODS', 'SALE_STATUSES',
]
