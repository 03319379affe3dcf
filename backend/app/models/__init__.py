from .category import Category, CategoryStatus
from .product import Product

__all__ = [
    "Category", "CategoryStatus",
    "Product",
]
