from .category import (
    CategoryResponse, CategoryWithCount, CategoryListResponse,
    CategoryCreate, CategoryUpdate, CategoryTreeNode, BreadcrumbItem,
)

__all__ = [
    "CategoryResponse", "CategoryWithCount", "CategoryListResponse",
    "CategoryCreate", "CategoryUpdate", "CategoryTreeNode", "BreadcrumbItem",
]
