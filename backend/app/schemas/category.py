from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from app.models.category import CategoryStatus


class CategoryResponse(BaseModel):
    id: int
    title: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    status: CategoryStatus
    is_featured: bool
    display_order: int
    visibility: bool
    is_deleted: bool
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryWithCount(CategoryResponse):
    product_count: int = 0


class CategoryListResponse(BaseModel):
    """Пагинированный список"""
    results: List[CategoryWithCount]
    total: int
    page: int
    limit: int
    pages: int


class CategoryCreate(BaseModel):
    title: str = Field(max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    parent_id: Optional[int] = None
    # Для импорта: родитель по названию (может быть создан ранее в том же пакете)
    parent_title: Optional[str] = None
    status: CategoryStatus = CategoryStatus.ACTIVE
    is_featured: bool = False
    display_order: int = 0
    visibility: bool = True
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class CategoryUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=100)
    slug: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    parent_id: Optional[int] = None
    status: Optional[CategoryStatus] = None
    is_featured: Optional[bool] = None
    display_order: Optional[int] = None
    visibility: Optional[bool] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class CategoryTreeNode(CategoryResponse):
    children: List["CategoryTreeNode"] = []


class BreadcrumbItem(BaseModel):
    title: str
    slug: str


class DescendantCount(BaseModel):
    category_id: int
    descendants: int


class BulkStatusUpdate(BaseModel):
    ids: List[int] = Field(min_length=1)
    status: CategoryStatus


class BulkIdsRequest(BaseModel):
    ids: List[int] = Field(min_length=1)


class DisplayOrderItem(BaseModel):
    id: int
    display_order: int


class BatchDisplayOrderUpdate(BaseModel):
    items: List[DisplayOrderItem] = Field(min_length=1)


class BulkUpdateResult(BaseModel):
    matched_count: int
    modified_count: int


class RemovalResult(BaseModel):
    category_id: int
    mode: str
    removed: int


class CategoryStatistics(BaseModel):
    total: int
    active: int
    inactive: int
    featured: int
    deleted: int


class StatusAggregate(BaseModel):
    statuses: Dict[str, int]


CategoryTreeNode.model_rebuild()
