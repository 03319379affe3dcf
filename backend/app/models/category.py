from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum
from app.core.config import settings


class CategoryStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"
    PENDING = "pending"
    ARCHIVED = "archived"
    PUBLISHED = "published"


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(unique=True, index=True)
    slug: str = Field(index=True)
    description: Optional[str] = None

    # Дочерние категории не хранятся: только ссылка на родителя
    parent_id: Optional[int] = Field(default=None, foreign_key="categories.id", index=True)
    status: CategoryStatus = Field(default=CategoryStatus.ACTIVE)
    is_featured: bool = Field(default=False)
    display_order: int = Field(default=0)
    visibility: bool = Field(default=True)
    is_deleted: bool = Field(default_factory=lambda: settings.CATEGORY_IS_DELETED_DEFAULT)

    # SEO
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    # Audit
    created_by: Optional[int] = None
    updated_by: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
