from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Product(SQLModel, table=True):
    """Товар: нужен только для подсчёта товаров в категориях"""
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="categories.id", index=True)
    status: str = Field(default="published", index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
