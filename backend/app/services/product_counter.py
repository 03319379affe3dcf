from sqlmodel import Session, select, func
from app.models.product import Product


class ProductCounter:
    """Подсчёт товаров в категории (внедряется в сервис категорий)"""

    def __init__(self, db: Session):
        self.db = db

    def count(self, category_id: int, status: str) -> int:
        stmt = select(func.count(Product.id)).where(
            Product.category_id == category_id,
            Product.status == status,
        )
        return self.db.exec(stmt).one()
