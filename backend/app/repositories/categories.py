import logging
from functools import wraps
from typing import Any, Dict, Iterable, List, Optional, Tuple
from sqlalchemy import update, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, func, col
from app.core.exceptions import StorageUnavailable
from app.models.category import Category
from app.models.product import Product

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "title": Category.title,
    "created_at": Category.created_at,
    "updated_at": Category.updated_at,
    "display_order": Category.display_order,
}


def storage_call(method):
    """Ошибки SQLAlchemy -> StorageUnavailable"""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Storage failure in {method.__name__}: {e}")
            raise StorageUnavailable(f"Storage failure: {e.__class__.__name__}") from e
    return wrapper


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    @storage_call
    def find_by_id(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    @storage_call
    def find_by_parent(self, parent_id: Optional[int], include_deleted: bool = False) -> List[Category]:
        """Прямые потомки, упорядоченные по (display_order, title)"""
        if parent_id is None:
            stmt = select(Category).where(col(Category.parent_id).is_(None))
        else:
            stmt = select(Category).where(Category.parent_id == parent_id)
        if not include_deleted:
            stmt = stmt.where(Category.is_deleted == False)
        stmt = stmt.order_by(Category.display_order, Category.title)
        return list(self.db.exec(stmt).all())

    @storage_call
    def find_by_title(self, title: str, exclude_id: Optional[int] = None) -> Optional[Category]:
        stmt = select(Category).where(Category.title == title)
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        return self.db.exec(stmt).first()

    @storage_call
    def find_many(self, **filters: Any) -> List[Category]:
        stmt = self._filtered(select(Category), filters)
        stmt = stmt.order_by(Category.display_order, Category.title)
        return list(self.db.exec(stmt).all())

    @storage_call
    def search(self, keyword: str) -> List[Category]:
        stmt = select(Category).where(Category.is_deleted == False)
        if keyword:
            stmt = stmt.where(col(Category.title).ilike(f"%{keyword}%"))
        return list(self.db.exec(stmt.order_by(Category.title)).all())

    @storage_call
    def query(
        self,
        offset: int,
        limit: int,
        sort_by: str = "title",
        descending: bool = False,
        search: Optional[str] = None,
        **filters: Any
    ) -> Tuple[List[Category], int]:
        stmt = self._filtered(select(Category), filters)
        count_stmt = self._filtered(select(func.count(Category.id)), filters)
        if search:
            stmt = stmt.where(col(Category.title).ilike(f"%{search}%"))
            count_stmt = count_stmt.where(col(Category.title).ilike(f"%{search}%"))

        order_col = SORT_FIELDS[sort_by]
        stmt = stmt.order_by(order_col.desc() if descending else order_col, Category.id)
        items = list(self.db.exec(stmt.offset(offset).limit(limit)).all())
        total = self.db.exec(count_stmt).one()
        return items, total

    @storage_call
    def save(self, category: Category) -> Category:
        self.db.add(category)
        self.db.flush()
        self.db.refresh(category)
        return category

    @storage_call
    def delete_by_id(self, category_id: int) -> bool:
        category = self.db.get(Category, category_id)
        if not category:
            return False
        # Товары остаются без категории (как ON DELETE SET NULL)
        self.db.execute(
            update(Product).where(Product.category_id == category_id).values(category_id=None)
        )
        self.db.delete(category)
        self.db.flush()
        return True

    @storage_call
    def update_many(self, ids: Iterable[int], patch: Dict[str, Any]) -> Tuple[int, int]:
        """Обновляет записи по id -> (matched, modified).

        modified считает только записи, где значение действительно изменилось.
        """
        ids = list(set(ids))
        if not ids:
            return 0, 0
        matched = self.db.exec(
            select(func.count(Category.id)).where(col(Category.id).in_(ids))
        ).one()
        differs = or_(*(getattr(Category, key) != value for key, value in patch.items()))
        stmt = (
            update(Category)
            .where(col(Category.id).in_(ids), differs)
            .values(**patch)
            .execution_options(synchronize_session="fetch")
        )
        result = self.db.execute(stmt)
        self.db.flush()
        return matched, result.rowcount

    @storage_call
    def count(self, **filters: Any) -> int:
        stmt = self._filtered(select(func.count(Category.id)), filters)
        return self.db.exec(stmt).one()

    @storage_call
    def count_by_status(self) -> Dict[str, int]:
        stmt = (
            select(Category.status, func.count(Category.id))
            .where(Category.is_deleted == False)
            .group_by(Category.status)
        )
        return {
            status.value if hasattr(status, "value") else status: total
            for status, total in self.db.exec(stmt).all()
        }

    @storage_call
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    @staticmethod
    def _filtered(stmt, filters: Dict[str, Any]):
        for key, value in filters.items():
            if value is None:
                continue
            stmt = stmt.where(getattr(Category, key) == value)
        return stmt
