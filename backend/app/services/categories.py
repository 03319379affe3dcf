import logging
import re
from datetime import datetime
from math import ceil
from typing import Any, Dict, List, Optional
from app.core.config import settings
from app.core.exceptions import CycleDetected, NotFound, ValidationFailed
from app.models.category import Category, CategoryStatus
from app.repositories.categories import CategoryRepository, SORT_FIELDS
from app.schemas.category import CategoryCreate, CategoryUpdate, DisplayOrderItem
from app.services.product_counter import ProductCounter

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MAX_PAGE_SIZE = 100
NON_NULLABLE_FIELDS = ("title", "slug", "status", "is_featured", "display_order", "visibility")


def slugify(text: str) -> str:
    """Slug из названия: латиница, цифры и дефисы"""
    text = str(text or "").strip().lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return re.sub(r"-+", "-", text).strip("-")


class CategoryService:
    def __init__(self, repository: CategoryRepository, products: ProductCounter):
        self.repo = repository
        self.products = products

    # === CRUD ===

    def create(self, data: CategoryCreate, actor_id: Optional[int] = None, commit: bool = True) -> Category:
        values = data.model_dump(exclude={"parent_title"})
        values["title"] = self._clean_title(values["title"])
        values["slug"] = self._clean_slug(values.get("slug") or values["title"])

        if data.parent_title and values["parent_id"] is None:
            parent = self.repo.find_by_title(data.parent_title.strip())
            if not parent:
                raise ValidationFailed(f"Parent category '{data.parent_title}' not found")
            values["parent_id"] = parent.id

        if self.repo.find_by_title(values["title"]):
            raise ValidationFailed(f"Title '{values['title']}' already exists")
        if values["parent_id"] is not None:
            self._check_parent(values["parent_id"])

        category = Category(**values, created_by=actor_id, updated_by=actor_id)
        try:
            category = self.repo.save(category)
            if commit:
                self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Category {category.id} '{category.title}' created")
        return category

    def get(self, category_id: int, include_deleted: bool = False) -> Category:
        category = self.repo.find_by_id(category_id)
        if not category or (category.is_deleted and not include_deleted):
            raise NotFound(category_id=category_id)
        return category

    def update(self, category_id: int, data: CategoryUpdate, actor_id: Optional[int] = None) -> Category:
        category = self.get(category_id)
        update_data = data.model_dump(exclude_unset=True)

        # NOT NULL-колонки нельзя сбросить в null
        for key in NON_NULLABLE_FIELDS:
            if key in update_data and update_data[key] is None:
                raise ValidationFailed(f"Field '{key}' cannot be null", category_id)

        if "title" in update_data:
            update_data["title"] = self._clean_title(update_data["title"])
            if self.repo.find_by_title(update_data["title"], exclude_id=category_id):
                raise ValidationFailed(f"Title '{update_data['title']}' already exists", category_id)
        if "slug" in update_data:
            update_data["slug"] = self._clean_slug(update_data["slug"])

        if update_data.get("parent_id") is not None:
            parent_id = update_data["parent_id"]
            if parent_id == category_id:
                raise CycleDetected("Category cannot be its own parent", category_id)
            self._check_parent(parent_id)
            if self._is_descendant(parent_id, category_id):
                raise CycleDetected("Cannot set a descendant category as parent", category_id)

        for key, value in update_data.items():
            setattr(category, key, value)
        category.updated_by = actor_id if actor_id is not None else category.updated_by
        category.updated_at = datetime.utcnow()

        try:
            category = self.repo.save(category)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return category

    # === Списки ===

    def list(
        self,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "title",
        sort_order: str = "asc",
        search: Optional[str] = None,
        status: Optional[CategoryStatus] = None,
        parent_id: Optional[int] = None,
        include_deleted: bool = False,
    ) -> Dict[str, Any]:
        if page < 1:
            raise ValidationFailed("page must be >= 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationFailed(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if sort_by not in SORT_FIELDS:
            raise ValidationFailed(f"Cannot sort by '{sort_by}'")
        if sort_order not in ("asc", "desc"):
            raise ValidationFailed("sort_order must be 'asc' or 'desc'")

        filters = {"status": status, "parent_id": parent_id}
        if not include_deleted:
            filters["is_deleted"] = False

        items, total = self.repo.query(
            offset=(page - 1) * limit,
            limit=limit,
            sort_by=sort_by,
            descending=sort_order == "desc",
            search=search,
            **filters
        )
        count_status = settings.CATEGORY_PRODUCT_COUNT_STATUS
        return {
            "results": [self._with_count(c, count_status) for c in items],
            "total": total,
            "page": page,
            "limit": limit,
            "pages": ceil(total / limit) if total > 0 else 1,
        }

    def active(self) -> List[Dict[str, Any]]:
        """Активные видимые категории с количеством активных товаров"""
        categories = self.repo.find_many(status=CategoryStatus.ACTIVE, visibility=True, is_deleted=False)
        return [self._with_count(c, "active") for c in categories]

    def featured(self) -> List[Category]:
        return self.repo.find_many(
            is_featured=True, status=CategoryStatus.ACTIVE, visibility=True, is_deleted=False
        )

    def search(self, keyword: str) -> List[Category]:
        return self.repo.search((keyword or "").strip())

    # === Статистика ===

    def statistics(self) -> Dict[str, int]:
        return {
            "total": self.repo.count(is_deleted=False),
            "active": self.repo.count(status=CategoryStatus.ACTIVE, is_deleted=False),
            "inactive": self.repo.count(status=CategoryStatus.INACTIVE, is_deleted=False),
            "featured": self.repo.count(is_featured=True, is_deleted=False),
            "deleted": self.repo.count(is_deleted=True),
        }

    def aggregate_by_status(self) -> Dict[str, int]:
        return self.repo.count_by_status()

    # === Массовые операции ===

    def batch_update_display_orders(self, items: List[DisplayOrderItem]) -> Dict[str, int]:
        matched = modified = 0
        try:
            for item in items:
                m, n = self.repo.update_many([item.id], {"display_order": item.display_order})
                matched += m
                modified += n
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return {"matched_count": matched, "modified_count": modified}

    def soft_delete_many(self, ids: List[int]) -> Dict[str, int]:
        """Мягкое удаление списка категорий, без каскада"""
        try:
            matched, modified = self.repo.update_many(ids, {"is_deleted": True})
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Soft-deleted {modified} of {matched} categories")
        return {"matched_count": matched, "modified_count": modified}

    def import_bulk(self, items: List[CategoryCreate], actor_id: Optional[int] = None) -> List[Category]:
        """Импорт пакетом: всё или ничего"""
        created = []
        try:
            for item in items:
                created.append(self.create(item, actor_id=actor_id, commit=False))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Imported {len(created)} categories")
        return created

    # === Helpers ===

    def _with_count(self, category: Category, status: str) -> Dict[str, Any]:
        data = category.model_dump()
        data["product_count"] = self.products.count(category.id, status)
        return data

    def _check_parent(self, parent_id: int):
        parent = self.repo.find_by_id(parent_id)
        if not parent or parent.is_deleted:
            raise ValidationFailed("Parent category not found", parent_id)

    def _is_descendant(self, candidate_id: int, ancestor_id: int) -> bool:
        """Является ли candidate_id потомком ancestor_id (подъём по parent_id)"""
        visited = set()
        current = self.repo.find_by_id(candidate_id)
        while current and current.parent_id is not None:
            if current.parent_id == ancestor_id:
                return True
            if current.parent_id in visited:
                raise CycleDetected("Cycle detected in category hierarchy", current.parent_id)
            visited.add(current.parent_id)
            current = self.repo.find_by_id(current.parent_id)
        return False

    @staticmethod
    def _clean_title(title: str) -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationFailed("Title must not be empty")
        return title

    @staticmethod
    def _clean_slug(slug: str) -> str:
        slug = slugify(slug)
        if not slug:
            raise ValidationFailed("Slug is required: title has no latin letters or digits")
        if not SLUG_RE.match(slug):
            raise ValidationFailed(f"Invalid slug '{slug}'")
        return slug
