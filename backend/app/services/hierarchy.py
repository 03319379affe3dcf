"""
Операции над деревом категорий: дерево, хлебные крошки, подсчёт потомков,
каскадное удаление и массовая смена статуса.

Единственный источник истины о структуре дерева - parent_id. Любой обход
ведёт множество посещённых узлов: испорченный граф (цикл в parent_id)
завершается ошибкой CycleDetected, а не бесконечной рекурсией.

Чтение не блокирует данные: при параллельном изменении обход видит
"рваный" снимок, пропавшие узлы просто пропускаются.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from app.core.cancellation import Deadline, check_deadline
from app.core.config import settings
from app.core.exceptions import (
    CycleDetected, CycleOrDepthExceeded, NotFound,
    PartiallyApplied, ValidationFailed,
)
from app.models.category import Category, CategoryStatus
from app.repositories.categories import CategoryRepository

logger = logging.getLogger(__name__)

DELETE_MODES = ("soft", "hard")


class CategoryHierarchy:
    def __init__(
        self,
        repository: CategoryRepository,
        max_depth: Optional[int] = None,
        delete_mode: Optional[str] = None,
        atomic: Optional[bool] = None,
    ):
        self.repo = repository
        self.max_depth = max_depth if max_depth is not None else settings.CATEGORY_MAX_TREE_DEPTH
        self.delete_mode = delete_mode or settings.CATEGORY_DELETE_MODE
        self.atomic = atomic if atomic is not None else settings.CATEGORY_ATOMIC_CASCADE

    # === Чтение ===

    def build_tree(self, root_id: Optional[int] = None, deadline: Optional[Deadline] = None) -> List[Dict[str, Any]]:
        """Лес от корневых категорий, либо поддерево с корнем root_id.

        Братья упорядочены по (display_order, title).
        """
        if root_id is None:
            return self._build_level(None, 1, set(), deadline)

        root = self._get_live(root_id)
        node = root.model_dump()
        node["children"] = self._build_level(root.id, 2, {root.id}, deadline)
        return [node]

    def _build_level(self, parent_id, depth, visited, deadline):
        check_deadline(deadline, parent_id)
        if depth > self.max_depth:
            logger.warning(f"Tree depth limit {self.max_depth} exceeded under category {parent_id}")
            raise CycleOrDepthExceeded(
                f"Tree depth exceeds {self.max_depth} levels", category_id=parent_id
            )

        nodes = []
        for child in self.repo.find_by_parent(parent_id):
            if child.id in visited:
                logger.warning(f"Cycle detected at category {child.id}")
                raise CycleOrDepthExceeded(
                    f"Category {child.id} is its own ancestor", category_id=child.id
                )
            visited.add(child.id)
            node = child.model_dump()
            node["children"] = self._build_level(child.id, depth + 1, visited, deadline)
            nodes.append(node)
        return nodes

    def get_breadcrumb(self, category_id: int, deadline: Optional[Deadline] = None) -> List[Dict[str, str]]:
        """Путь предков от корня, без самой категории"""
        current = self._get_live(category_id)
        visited = {current.id}
        path = []

        while current.parent_id is not None:
            check_deadline(deadline, category_id)
            parent_id = current.parent_id
            if parent_id in visited:
                logger.warning(f"Cycle detected in ancestors of category {category_id}")
                raise CycleDetected(
                    f"Category {parent_id} repeats in ancestors of {category_id}", category_id=parent_id
                )
            visited.add(parent_id)

            parent = self.repo.find_by_id(parent_id)
            if parent is None:
                # Родитель удалён параллельно
                break
            path.insert(0, {"title": parent.title, "slug": parent.slug})
            current = parent

        return path

    def count_descendants(self, category_id: int, deadline: Optional[Deadline] = None) -> int:
        """Все потомки (без самой категории), уровень за уровнем"""
        self._get_live(category_id)
        upper_bound = self.repo.count()
        visited = {category_id}
        frontier = [category_id]
        total = 0

        while frontier:
            next_level = []
            for parent_id in frontier:
                check_deadline(deadline, category_id)
                for child in self.repo.find_by_parent(parent_id):
                    if child.id in visited or len(visited) >= upper_bound:
                        logger.warning(f"Cycle detected below category {category_id}")
                        raise CycleDetected(
                            f"Descendants of {category_id} revisit category {child.id}", category_id=child.id
                        )
                    visited.add(child.id)
                    next_level.append(child.id)
            total += len(next_level)
            frontier = next_level

        return total

    # === Изменение ===

    def remove_with_descendants(
        self,
        category_id: int,
        mode: Optional[str] = None,
        actor_id: Optional[int] = None,
        deadline: Optional[Deadline] = None,
    ) -> int:
        """Каскадное удаление: сначала потомки, затем сама категория.

        mode="soft" ставит is_deleted всему поддереву, mode="hard" удаляет записи.
        При atomic=True всё выполняется в одной транзакции; иначе каскад
        best-effort: узлы фиксируются по одному, а прерывание после частичного
        применения даёт PartiallyApplied с числом обработанных узлов.
        Возвращает число затронутых узлов (сама категория + потомки).
        """
        mode = mode or self.delete_mode
        if mode not in DELETE_MODES:
            raise ValidationFailed(f"Unknown delete mode: {mode}", category_id=category_id)

        if self.repo.find_by_id(category_id) is None:
            raise NotFound(category_id=category_id)

        # Только чтение: отмена здесь ничего не меняет
        order = self._descendants_first(category_id, deadline)

        completed = 0
        try:
            for node_id in order:
                check_deadline(deadline, node_id)
                if self._remove_one(node_id, mode, actor_id):
                    completed += 1
                    if not self.atomic:
                        self.repo.commit()
            if self.atomic:
                self.repo.commit()
        except Exception as e:
            self.repo.rollback()
            if self.atomic or completed == 0:
                raise
            logger.error(f"Cascade {mode} delete of category {category_id} stopped after {completed} nodes: {e}")
            raise PartiallyApplied(completed, category_id=category_id) from e

        logger.info(f"Category {category_id} {mode}-deleted with descendants, {completed} nodes affected")
        return completed

    def _descendants_first(self, category_id, deadline):
        """id поддерева так, что каждый потомок идёт раньше своего предка"""
        visited = {category_id}
        preorder = []
        stack = [category_id]
        while stack:
            check_deadline(deadline, category_id)
            node_id = stack.pop()
            preorder.append(node_id)
            for child in self.repo.find_by_parent(node_id, include_deleted=True):
                if child.id in visited:
                    logger.warning(f"Cycle detected below category {category_id}")
                    raise CycleDetected(
                        f"Subtree of {category_id} revisits category {child.id}", category_id=child.id
                    )
                visited.add(child.id)
                stack.append(child.id)
        preorder.reverse()
        return preorder

    def _remove_one(self, node_id, mode, actor_id) -> bool:
        if mode == "hard":
            return self.repo.delete_by_id(node_id)

        category = self.repo.find_by_id(node_id)
        if category is None:
            return False
        category.is_deleted = True
        category.updated_by = actor_id if actor_id is not None else category.updated_by
        category.updated_at = datetime.utcnow()
        self.repo.save(category)
        return True

    def bulk_update_status(
        self,
        ids: Iterable[int],
        status: Any,
        deadline: Optional[Deadline] = None,
    ) -> Dict[str, int]:
        """Плоская смена статуса, без каскада на потомков.

        modified_count считает только реально изменённые записи: повторный
        вызов с тем же статусом даёт 0.
        """
        try:
            status = CategoryStatus(status)
        except ValueError:
            raise ValidationFailed(f"Unknown status: {status}")

        ids = set(ids)
        if not ids:
            raise ValidationFailed("ids must not be empty")

        check_deadline(deadline)
        try:
            matched, modified = self.repo.update_many(ids, {"status": status})
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Bulk status '{status.value}': matched {matched}, modified {modified}")
        return {"matched_count": matched, "modified_count": modified}

    def _get_live(self, category_id: int) -> Category:
        category = self.repo.find_by_id(category_id)
        if category is None or category.is_deleted:
            raise NotFound(category_id=category_id)
        return category
