from fastapi import APIRouter, Depends, Query
from typing import List, Literal, Optional
from app.api.deps import get_category_service, get_hierarchy, get_deadline, get_actor_id
from app.core.cancellation import Deadline
from app.models.category import CategoryStatus
from app.schemas.category import (
    CategoryResponse, CategoryCreate, CategoryUpdate, CategoryListResponse,
    BulkStatusUpdate, BulkIdsRequest, BatchDisplayOrderUpdate, BulkUpdateResult,
    RemovalResult, CategoryStatistics, StatusAggregate,
)
from app.services.categories import CategoryService
from app.services.hierarchy import CategoryHierarchy

router = APIRouter(prefix="/api/admin/categories", tags=["admin-categories"])


@router.get("/", response_model=CategoryListResponse)
def list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: Literal["title", "created_at", "updated_at", "display_order"] = "title",
    sort_order: Literal["asc", "desc"] = "asc",
    search: Optional[str] = Query(None, max_length=100),
    status: Optional[CategoryStatus] = None,
    parent_id: Optional[int] = None,
    include_deleted: bool = False,
    service: CategoryService = Depends(get_category_service)
):
    """Все категории с количеством товаров (админ)"""
    return service.list(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search,
        status=status,
        parent_id=parent_id,
        include_deleted=include_deleted,
    )


@router.get("/stats", response_model=CategoryStatistics)
def category_stats(service: CategoryService = Depends(get_category_service)):
    return service.statistics()


@router.get("/aggregate-status", response_model=StatusAggregate)
def aggregate_status(service: CategoryService = Depends(get_category_service)):
    return {"statuses": service.aggregate_by_status()}


@router.post("/", response_model=CategoryResponse, status_code=201)
def create_category(
    data: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
    actor_id: Optional[int] = Depends(get_actor_id)
):
    return service.create(data, actor_id=actor_id)


# === Bulk ===

@router.patch("/bulk-status", response_model=BulkUpdateResult)
def bulk_update_status(
    data: BulkStatusUpdate,
    hierarchy: CategoryHierarchy = Depends(get_hierarchy),
    deadline: Optional[Deadline] = Depends(get_deadline)
):
    """Массовая смена статуса (без каскада на дочерние)"""
    return hierarchy.bulk_update_status(data.ids, data.status, deadline=deadline)


@router.patch("/batch-update-display-orders", response_model=BulkUpdateResult)
def batch_update_display_orders(
    data: BatchDisplayOrderUpdate,
    service: CategoryService = Depends(get_category_service)
):
    return service.batch_update_display_orders(data.items)


@router.post("/soft-delete-many", response_model=BulkUpdateResult)
def soft_delete_many(
    data: BulkIdsRequest,
    service: CategoryService = Depends(get_category_service)
):
    return service.soft_delete_many(data.ids)


@router.post("/import-bulk", response_model=List[CategoryResponse], status_code=201)
def import_bulk(
    data: List[CategoryCreate],
    service: CategoryService = Depends(get_category_service),
    actor_id: Optional[int] = Depends(get_actor_id)
):
    return service.import_bulk(data, actor_id=actor_id)


# === Single ===

@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service)
):
    return service.get(category_id, include_deleted=True)


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    data: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
    actor_id: Optional[int] = Depends(get_actor_id)
):
    return service.update(category_id, data, actor_id=actor_id)


@router.delete("/{category_id}", response_model=RemovalResult)
def delete_category(
    category_id: int,
    mode: Optional[Literal["soft", "hard"]] = None,
    hierarchy: CategoryHierarchy = Depends(get_hierarchy),
    actor_id: Optional[int] = Depends(get_actor_id),
    deadline: Optional[Deadline] = Depends(get_deadline)
):
    """Удаление категории вместе со всеми дочерними"""
    mode = mode or hierarchy.delete_mode
    removed = hierarchy.remove_with_descendants(
        category_id, mode=mode, actor_id=actor_id, deadline=deadline
    )
    return {"category_id": category_id, "mode": mode, "removed": removed}
