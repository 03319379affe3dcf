from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from app.api.deps import get_category_service, get_hierarchy, get_deadline
from app.core.cancellation import Deadline
from app.schemas.category import (
    CategoryResponse, CategoryWithCount, CategoryTreeNode, BreadcrumbItem, DescendantCount
)
from app.services.categories import CategoryService
from app.services.hierarchy import CategoryHierarchy

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("/", response_model=List[CategoryWithCount])
def list_categories(service: CategoryService = Depends(get_category_service)):
    """Список активных категорий"""
    return service.active()


@router.get("/featured", response_model=List[CategoryResponse])
def featured_categories(service: CategoryService = Depends(get_category_service)):
    return service.featured()


@router.get("/search", response_model=List[CategoryResponse])
def search_categories(
    q: str = Query("", max_length=100),
    service: CategoryService = Depends(get_category_service)
):
    return service.search(q)


@router.get("/tree", response_model=List[CategoryTreeNode])
def category_tree(
    parent_id: Optional[int] = None,
    hierarchy: CategoryHierarchy = Depends(get_hierarchy),
    deadline: Optional[Deadline] = Depends(get_deadline)
):
    """Дерево категорий (весь лес или поддерево)"""
    return hierarchy.build_tree(parent_id, deadline=deadline)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    return service.get(category_id)


@router.get("/{category_id}/breadcrumb", response_model=List[BreadcrumbItem])
def category_breadcrumb(
    category_id: int,
    hierarchy: CategoryHierarchy = Depends(get_hierarchy),
    deadline: Optional[Deadline] = Depends(get_deadline)
):
    return hierarchy.get_breadcrumb(category_id, deadline=deadline)


@router.get("/{category_id}/descendants/count", response_model=DescendantCount)
def count_descendants(
    category_id: int,
    hierarchy: CategoryHierarchy = Depends(get_hierarchy),
    deadline: Optional[Deadline] = Depends(get_deadline)
):
    return {
        "category_id": category_id,
        "descendants": hierarchy.count_descendants(category_id, deadline=deadline),
    }
