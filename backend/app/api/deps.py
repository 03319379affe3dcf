from fastapi import Depends, Header
from sqlmodel import Session
from typing import Optional
from app.db.session import engine
from app.core.cancellation import Deadline
from app.core.config import settings
from app.repositories.categories import CategoryRepository
from app.services.categories import CategoryService
from app.services.hierarchy import CategoryHierarchy
from app.services.product_counter import ProductCounter


def get_db():
    with Session(engine) as session:
        yield session


def get_repository(db: Session = Depends(get_db)) -> CategoryRepository:
    return CategoryRepository(db)


def get_category_service(
    db: Session = Depends(get_db),
    repo: CategoryRepository = Depends(get_repository)
) -> CategoryService:
    return CategoryService(repo, ProductCounter(db))


def get_hierarchy(repo: CategoryRepository = Depends(get_repository)) -> CategoryHierarchy:
    return CategoryHierarchy(repo)


def get_deadline() -> Optional[Deadline]:
    if settings.CATEGORY_OPERATION_TIMEOUT is None:
        return None
    return Deadline(settings.CATEGORY_OPERATION_TIMEOUT)


def get_actor_id(x_user_id: Optional[int] = Header(None)) -> Optional[int]:
    """Id пользователя для audit-полей (авторизация вне этого сервиса)"""
    return x_user_id
