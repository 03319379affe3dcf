from fastapi import status
from typing import Optional


class CategoryError(Exception):
    """Базовая ошибка операций с категориями"""
    kind = "CategoryError"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, detail: str, category_id: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.category_id = category_id

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "detail": self.detail,
            "category_id": self.category_id,
            "retryable": self.retryable,
        }


class NotFound(CategoryError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, detail: str = "Category not found", category_id: Optional[int] = None):
        super().__init__(detail, category_id)


class ValidationFailed(CategoryError):
    kind = "ValidationFailed"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class CycleDetected(CategoryError):
    kind = "CycleDetected"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str = "Cycle detected in category hierarchy", category_id: Optional[int] = None):
        super().__init__(detail, category_id)


class CycleOrDepthExceeded(CycleDetected):
    kind = "CycleOrDepthExceeded"


class PartiallyApplied(CategoryError):
    """Каскадная операция прервана после частичного применения"""
    kind = "PartiallyApplied"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, completed: int, detail: Optional[str] = None, category_id: Optional[int] = None):
        super().__init__(detail or f"Operation interrupted after {completed} changes", category_id)
        self.completed = completed

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["completed"] = self.completed
        return data


class OperationCancelled(CategoryError):
    kind = "OperationCancelled"
    status_code = status.HTTP_408_REQUEST_TIMEOUT

    def __init__(self, detail: str = "Operation cancelled", category_id: Optional[int] = None):
        super().__init__(detail, category_id)
        self.completed = 0


class StorageUnavailable(CategoryError):
    kind = "StorageUnavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def __init__(self, detail: str = "Storage unavailable", category_id: Optional[int] = None):
        super().__init__(detail, category_id)
