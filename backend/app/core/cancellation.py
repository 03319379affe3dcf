import time
from typing import Optional
from app.core.exceptions import OperationCancelled


class Deadline:
    """Дедлайн / сигнал отмены для операций над деревом категорий"""

    def __init__(self, timeout: Optional[float] = None):
        self._expires_at = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def expired(self) -> bool:
        if self._cancelled:
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self, category_id: Optional[int] = None):
        if self.expired:
            raise OperationCancelled(category_id=category_id)


def check_deadline(deadline: Optional[Deadline], category_id: Optional[int] = None):
    if deadline is not None:
        deadline.check(category_id)
