"""
Импорт категорий из JSON-файла (список объектов CategoryCreate)
Запуск: python -m app.scripts.import_categories categories.json
"""
import json
import logging
import sys
from pathlib import Path
from typing import List
from pydantic import TypeAdapter
from sqlmodel import Session
from app.core.logging import setup_logging
from app.db.session import engine, create_tables
from app.repositories.categories import CategoryRepository
from app.schemas.category import CategoryCreate
from app.services.categories import CategoryService
from app.services.product_counter import ProductCounter

logger = logging.getLogger(__name__)


def load_categories(path: Path) -> List[CategoryCreate]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return TypeAdapter(List[CategoryCreate]).validate_python(data)


def import_categories(session: Session, items: List[CategoryCreate]) -> int:
    service = CategoryService(CategoryRepository(session), ProductCounter(session))
    return len(service.import_bulk(items))


def main(argv=None):
    argv = argv if argv is not None else sys.argv[1:]
    if len(argv) != 1:
        print("Usage: python -m app.scripts.import_categories <file.json>")
        return 2

    setup_logging()
    logger.info("Creating tables...")
    create_tables()

    items = load_categories(Path(argv[0]))
    with Session(engine) as session:
        created = import_categories(session, items)
    logger.info(f"Done! Imported {created} categories")
    return 0


if __name__ == "__main__":
    sys.exit(main())
