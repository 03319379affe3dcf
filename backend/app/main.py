from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.exceptions import CategoryError
from app.core.logging import setup_logging

setup_logging()

app = FastAPI(
    title="Category Hierarchy API",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CategoryError)
def category_error_handler(request: Request, exc: CategoryError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Import routers after app creation to avoid circular imports
from app.api import categories, admin_categories

# Routers - all already have /api prefix
app.include_router(categories.router)
app.include_router(admin_categories.router)


@app.get("/")
def root():
    return {"status": "ok", "service": "category-hierarchy-api"}


@app.get("/api/health")
def health_check():
    return {
        "status": "healthy",
        "env": settings.ENV
    }
