"""Category API endpoints."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from npo_calendar.api.deps import get_principal
from npo_calendar.database import get_db
from npo_calendar.models.category import Category as CategoryModel
from npo_calendar.schemas.category import (
    Category,
    CategoryCreate,
    CategoryReorder,
    CategoryUpdate,
)
from npo_calendar.services.access import Principal
from npo_calendar.services.categories import CategoryService

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


@router.post("/", response_model=Category, status_code=201)
def create_category(
    category: CategoryCreate,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> CategoryModel:
    """Create a new category."""
    return CategoryService(db).create_category(principal, category)


@router.get("/", response_model=list[Category])
def list_categories(
    include_inactive: bool = False,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[CategoryModel]:
    """List categories in display order."""
    return CategoryService(db).list_categories(principal, include_inactive)


@router.put("/order", response_model=list[Category])
def reorder_categories(
    reorder: CategoryReorder,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[CategoryModel]:
    """Reorder categories."""
    return CategoryService(db).reorder_categories(principal, reorder.category_ids)


@router.get("/{category_id}", response_model=Category)
def get_category(
    category_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> CategoryModel:
    """Get a category by ID."""
    return CategoryService(db).get_category(principal, category_id)


@router.patch("/{category_id}", response_model=Category)
def update_category(
    category_id: uuid.UUID,
    category_update: CategoryUpdate,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> CategoryModel:
    """Update a category."""
    return CategoryService(db).update_category(principal, category_id, category_update)


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: uuid.UUID,
    purge: bool = False,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> None:
    """Deactivate a category, or delete it outright with ``purge``."""
    service = CategoryService(db)
    if purge:
        service.purge_category(principal, category_id)
    else:
        service.deactivate_category(principal, category_id)
