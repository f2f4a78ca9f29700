"""Category lifecycle: admin-managed, soft-deleted by deactivation."""

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from npo_calendar.database import transaction
from npo_calendar.errors import ConflictError, Forbidden, NotFound, ValidationError
from npo_calendar.models.category import Category as CategoryModel
from npo_calendar.models.event import Event as EventModel
from npo_calendar.schemas.category import CategoryCreate, CategoryUpdate
from npo_calendar.services.access import Principal, can_manage_categories

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for event categories."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_categories(
        self, principal: Principal, include_inactive: bool = False
    ) -> list[CategoryModel]:
        """List categories in display order; only admins see deactivated ones."""
        query = self.db.query(CategoryModel)
        if not (include_inactive and can_manage_categories(principal)):
            query = query.filter(CategoryModel.is_active.is_(True))
        return query.order_by(CategoryModel.display_order.asc(), CategoryModel.name.asc()).all()

    def get_category(self, principal: Principal, category_id: uuid.UUID) -> CategoryModel:
        """Get a category; deactivated ones read as missing to everyone but admins."""
        category = self._load(category_id)
        if not category.is_active and not can_manage_categories(principal):
            raise NotFound("Category not found")
        return category

    def create_category(self, principal: Principal, data: CategoryCreate) -> CategoryModel:
        self._require_admin(principal)
        with transaction(self.db):
            self._check_name_free(data.name)
            category = CategoryModel(**data.model_dump())
            self.db.add(category)
        logger.info(f"Created category '{category.name}'")
        return category

    def update_category(
        self, principal: Principal, category_id: uuid.UUID, data: CategoryUpdate
    ) -> CategoryModel:
        self._require_admin(principal)
        category = self._load(category_id)
        update_data = data.model_dump(exclude_unset=True)
        for field in ("name", "color", "display_order", "is_active"):
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"{field} cannot be cleared")

        with transaction(self.db):
            if update_data.get("name") not in (None, category.name):
                self._check_name_free(update_data["name"])
            for field, value in update_data.items():
                setattr(category, field, value)
        return category

    def reorder_categories(
        self, principal: Principal, category_ids: list[uuid.UUID]
    ) -> list[CategoryModel]:
        """Set display order from the position of each id in ``category_ids``."""
        self._require_admin(principal)
        if len(set(category_ids)) != len(category_ids):
            raise ValidationError("Category ids must be unique")

        categories = (
            self.db.query(CategoryModel).filter(CategoryModel.id.in_(category_ids)).all()
        )
        by_id = {category.id: category for category in categories}
        missing = [str(category_id) for category_id in category_ids if category_id not in by_id]
        if missing:
            raise ValidationError(f"Unknown categories: {', '.join(missing)}")

        with transaction(self.db):
            for position, category_id in enumerate(category_ids):
                by_id[category_id].display_order = position
        return [by_id[category_id] for category_id in category_ids]

    def deactivate_category(self, principal: Principal, category_id: uuid.UUID) -> None:
        self._require_admin(principal)
        category = self._load(category_id)
        with transaction(self.db):
            category.is_active = False
        logger.info(f"Deactivated category {category_id}")

    def purge_category(self, principal: Principal, category_id: uuid.UUID) -> None:
        """Delete a category outright, clearing it from events instead of cascading."""
        self._require_admin(principal)
        category = self._load(category_id)
        with transaction(self.db):
            cleared = (
                self.db.query(EventModel)
                .filter(EventModel.category_id == category_id)
                .update({EventModel.category_id: None}, synchronize_session="fetch")
            )
            self.db.delete(category)
        logger.info(f"Purged category {category_id}, cleared from {cleared} events")

    def seed_categories(self, configured: list[dict[str, Any]]) -> int:
        """Create configured categories that do not exist yet. Returns how many were added."""
        existing = {name for (name,) in self.db.query(CategoryModel.name).all()}
        added = 0
        with transaction(self.db):
            for position, entry in enumerate(configured):
                data = CategoryCreate(**{"display_order": position, **entry})
                if data.name in existing:
                    continue
                self.db.add(CategoryModel(**data.model_dump()))
                existing.add(data.name)
                added += 1
        if added:
            logger.info(f"Seeded {added} categories")
        return added

    def _load(self, category_id: uuid.UUID) -> CategoryModel:
        category = self.db.get(CategoryModel, category_id)
        if not category:
            raise NotFound("Category not found")
        return category

    def _check_name_free(self, name: str) -> None:
        existing = self.db.query(CategoryModel).filter(CategoryModel.name == name).first()
        if existing:
            raise ConflictError("Category with this name already exists")

    def _require_admin(self, principal: Principal) -> None:
        if not can_manage_categories(principal):
            raise Forbidden("Only admins can manage categories")
