"""Category management scoped to one owner."""

from __future__ import annotations

import re
from typing import Any

from ..domain.patches import CategoryPatch
from ..domain.values import require_name
from ..errors import NotFound, ReferenceInUse, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.category import SQLModelCategoryRepository
from ..infra.repositories.scoped import get_owned, name_taken, transaction_references
from ..logging_config import get_logger
from ..models._common import utcnow
from ..models.category import DEFAULT_COLOR, Category
from ..models.transaction import Transaction

logger = get_logger(__name__)

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _color(raw: Any) -> str:
    if not isinstance(raw, str) or not _COLOR_RE.match(raw.strip()):
        raise ValidationError("Invalid color format", field="color")
    return raw.strip()


class CategoryService:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self.repo = SQLModelCategoryRepository(session_factory)

    def create_category(self, *, user_id: int, name: str, color: Any = DEFAULT_COLOR) -> Category:
        name = require_name(name, max_length=64)
        category = Category(user_id=user_id, name=name, color=_color(color or DEFAULT_COLOR))
        with self.session_factory() as session:
            if name_taken(session, Category, name, user_id=user_id):
                raise ValidationError("Category with this name already exists", field="name")
            session.add(category)
            session.flush()
            logger.info("Category created", extra={"user_id": user_id, "category_id": category.id})
            return category

    def update_category(self, *, user_id: int, category_id: int, patch: CategoryPatch) -> Category:
        if patch.is_empty():
            raise ValidationError("No fields to update")
        with self.session_factory() as session:
            category = get_owned(session, Category, category_id, user_id=user_id)
            if category is None:
                raise NotFound("Category not found", field="category_id")
            if patch.is_set("name"):
                name = require_name(patch.name, max_length=64)
                if name_taken(session, Category, name, user_id=user_id, exclude_id=category_id):
                    raise ValidationError("Category with this name already exists", field="name")
                category.name = name
            if patch.is_set("color"):
                category.color = _color(patch.color)
            category.updated_at = utcnow()
            session.add(category)
            session.flush()
            return category

    def delete_category(self, *, user_id: int, category_id: int) -> None:
        with self.session_factory() as session:
            category = get_owned(session, Category, category_id, user_id=user_id)
            if category is None:
                raise NotFound("Category not found", field="category_id")
            if transaction_references(session, Transaction.category_id, category_id, user_id=user_id):
                raise ReferenceInUse("Cannot delete category with existing transactions")
            session.delete(category)
            logger.info("Category deleted", extra={"user_id": user_id, "category_id": category_id})

    def get_category(self, *, user_id: int, category_id: int) -> Category:
        category = self.repo.get_by_id(category_id, user_id=user_id)
        if category is None:
            raise NotFound("Category not found", field="category_id")
        return category

    def list_categories(self, *, user_id: int) -> list[Category]:
        return self.repo.list_all(user_id=user_id)
