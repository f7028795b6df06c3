"""Category hierarchy rules: color inheritance and guarded cascading delete."""

import logging
from typing import Any, Mapping

from finledger.exceptions import InvariantViolationError, ReferentialBlockError
from finledger.models.base import Caller
from finledger.models.ledger import Category, CategoryType, Transaction
from finledger.services import invariants
from finledger.services.base import BaseService, check_update_keys, new_id, require_caller
from finledger.store.base import DeleteStep, Step, UpdateStep

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "color", "parent_id")


def _parse_type(value: Any) -> CategoryType:
    try:
        return CategoryType(value)
    except ValueError:
        raise InvariantViolationError(f"Unknown category type {value!r}") from None


class CategoryService(BaseService):
    """Two-level category taxonomy.

    A child attached to a parent always carries the parent's color; a
    parent's color change is pushed down to its children in the same
    atomic batch.
    """

    def create_category(
        self,
        caller: Caller | None,
        category_type: CategoryType | str,
        name: str,
        color: str | None = None,
        parent_id: str | None = None,
    ) -> Category:
        caller = require_caller(caller)
        category_type = _parse_type(category_type)
        name = invariants.validate_name(name, invariants.CATEGORY_NAME_LENGTH, "Category")
        if category_type == CategoryType.PARENT and parent_id is not None:
            raise InvariantViolationError("Parent categories cannot have a parent")

        final_color = invariants.check_category_color(category_type, color, parent_id)
        if final_color is None:
            # Caller-supplied color is ignored for children with a parent
            final_color = self._get_parent(caller, parent_id).color

        category = Category(
            category_id=new_id(),
            user_id=caller.user_id,
            name=name,
            color=final_color,
            category_type=category_type,
            parent_id=parent_id,
        )
        record = self.store.insert_record(Category.TABLE, category.to_record())
        logger.info("Created %s category %s", category_type.value, category.category_id)
        return Category.from_record(record)

    def get_category(self, caller: Caller | None, category_id: str) -> Category:
        return self._get_category(require_caller(caller), category_id)

    def list_categories(self, caller: Caller | None) -> list[Category]:
        """List the caller's categories sorted by name."""
        caller = require_caller(caller)
        records = self.store.list_records(Category.TABLE, {"user_id": caller.user_id}, order_by="name")
        return [Category.from_record(r) for r in records]

    def update_category(self, caller: Caller | None, category_id: str, updates: Mapping[str, Any]) -> Category:
        """Rename, recolor or re-parent a category.

        Re-parenting overwrites the color with the new parent's. A color
        given for a child that keeps its parent is ignored. A parent's new
        color is copied to every child.
        """
        caller = require_caller(caller)
        check_update_keys(updates, UPDATABLE_FIELDS)
        category = self._get_category(caller, category_id)

        fields: dict[str, Any] = {}
        if "name" in updates:
            fields["name"] = invariants.validate_name(
                updates["name"], invariants.CATEGORY_NAME_LENGTH, "Category"
            )

        parent_id = updates.get("parent_id", category.parent_id)
        if "parent_id" in updates:
            if parent_id is not None:
                if category.category_type == CategoryType.PARENT:
                    raise InvariantViolationError("Parent categories cannot have a parent")
                if parent_id == category_id:
                    raise InvariantViolationError("A category cannot be its own parent")
            fields["parent_id"] = parent_id

        if category.category_type == CategoryType.CHILD and parent_id is not None:
            parent_color = self._get_parent(caller, parent_id).color
            if parent_color != category.color:
                fields["color"] = parent_color
        elif "color" in updates:
            color = invariants.check_category_color(category.category_type, updates["color"], None)
            fields["color"] = color

        if not fields:
            return category

        steps: list[Step] = [UpdateStep(Category.TABLE, category_id, fields)]
        if category.category_type == CategoryType.PARENT and "color" in fields:
            for child in self.store.list_records(Category.TABLE, {"parent_id": category_id}):
                steps.append(UpdateStep(Category.TABLE, child["id"], {"color": fields["color"]}))
        self.store.run_atomic(steps)
        logger.info("Updated category %s (%d records touched)", category_id, len(steps))
        return self._get_category(caller, category_id)

    def delete_category(self, caller: Caller | None, category_id: str) -> list[str]:
        """Delete a category and, for a parent, all of its children.

        Nothing is deleted if any transaction references the category or
        one of its children. Returns the ids removed, children first.
        """
        caller = require_caller(caller)
        category = self._get_category(caller, category_id)
        children = self._children(category)
        self._check_unreferenced(category, children)

        removed = [child["id"] for child in children] + [category_id]
        self.store.run_atomic([DeleteStep(Category.TABLE, record_id) for record_id in removed])
        logger.info("Deleted category %s with %d children", category_id, len(children))
        return removed

    def is_deletable(self, caller: Caller | None, category_id: str) -> bool:
        """True when no transaction references the category or any of its children."""
        caller = require_caller(caller)
        category = self._get_category(caller, category_id)
        try:
            self._check_unreferenced(category, self._children(category))
        except ReferentialBlockError:
            return False
        return True

    def _children(self, category: Category) -> list[dict[str, Any]]:
        if category.category_type != CategoryType.PARENT:
            return []
        return self.store.list_records(Category.TABLE, {"parent_id": category.category_id})

    def _check_unreferenced(self, category: Category, children: list[dict[str, Any]]) -> None:
        count = self.store.count_referencing(Transaction.TABLE, "category_id", category.category_id)
        if count > 0:
            logger.warning("Category %s is used by %d transactions", category.category_id, count)
            raise ReferentialBlockError(
                f"Cannot delete: {count} transactions use this category",
                entity_id=category.category_id,
                blocked_by="self",
                count=count,
            )
        for child in children:
            count = self.store.count_referencing(Transaction.TABLE, "category_id", child["id"])
            if count > 0:
                logger.warning("Child category %s is used by %d transactions", child["id"], count)
                raise ReferentialBlockError(
                    f"Cannot delete: subcategory {child['name']} has {count} transactions",
                    entity_id=child["id"],
                    blocked_by="child",
                    count=count,
                )

    def _get_parent(self, caller: Caller, parent_id: str) -> Category:
        parent = self._get_category(caller, parent_id)
        if parent.category_type != CategoryType.PARENT:
            raise InvariantViolationError(f"Category {parent_id} is not a parent category")
        return parent
