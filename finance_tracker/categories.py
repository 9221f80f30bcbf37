from __future__ import annotations

import logging
import sqlite3
from typing import Dict, List

from finance_tracker.core.models import ENTRY_TYPES, Category
from finance_tracker.database import Database, is_unique_violation, timestamp
from finance_tracker.errors import DuplicateCategory, NotFound, ValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "type", "icon", "color")
DEFAULT_COLOR = "#000000"


def normalize_type(value) -> str:
    """Lowercase an entry type and make sure it is income or expense."""
    if not value or not isinstance(value, str):
        raise ValidationError("Type is required", field="type")
    entry_type = value.strip().lower()
    if entry_type not in ENTRY_TYPES:
        raise ValidationError("Type must be income or expense", field="type")
    return entry_type


def _clean_name(value) -> str:
    name = value.strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError("Name is required", field="name")
    return name


def _row_to_category(row: sqlite3.Row) -> Category:
    return Category(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        type=row["type"],
        icon=row["icon"],
        color=row["color"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class CategoryLedger:
    """Per-owner category definitions.

    Name uniqueness is enforced by the ``UNIQUE(owner_id, name)`` constraint;
    a violating INSERT or UPDATE is reported as ``DuplicateCategory``.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def list(self, owner_id: int) -> List[Category]:
        rows = self.db.fetch_all(
            "SELECT * FROM categories WHERE owner_id = ? ORDER BY created_at DESC, id DESC",
            (owner_id,),
        )
        return [_row_to_category(r) for r in rows]

    def names_by_id(self, owner_id: int) -> Dict[int, str]:
        rows = self.db.fetch_all(
            "SELECT id, name FROM categories WHERE owner_id = ?", (owner_id,)
        )
        return {r["id"]: r["name"] for r in rows}

    def create(
        self,
        owner_id: int,
        name: str,
        type: str,
        icon: str | None = None,
        color: str | None = None,
    ) -> Category:
        name = _clean_name(name)
        entry_type = normalize_type(type)
        now = timestamp()
        try:
            cursor = self.db.execute(
                """
                INSERT INTO categories (owner_id, name, type, icon, color, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (owner_id, name, entry_type, icon or "", color or DEFAULT_COLOR, now, now),
            )
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateCategory() from exc
            raise
        logger.info("Created category %s for user %s", cursor.lastrowid, owner_id)
        return self.get(owner_id, cursor.lastrowid)

    def get(self, owner_id: int, category_id: int) -> Category:
        row = self.db.fetch_one(
            "SELECT * FROM categories WHERE id = ? AND owner_id = ?",
            (category_id, owner_id),
        )
        if row is None:
            raise NotFound("Category not found")
        return _row_to_category(row)

    def update(self, owner_id: int, category_id: int, fields: dict) -> Category:
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        if "name" in changes:
            changes["name"] = _clean_name(changes["name"])
        if "type" in changes:
            changes["type"] = normalize_type(changes["type"])
        if not changes:
            return self.get(owner_id, category_id)

        assignments = ", ".join(f"{column} = ?" for column in changes)
        params = list(changes.values()) + [timestamp(), category_id, owner_id]
        try:
            cursor = self.db.execute(
                f"UPDATE categories SET {assignments}, updated_at = ? WHERE id = ? AND owner_id = ?",
                params,
            )
        except sqlite3.IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateCategory() from exc
            raise
        if cursor.rowcount == 0:
            raise NotFound("Category not found")
        logger.info("Updated category %s for user %s", category_id, owner_id)
        return self.get(owner_id, category_id)

    def delete(self, owner_id: int, category_id: int) -> Category:
        category = self.get(owner_id, category_id)
        cursor = self.db.execute(
            "DELETE FROM categories WHERE id = ? AND owner_id = ?",
            (category_id, owner_id),
        )
        if cursor.rowcount == 0:
            raise NotFound("Category not found")
        logger.info("Deleted category %s for user %s", category_id, owner_id)
        return category
