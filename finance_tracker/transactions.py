from __future__ import annotations

import logging
import math
import sqlite3
from datetime import date, datetime
from typing import List, Tuple

from finance_tracker.categories import CategoryLedger, normalize_type
from finance_tracker.core.models import UNKNOWN_CATEGORY, Transaction
from finance_tracker.database import Database, timestamp
from finance_tracker.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("amount", "type", "category_id", "date")


def parse_amount(value) -> float:
    if isinstance(value, bool):
        raise ValidationError("Amount must be a number", field="amount")
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Amount must be a number", field="amount") from exc
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Amount must be greater than zero", field="amount")
    return amount


def parse_date(value) -> date:
    """Accept a date, a datetime or an ISO string; time of day is dropped."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as exc:
            raise ValidationError("Date must be formatted as YYYY-MM-DD", field="date") from exc
    raise ValidationError("Date must be formatted as YYYY-MM-DD", field="date")


def parse_category_id(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("categoryId must be an integer id", field="categoryId")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("categoryId must be an integer id", field="categoryId") from exc


def validate_fields(amount, type, category_id, day) -> Tuple[float, str, int, date]:
    """Check the required transaction fields and return them normalized."""
    provided = {"amount": amount, "type": type, "category_id": category_id, "date": day}
    missing = [name for name in REQUIRED_FIELDS if not provided[name]]
    if missing:
        raise ValidationError(
            "Amount, type, categoryId, and date are required",
            field=",".join("categoryId" if m == "category_id" else m for m in missing),
        )
    return (
        parse_amount(amount),
        normalize_type(type),
        parse_category_id(category_id),
        parse_date(day),
    )


def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row["id"],
        owner_id=row["owner_id"],
        category_id=row["category_id"],
        amount=float(row["amount"]),
        type=row["type"],
        date=date.fromisoformat(row["date"]),
        description=row["description"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class TransactionLedger:
    """Per-owner transaction records.

    The referenced category is not checked on write. Readers resolve names
    through :meth:`list_with_categories`, which tolerates deleted categories.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def list(self, owner_id: int) -> List[Transaction]:
        rows = self.db.fetch_all(
            "SELECT * FROM transactions WHERE owner_id = ? ORDER BY created_at DESC, id DESC",
            (owner_id,),
        )
        return [_row_to_transaction(r) for r in rows]

    def list_with_categories(
        self, owner_id: int, categories: CategoryLedger
    ) -> List[Tuple[Transaction, str]]:
        names = categories.names_by_id(owner_id)
        return [
            (tx, names.get(tx.category_id, UNKNOWN_CATEGORY))
            for tx in self.list(owner_id)
        ]

    def create(
        self,
        owner_id: int,
        amount,
        type,
        category_id,
        date,
        description: str | None = None,
    ) -> Transaction:
        amount, entry_type, category_id, day = validate_fields(amount, type, category_id, date)
        now = timestamp()
        cursor = self.db.execute(
            """
            INSERT INTO transactions
            (owner_id, category_id, amount, type, date, description, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (owner_id, category_id, amount, entry_type, day.isoformat(), description, now, now),
        )
        logger.info("Created transaction %s for user %s", cursor.lastrowid, owner_id)
        return self.get(owner_id, cursor.lastrowid)

    def get(self, owner_id: int, transaction_id: int) -> Transaction:
        row = self.db.fetch_one(
            "SELECT * FROM transactions WHERE id = ? AND owner_id = ?",
            (transaction_id, owner_id),
        )
        if row is None:
            raise NotFound("Transaction not found")
        return _row_to_transaction(row)

    def update(self, owner_id: int, transaction_id: int, fields: dict) -> Transaction:
        """Replace every field of an owned transaction.

        *fields* uses the same keys as :meth:`create`; amount, type,
        category_id and date are required, description may be omitted.
        """
        amount, entry_type, category_id, day = validate_fields(
            fields.get("amount"),
            fields.get("type"),
            fields.get("category_id"),
            fields.get("date"),
        )
        cursor = self.db.execute(
            """
            UPDATE transactions
            SET amount = ?, type = ?, category_id = ?, date = ?, description = ?, updated_at = ?
            WHERE id = ? AND owner_id = ?
            """,
            (
                amount,
                entry_type,
                category_id,
                day.isoformat(),
                fields.get("description"),
                timestamp(),
                transaction_id,
                owner_id,
            ),
        )
        if cursor.rowcount == 0:
            raise NotFound("Transaction not found")
        logger.info("Updated transaction %s for user %s", transaction_id, owner_id)
        return self.get(owner_id, transaction_id)

    def delete(self, owner_id: int, transaction_id: int) -> Transaction:
        transaction = self.get(owner_id, transaction_id)
        cursor = self.db.execute(
            "DELETE FROM transactions WHERE id = ? AND owner_id = ?",
            (transaction_id, owner_id),
        )
        if cursor.rowcount == 0:
            raise NotFound("Transaction not found")
        logger.info("Deleted transaction %s for user %s", transaction_id, owner_id)
        return transaction
