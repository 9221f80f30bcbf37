"""Request and response bodies of the HTTP API.

Field names on the wire follow the JSON the web client already speaks
(``categoryId``, ``notes``); the Python attributes use snake_case.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.aggregation import Dashboard, Page, Summary
from finance_tracker.core.models import Category, MonthBucket, Transaction


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# -- requests -----------------------------------------------------------------

class RegisterRequest(_Schema):
    username: str
    email: str
    password: str


class LoginRequest(_Schema):
    email: str
    password: str


class ForgotPasswordRequest(_Schema):
    email: str


class ResetPasswordRequest(_Schema):
    token: str
    password: str


class CategoryCreate(_Schema):
    name: str
    type: str
    icon: Optional[str] = None
    color: Optional[str] = None


class CategoryUpdate(_Schema):
    name: Optional[str] = None
    type: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class TransactionIn(_Schema):
    amount: float
    type: str
    category_id: int = Field(alias="categoryId")
    date: str
    notes: Optional[str] = None

    def ledger_fields(self) -> dict:
        return {
            "amount": self.amount,
            "type": self.type,
            "category_id": self.category_id,
            "date": self.date,
            "description": self.notes,
        }


# -- responses ----------------------------------------------------------------

class UserOut(_Schema):
    id: int
    username: str
    email: str


class AuthResponse(_Schema):
    token: str
    user: UserOut


class MessageResponse(_Schema):
    message: str


class VerifyResponse(_Schema):
    valid: bool = True
    user: UserOut


class UserResponse(_Schema):
    user: UserOut


class CategoryOut(_Schema):
    id: int
    name: str
    type: str
    icon: str
    color: str
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_model(cls, category: Category) -> "CategoryOut":
        return cls(
            id=category.id,
            name=category.name,
            type=category.type,
            icon=category.icon,
            color=category.color,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


class CategoryResponse(_Schema):
    message: str
    category: CategoryOut


class CategoryListResponse(_Schema):
    message: str
    categories: List[CategoryOut]


class TransactionOut(_Schema):
    id: int
    amount: float
    type: str
    category_id: int = Field(alias="categoryId")
    category_name: Optional[str] = Field(default=None, alias="categoryName")
    date: dt.date
    notes: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_model(cls, tx: Transaction, category_name: str | None = None) -> "TransactionOut":
        return cls(
            id=tx.id,
            amount=tx.amount,
            type=tx.type,
            category_id=tx.category_id,
            category_name=category_name,
            date=tx.date,
            notes=tx.description,
            created_at=tx.created_at,
            updated_at=tx.updated_at,
        )


class TransactionResponse(_Schema):
    message: str
    transaction: TransactionOut


class TransactionListResponse(_Schema):
    message: str
    transactions: List[TransactionOut]


class SummaryOut(_Schema):
    income: float
    expense: float
    balance: float

    @classmethod
    def from_model(cls, summary: Summary) -> "SummaryOut":
        return cls(income=summary.income, expense=summary.expense, balance=summary.balance)


class MonthOut(_Schema):
    key: str = Field(alias="monthKey")
    label: str = Field(alias="month")
    income: float
    expense: float
    balance: float
    count: int
    transactions: List[TransactionOut]


class PageOut(_Schema):
    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    total_pages: int = Field(alias="totalPages")
    items: List[TransactionOut]


class DashboardOut(_Schema):
    summary: SummaryOut
    months: List[MonthOut]
    page: PageOut
    month: Optional[str] = None
    sort: str
    type: Optional[str] = None
    available_months: List[Dict[str, str]] = Field(default_factory=list, alias="availableMonths")

    @classmethod
    def from_model(cls, dashboard: Dashboard, category_names: dict) -> "DashboardOut":
        def out(tx: Transaction) -> TransactionOut:
            return TransactionOut.from_model(tx, category_names.get(tx.id))

        def month(bucket: MonthBucket) -> MonthOut:
            return MonthOut(
                key=bucket.key,
                label=bucket.label,
                income=bucket.income,
                expense=bucket.expense,
                balance=bucket.balance,
                count=len(bucket.transactions),
                transactions=[out(tx) for tx in bucket.transactions],
            )

        def page(p: Page) -> PageOut:
            return PageOut(
                page=p.page,
                page_size=p.page_size,
                total=p.total,
                total_pages=p.total_pages,
                items=[out(tx) for tx in p.items],
            )

        return cls(
            summary=SummaryOut.from_model(dashboard.summary),
            months=[month(b) for b in dashboard.months],
            page=page(dashboard.page),
            month=dashboard.month,
            sort=dashboard.sort,
            type=dashboard.type,
            available_months=dashboard.available_months,
        )
