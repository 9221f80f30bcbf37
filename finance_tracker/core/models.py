# finance_tracker/core/models.py
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

INCOME = "income"
EXPENSE = "expense"
ENTRY_TYPES = (INCOME, EXPENSE)

UNKNOWN_CATEGORY = "Unknown Category"


@dataclass
class ResetTicket:
    token_hash: str
    expires_at: datetime

    def is_valid(self, token_hash: str, now: datetime) -> bool:
        return self.token_hash == token_hash and now < self.expires_at


@dataclass
class User:
    id: int
    username: str
    email: str
    password_hash: str
    created_at: Optional[str] = None
    reset_ticket: Optional[ResetTicket] = None

    def public(self) -> dict:
        return {"id": self.id, "username": self.username, "email": self.email}


@dataclass
class Category:
    id: int
    owner_id: int
    name: str
    type: str
    icon: str = ""
    color: str = "#000000"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Transaction:
    id: int
    owner_id: int
    category_id: int
    amount: float
    type: str
    date: date
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class MonthBucket:
    key: str
    label: str
    income: float = 0.0
    expense: float = 0.0
    transactions: List[Transaction] = field(default_factory=list)

    @property
    def balance(self) -> float:
        return self.income - self.expense
