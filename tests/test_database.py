import sqlite3

import pytest

from finance_tracker.database import Database, is_unique_violation, timestamp


def test_in_memory_database_round_trip():
    with Database() as db:
        db.init_schema()
        db.execute(
            "INSERT INTO users (username, email, password_hash, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            ("alice", "alice@example.com", "x", timestamp(), timestamp()),
        )
        assert db.fetch_one("SELECT username FROM users")["username"] == "alice"
    assert not db.is_open


def test_init_schema_is_idempotent(db):
    db.init_schema()
    tables = {r["name"] for r in db.fetch_all("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"users", "categories", "transactions"} <= tables


def test_unique_violation_rolls_back(db):
    row = ("alice", "alice@example.com", "x", timestamp(), timestamp())
    sql = (
        "INSERT INTO users (username, email, password_hash, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?)"
    )
    db.execute(sql, row)

    with pytest.raises(sqlite3.IntegrityError) as excinfo:
        db.execute(sql, row)
    assert is_unique_violation(excinfo.value)
    assert db.fetch_one("SELECT COUNT(*) AS n FROM users")["n"] == 1


def test_transactions_have_no_category_foreign_key(db):
    db.execute(
        "INSERT INTO users (username, email, password_hash, created_at, updated_at) "
        "VALUES ('a', 'a@example.com', 'x', ?, ?)",
        (timestamp(), timestamp()),
    )
    db.execute(
        "INSERT INTO transactions (owner_id, category_id, amount, type, date, created_at, updated_at) "
        "VALUES (1, 999, 5, 'expense', '2024-01-01', ?, ?)",
        (timestamp(), timestamp()),
    )
    with pytest.raises(sqlite3.IntegrityError) as excinfo:
        db.execute(
            "INSERT INTO transactions (owner_id, category_id, amount, type, date, created_at, updated_at) "
            "VALUES (1, 1, -5, 'expense', '2024-01-01', ?, ?)",
            (timestamp(), timestamp()),
        )
    assert not is_unique_violation(excinfo.value)


def test_closed_database_refuses_queries():
    db = Database()
    with pytest.raises(RuntimeError):
        db.fetch_all("SELECT 1")
    db.close()
