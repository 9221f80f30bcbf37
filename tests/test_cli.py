from click.testing import CliRunner

from finance_tracker.cli import main
from finance_tracker.credentials import CredentialStore
from finance_tracker.database import Database
from finance_tracker.security import TokenIssuer
from finance_tracker.transactions import TransactionLedger


def _seed(db_path, notifier):
    with Database(db_path) as db:
        db.init_schema()
        store = CredentialStore(db, TokenIssuer(secret="cli"), notifier)
        owner = store.register("alice", "alice@example.com", "wonderland").user["id"]
        ledger = TransactionLedger(db)
        ledger.create(owner, 1200, "income", 1, "2024-01-01")
        ledger.create(owner, 50, "expense", 2, "2024-01-15", "weekly shop")
        ledger.create(owner, 19.5, "expense", 2, "2024-03-03")


def test_init_db_creates_schema(tmp_path):
    db_path = tmp_path / "nested" / "fintrack.db"
    runner = CliRunner()

    result = runner.invoke(main, ["init-db", "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert f"Initialized database at {db_path}" in result.output
    with Database(db_path) as db:
        tables = {r["name"] for r in db.fetch_all("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"users", "categories", "transactions"} <= tables


def test_summary_prints_totals_and_months(tmp_path, notifier):
    db_path = tmp_path / "fintrack.db"
    _seed(db_path, notifier)
    runner = CliRunner()

    result = runner.invoke(main, ["summary", "--db", str(db_path), "--email", "alice@example.com"])

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    for expected in ("Income:  1200.00", "Expense: 69.50", "Balance: 1130.50"):
        assert expected in lines
    months = [line[:17] for line in lines if " txns)" in line]
    assert months == ["2024-01  Jan 2024", "2024-03  Mar 2024"]
    assert "weekly shop" not in result.output


def test_summary_lists_one_month(tmp_path, notifier):
    db_path = tmp_path / "fintrack.db"
    _seed(db_path, notifier)
    runner = CliRunner()

    result = runner.invoke(
        main, ["summary", "--db", str(db_path), "--email", "alice@example.com", "--month", "2024-01"]
    )

    assert result.exit_code == 0, result.output
    assert "Transactions in 2024-01:" in result.output
    assert "weekly shop" in result.output
    assert "2024-03-03" not in result.output


def test_summary_errors(tmp_path, notifier):
    db_path = tmp_path / "fintrack.db"
    _seed(db_path, notifier)
    runner = CliRunner()

    unknown = runner.invoke(main, ["summary", "--db", str(db_path), "--email", "nobody@example.com"])
    assert unknown.exit_code != 0
    assert "No user with email nobody@example.com" in unknown.output

    bad_month = runner.invoke(
        main, ["summary", "--db", str(db_path), "--email", "alice@example.com", "--month", "March"]
    )
    assert bad_month.exit_code != 0
    assert "YYYY-MM" in bad_month.output
