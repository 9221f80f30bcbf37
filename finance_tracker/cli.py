# finance_tracker/cli.py
import logging

import click
from dotenv import load_dotenv

from finance_tracker.aggregation import build_dashboard
from finance_tracker.config import load_config
from finance_tracker.credentials import find_user_by_email
from finance_tracker.database import Database
from finance_tracker.errors import ValidationError
from finance_tracker.transactions import TransactionLedger

config_option = click.option(
    '--config', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to config.yaml (defaults are used when omitted)'
)
env_file_option = click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with FINTRACK_* settings'
)
db_option = click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database file (overrides config)'
)


def _load(config_path, env_file, db_path):
    if env_file:
        load_dotenv(env_file)
    cfg = load_config(config_path)
    if db_path:
        cfg['db_path'] = db_path
    logging.basicConfig(
        level=str(cfg.get('log_level', 'INFO')).upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    return cfg


@click.group()
def main():
    """Fintrack: personal income and expense ledger."""


@main.command('init-db')
@config_option
@env_file_option
@db_option
def init_db(config_path, env_file, db_path):
    """Create the database schema if it does not exist yet."""
    cfg = _load(config_path, env_file, db_path)
    with Database(cfg['db_path']) as db:
        db.init_schema()
    click.echo(f"Initialized database at {cfg['db_path']}.")


@main.command()
@config_option
@env_file_option
@db_option
@click.option('--host', default='127.0.0.1', show_default=True, help='Host to bind')
@click.option('--port', default=8000, show_default=True, type=int, help='Port to bind')
def serve(config_path, env_file, db_path, host, port):
    """Run the HTTP API."""
    import uvicorn

    from finance_tracker.web import create_app

    cfg = _load(config_path, env_file, db_path)
    if cfg['jwt_secret'] == 'change-me':
        click.echo("⚠️  Using the default JWT secret; set FINTRACK_JWT_SECRET.", err=True)
    app = create_app(cfg)
    click.echo(f"Fintrack API running at http://{host}:{port}{cfg['api_prefix']} (db: {cfg['db_path']})")
    uvicorn.run(app, host=host, port=port, log_level=str(cfg['log_level']).lower())


@main.command()
@config_option
@env_file_option
@db_option
@click.option('--email', required=True, help='Email of the user to report on')
@click.option('--month', default=None, help='Only list transactions from this YYYY-MM')
def summary(config_path, env_file, db_path, email, month):
    """
    Print income, expense and balance for one user, followed by the
    per-month breakdown.
    """
    cfg = _load(config_path, env_file, db_path)
    with Database(cfg['db_path']) as db:
        db.init_schema()
        user = find_user_by_email(db, email)
        if user is None:
            raise click.ClickException(f"No user with email {email}")
        transactions = TransactionLedger(db).list(user.id)

    try:
        view = build_dashboard(transactions, month=month, page_size=max(len(transactions), 1))
    except ValidationError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Income:  {view.summary.income:.2f}")
    click.echo(f"Expense: {view.summary.expense:.2f}")
    click.echo(f"Balance: {view.summary.balance:.2f}")
    for bucket in view.months:
        click.echo(
            f"{bucket.key}  {bucket.label:<9} income {bucket.income:.2f}  "
            f"expense {bucket.expense:.2f}  balance {bucket.balance:.2f}  "
            f"({len(bucket.transactions)} txns)"
        )
    if month:
        click.echo(f"\nTransactions in {month}:")
        for tx in view.page.items:
            click.echo(f"{tx.date.isoformat()}  {tx.type:<7} {tx.amount:>10.2f}  {tx.description or ''}")


if __name__ == '__main__':
    main()
