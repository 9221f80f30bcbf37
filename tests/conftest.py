import bcrypt
import pytest

from finance_tracker.categories import CategoryLedger
from finance_tracker.credentials import CredentialStore
from finance_tracker.database import Database
from finance_tracker.notifications.base import BaseNotifier, NotificationError
from finance_tracker.security import TokenIssuer
from finance_tracker.transactions import TransactionLedger

TEST_SECRET = "test-secret"


class RecordingNotifier(BaseNotifier):
    """Keeps every reset link in memory; set ``fail`` to simulate an outage."""

    def __init__(self, config=None):
        self.sent = []
        self.fail = False

    def send_password_reset(self, email, token, reset_url):
        if self.fail:
            raise NotificationError("relay unavailable")
        self.sent.append({"email": email, "token": token, "reset_url": reset_url})


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    real_gensalt = bcrypt.gensalt
    monkeypatch.setattr(bcrypt, "gensalt", lambda *a, **k: real_gensalt(rounds=4))


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "fintrack.db").connect()
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def issuer():
    return TokenIssuer(secret=TEST_SECRET)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def credentials(db, issuer, notifier):
    return CredentialStore(db, issuer, notifier, client_url="http://app.test")


@pytest.fixture
def categories(db):
    return CategoryLedger(db)


@pytest.fixture
def transactions(db):
    return TransactionLedger(db)


@pytest.fixture
def alice(credentials):
    return credentials.register("alice", "alice@example.com", "wonderland")


@pytest.fixture
def bob(credentials):
    return credentials.register("bob", "bob@example.com", "builder")
