from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from finance_tracker.aggregation import build_dashboard
from finance_tracker.categories import CategoryLedger
from finance_tracker.config import load_config
from finance_tracker.core.models import UNKNOWN_CATEGORY
from finance_tracker.credentials import CredentialStore
from finance_tracker.database import Database
from finance_tracker.errors import FinanceTrackerError
from finance_tracker.gate import authorize
from finance_tracker.notifications import get_notifier
from finance_tracker.notifications.base import BaseNotifier
from finance_tracker.schemas import (
    AuthResponse,
    CategoryCreate,
    CategoryListResponse,
    CategoryOut,
    CategoryResponse,
    CategoryUpdate,
    DashboardOut,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TransactionIn,
    TransactionListResponse,
    TransactionOut,
    TransactionResponse,
    UserResponse,
    VerifyResponse,
)
from finance_tracker.security import TokenIssuer
from finance_tracker.transactions import TransactionLedger

logger = logging.getLogger(__name__)


# -- dependencies -------------------------------------------------------------

def _credentials(request: Request) -> CredentialStore:
    return request.app.state.credentials


def _categories(request: Request) -> CategoryLedger:
    return request.app.state.categories


def _transactions(request: Request) -> TransactionLedger:
    return request.app.state.transactions


def current_owner(request: Request, authorization: Optional[str] = Header(default=None)) -> int:
    """Resolve the caller's user id from the ``Authorization`` header."""
    return authorize(authorization, request.app.state.issuer)


# -- auth ---------------------------------------------------------------------

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, store: CredentialStore = Depends(_credentials)):
    return store.register(body.username, body.email, body.password).to_dict()


@auth_router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, store: CredentialStore = Depends(_credentials)):
    return store.authenticate(body.email, body.password).to_dict()


@auth_router.post("/logout", response_model=MessageResponse)
def logout():
    # Tokens are stateless; the client discards its copy.
    return {"message": "Logged out successfully"}


@auth_router.get("/verify", response_model=VerifyResponse)
def verify(owner_id: int = Depends(current_owner), store: CredentialStore = Depends(_credentials)):
    return {"valid": True, "user": store.get_user(owner_id)}


@auth_router.get("/me", response_model=UserResponse)
def me(owner_id: int = Depends(current_owner), store: CredentialStore = Depends(_credentials)):
    return {"user": store.get_user(owner_id)}


@auth_router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(body: ForgotPasswordRequest, store: CredentialStore = Depends(_credentials)):
    return {"message": store.request_password_reset(body.email)}


@auth_router.post("/reset-password", response_model=MessageResponse)
def reset_password(body: ResetPasswordRequest, store: CredentialStore = Depends(_credentials)):
    return {"message": store.complete_password_reset(body.token, body.password)}


# -- categories ---------------------------------------------------------------

category_router = APIRouter(prefix="/categories", tags=["categories"])


@category_router.get("", response_model=CategoryListResponse)
def list_categories(owner_id: int = Depends(current_owner), ledger: CategoryLedger = Depends(_categories)):
    return CategoryListResponse(
        message="Categories fetched successfully",
        categories=[CategoryOut.from_model(c) for c in ledger.list(owner_id)],
    )


@category_router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    body: CategoryCreate,
    owner_id: int = Depends(current_owner),
    ledger: CategoryLedger = Depends(_categories),
):
    category = ledger.create(owner_id, body.name, body.type, body.icon, body.color)
    return CategoryResponse(
        message="Category created successfully", category=CategoryOut.from_model(category)
    )


@category_router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int,
    owner_id: int = Depends(current_owner),
    ledger: CategoryLedger = Depends(_categories),
):
    return CategoryResponse(
        message="Single Category fetched successfully",
        category=CategoryOut.from_model(ledger.get(owner_id, category_id)),
    )


@category_router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    body: CategoryUpdate,
    owner_id: int = Depends(current_owner),
    ledger: CategoryLedger = Depends(_categories),
):
    category = ledger.update(owner_id, category_id, body.model_dump(exclude_unset=True))
    return CategoryResponse(
        message="Category updated successfully", category=CategoryOut.from_model(category)
    )


@category_router.delete("/{category_id}", response_model=CategoryResponse)
def delete_category(
    category_id: int,
    owner_id: int = Depends(current_owner),
    ledger: CategoryLedger = Depends(_categories),
):
    return CategoryResponse(
        message="Category deleted successfully",
        category=CategoryOut.from_model(ledger.delete(owner_id, category_id)),
    )


# -- transactions -------------------------------------------------------------

transaction_router = APIRouter(prefix="/transactions", tags=["transactions"])


def _category_name(categories: CategoryLedger, owner_id: int, category_id: int) -> str:
    return categories.names_by_id(owner_id).get(category_id, UNKNOWN_CATEGORY)


@transaction_router.get("", response_model=TransactionListResponse)
def list_transactions(
    owner_id: int = Depends(current_owner),
    ledger: TransactionLedger = Depends(_transactions),
    categories: CategoryLedger = Depends(_categories),
):
    rows = ledger.list_with_categories(owner_id, categories)
    return TransactionListResponse(
        message="Transactions fetched successfully",
        transactions=[TransactionOut.from_model(tx, name) for tx, name in rows],
    )


@transaction_router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    body: TransactionIn,
    owner_id: int = Depends(current_owner),
    ledger: TransactionLedger = Depends(_transactions),
    categories: CategoryLedger = Depends(_categories),
):
    tx = ledger.create(owner_id, **body.ledger_fields())
    return TransactionResponse(
        message="Transaction created successfully",
        transaction=TransactionOut.from_model(tx, _category_name(categories, owner_id, tx.category_id)),
    )


@transaction_router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    owner_id: int = Depends(current_owner),
    ledger: TransactionLedger = Depends(_transactions),
    categories: CategoryLedger = Depends(_categories),
):
    tx = ledger.get(owner_id, transaction_id)
    return TransactionResponse(
        message="Single Transaction fetched successfully",
        transaction=TransactionOut.from_model(tx, _category_name(categories, owner_id, tx.category_id)),
    )


@transaction_router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    body: TransactionIn,
    owner_id: int = Depends(current_owner),
    ledger: TransactionLedger = Depends(_transactions),
    categories: CategoryLedger = Depends(_categories),
):
    tx = ledger.update(owner_id, transaction_id, body.ledger_fields())
    return TransactionResponse(
        message="Transaction updated successfully",
        transaction=TransactionOut.from_model(tx, _category_name(categories, owner_id, tx.category_id)),
    )


@transaction_router.delete("/{transaction_id}", response_model=TransactionResponse)
def delete_transaction(
    transaction_id: int,
    owner_id: int = Depends(current_owner),
    ledger: TransactionLedger = Depends(_transactions),
):
    return TransactionResponse(
        message="Transaction deleted successfully",
        transaction=TransactionOut.from_model(ledger.delete(owner_id, transaction_id)),
    )


# -- dashboard ----------------------------------------------------------------

dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@dashboard_router.get("", response_model=DashboardOut)
def dashboard(
    request: Request,
    month: Optional[str] = None,
    sort: str = "date",
    entry_type: Optional[str] = Query(default=None, alias="type"),
    page: int = 1,
    owner_id: int = Depends(current_owner),
    ledger: TransactionLedger = Depends(_transactions),
    categories: CategoryLedger = Depends(_categories),
):
    rows = ledger.list_with_categories(owner_id, categories)
    view = build_dashboard(
        [tx for tx, _ in rows],
        month=month,
        sort=sort,
        page=page,
        page_size=request.app.state.page_size,
        entry_type=entry_type,
    )
    return DashboardOut.from_model(view, {tx.id: name for tx, name in rows})


# -- app factory --------------------------------------------------------------

async def _handle_domain_error(request: Request, exc: FinanceTrackerError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        {"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        status_code=400,
    )


def create_app(
    config: Dict[str, Any] | None = None,
    db: Database | None = None,
    notifier: BaseNotifier | None = None,
) -> FastAPI:
    """Build the API around an explicitly constructed storage handle.

    When *db* is omitted the app opens ``config["db_path"]`` itself and
    closes it on shutdown; a handle passed in stays owned by the caller.
    """
    config = config or load_config()
    owns_db = db is None
    db = db or Database(config["db_path"])
    db.connect()
    db.init_schema()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_db:
            db.close()

    app = FastAPI(title="Fintrack API", lifespan=lifespan)
    issuer = TokenIssuer(
        secret=config["jwt_secret"],
        ttl=timedelta(minutes=int(config["token_ttl_minutes"])),
    )
    app.state.db = db
    app.state.issuer = issuer
    app.state.page_size = int(config["page_size"])
    app.state.credentials = CredentialStore(
        db,
        issuer,
        notifier or get_notifier(config["notifier"], config),
        client_url=config["client_url"],
        reset_ttl=timedelta(minutes=int(config["reset_token_ttl_minutes"])),
    )
    app.state.categories = CategoryLedger(db)
    app.state.transactions = TransactionLedger(db)

    app.add_exception_handler(FinanceTrackerError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)

    prefix = config.get("api_prefix", "/api")
    for router in (auth_router, category_router, transaction_router, dashboard_router):
        app.include_router(router, prefix=prefix)

    @app.get("/")
    def index():
        return {"message": "Fintrack API is running"}

    logger.info("Fintrack API ready (db: %s)", db.path)
    return app
