from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, Header, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from auth import AuthService, parse_authorization
from database import get_database
from errors import AppError, ServerError
from logging_config import configure_logging
from schemas import (
    DashboardSummary,
    Identity,
    LoginRequest,
    Message,
    RegisterRequest,
    Token,
    TransactionIn,
    TransactionOut,
)
from settings import Settings, get_settings
from stores import TransactionStore, UserStore
from transactions import TransactionService

logger = structlog.get_logger(__name__)

API_PREFIX = "/api"


# ----------------------
# Startup
# ----------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    try:
        db = get_database()
        UserStore(db).ensure_indexes()
        TransactionStore(db).ensure_indexes()
        if settings.seed_demo_user:
            AuthService(UserStore(db), settings).seed_demo_user()
    except PyMongoError as e:
        logger.warning("startup_database_unavailable", error=str(e))

    yield


# ----------------------
# App & CORS
# ----------------------
app = FastAPI(title="Expense Manager API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------
# Error mapping
# ----------------------
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    names = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = "Invalid fields: " + ", ".join(names) if names else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("database_error", path=request.url.path, error=str(exc))
    error = ServerError("Database not available")
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    error = ServerError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.message})


# ----------------------
# Dependencies
# ----------------------
def get_auth_service(
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(UserStore(db), settings)


def get_transaction_service(db: Database = Depends(get_database)) -> TransactionService:
    return TransactionService(TransactionStore(db))


def get_current_user(
    authorization: Optional[str] = Header(None),
    auth: AuthService = Depends(get_auth_service),
) -> Identity:
    token = parse_authorization(authorization)
    return auth.verify(token)


# ----------------------
# Auth Endpoints
# ----------------------
@app.post(f"{API_PREFIX}/auth/register", response_model=Message, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    auth.register(payload.email, payload.password)
    return Message(message="User created successfully")


@app.post(f"{API_PREFIX}/auth/login", response_model=Token)
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return Token(token=auth.login(payload.email, payload.password))


@app.get(f"{API_PREFIX}/auth/me", response_model=Identity)
def me(current_user: Identity = Depends(get_current_user)):
    return current_user


# ----------------------
# Transaction Endpoints
# ----------------------
@app.get(f"{API_PREFIX}/transactions", response_model=List[TransactionOut])
def list_transactions(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    category: Optional[str] = Query(None),
    current_user: Identity = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return service.list(current_user.id, start_date=start_date, end_date=end_date, category=category)


@app.post(f"{API_PREFIX}/transactions", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionIn,
    current_user: Identity = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return service.create(current_user.id, payload)


@app.get(f"{API_PREFIX}/transactions/{{transaction_id}}", response_model=TransactionOut)
def get_transaction(
    transaction_id: str,
    current_user: Identity = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return service.get(current_user.id, transaction_id)


@app.put(f"{API_PREFIX}/transactions/{{transaction_id}}", response_model=TransactionOut)
def update_transaction(
    transaction_id: str,
    payload: TransactionIn,
    current_user: Identity = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return service.update(current_user.id, transaction_id, payload)


@app.delete(f"{API_PREFIX}/transactions/{{transaction_id}}", response_model=Message)
def delete_transaction(
    transaction_id: str,
    current_user: Identity = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    service.delete(current_user.id, transaction_id)
    return Message(message="Transaction deleted successfully")


# ----------------------
# Dashboard
# ----------------------
@app.get(f"{API_PREFIX}/dashboard", response_model=DashboardSummary)
def dashboard(
    current_user: Identity = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return service.summary(current_user.id)


# ----------------------
# Health
# ----------------------
@app.get("/")
def read_root():
    return {"message": "Expense Manager API running"}


@app.get(f"{API_PREFIX}/health")
def health(db: Database = Depends(get_database)):
    """Report whether the document store answers a ping."""
    try:
        db.command("ping")
    except PyMongoError as e:
        logger.warning("health_check_failed", error=str(e))
        return {"status": "degraded", "database": "unavailable"}
    return {"status": "ok", "database": "connected"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
