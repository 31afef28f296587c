"""
FastAPI backend for Narathia.
Provides REST endpoints for accounts, saved games and the chat relay.
Build the app with create_app(); settings are resolved once and handed to each component through app.state.
"""

import logging
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.config import Settings
from .accounts import AccountService
from .auth import TokenService, get_current_user_id, get_token_service
from .chat import ChatRelay
from .database import create_db_engine, create_session_factory, get_db, init_db
from .errors import AppError, ChatUnavailable, InternalError, Unauthenticated
from .games import GameRecordStore
from .users import CredentialStore

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ===== Pydantic Models =====
# Fields are optional so missing values reach the account/game checks and come back as 400, not 422.

class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class SaveGameRequest(BaseModel):
    name: str | None = None
    state: Any = None


class OverwriteGameRequest(BaseModel):
    state: Any = None


class ChatRequest(BaseModel):
    message: str | None = None


# ===== Dependencies =====

def get_account_service(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AccountService:
    return AccountService(CredentialStore(db), tokens, request.app.state.settings.bcrypt_rounds)


def get_game_store(db: Session = Depends(get_db)) -> GameRecordStore:
    return GameRecordStore(db)


def get_chat_relay(request: Request) -> ChatRelay:
    relay = request.app.state.chat_relay
    if relay is None:
        raise ChatUnavailable()
    return relay


def _error_response(error: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, Unauthenticated) else None
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.code, "detail": error.message},
        headers=headers,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Without explicit settings they are read from the environment (fails fast if incomplete)."""
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(
        title="Narathia API",
        description="Accounts, saved games and chat relay for the Narathia client",
        version=API_VERSION,
    )

    engine = create_db_engine(settings.database_url)
    init_db(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.token_service = TokenService(settings.jwt_secret, settings.access_token_expire_days)
    app.state.chat_relay = (
        ChatRelay(settings.chat_webhook_url, settings.chat_timeout_sec) if settings.chat_webhook_url else None
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log method, path and status so failures can be traced to the endpoint."""
        response = await call_next(request)
        if response.status_code >= 500:
            logger.error("%s %s -> %s", request.method, request.url.path, response.status_code)
        else:
            logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "ValidationError", "detail": "Malformed request body"})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Log the traceback for operators; the client only sees a generic 500."""
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _error_response(InternalError())

    # ===== API Endpoints =====

    @app.get("/")
    def root():
        return {"message": "Narathia API", "version": API_VERSION}

    # ----- Accounts -----

    @app.post("/register", status_code=201)
    def register(body: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
        """Create an account and return its profile with a session token."""
        return accounts.register(body.name, body.email, body.password)

    @app.post("/login")
    def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
        return accounts.login(body.email, body.password)

    @app.get("/user")
    def current_user(
        user_id: str = Depends(get_current_user_id),
        accounts: AccountService = Depends(get_account_service),
    ):
        """Return the authenticated user's profile (password hash not included)."""
        return accounts.whoami(user_id)

    # ----- Saved games -----

    @app.post("/games", status_code=201)
    def save_game(
        body: SaveGameRequest,
        user_id: str = Depends(get_current_user_id),
        store: GameRecordStore = Depends(get_game_store),
    ):
        return {"id": store.save(user_id, body.name, body.state)}

    @app.get("/games")
    def list_games(
        user_id: str = Depends(get_current_user_id),
        store: GameRecordStore = Depends(get_game_store),
    ):
        """List the caller's saved games, most recently modified first."""
        return store.list_games(user_id)

    @app.get("/games/{game_id}")
    def load_game(
        game_id: str,
        user_id: str = Depends(get_current_user_id),
        store: GameRecordStore = Depends(get_game_store),
    ):
        return {"state": store.load(user_id, game_id)}

    @app.put("/games/{game_id}")
    def overwrite_game(
        game_id: str,
        body: OverwriteGameRequest,
        user_id: str = Depends(get_current_user_id),
        store: GameRecordStore = Depends(get_game_store),
    ):
        """Replace a saved game's state in place (same id, new timestamp)."""
        store.overwrite(user_id, game_id, body.state)
        return {"success": True}

    @app.delete("/games/{game_id}")
    def delete_game(
        game_id: str,
        user_id: str = Depends(get_current_user_id),
        store: GameRecordStore = Depends(get_game_store),
    ):
        store.delete(user_id, game_id)
        return {"success": True}

    # ----- Chat -----

    @app.post("/chat")
    def chat(
        body: ChatRequest,
        user_id: str = Depends(get_current_user_id),
        relay: ChatRelay = Depends(get_chat_relay),
    ):
        """Forward a message to the chat webhook and return its reply as text."""
        return {"reply": relay.send(body.message, user_id)}

    return app
