"""Main entry point for the Chat Me API."""
import logging
from typing import Optional
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from config import (
    PORT,
    CORS_ORIGINS,
    ENVIRONMENT,
    LOG_FORMAT,
    LOG_LEVEL,
    SESSION_SECRET,
    SESSION_COOKIE,
    SESSION_MAX_AGE,
    LOGIN_PAGE,
    CHAT_PAGE,
)
from logger import setup_logging
from models.api import (
    ChatRequest,
    ChatResponse,
    GuestLoginRequest,
    OkResponse,
    SessionUser,
    UserInfoResponse,
    HistoryItem,
    HistoryResponse,
)
from models.conversation import ConversationTurn
from models.principal import Principal, PrincipalKind
from services.chat_store import ChatStore
from services.google_oauth import GoogleOAuth, GoogleOAuthError
from services.identity import create_guest_principal
from services.llm_client import LLMClient, LLMClientError

if LOG_FORMAT == "json":
    setup_logging(LOG_LEVEL)

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Chat Me",
    description="Authenticated chat with a hosted LLM and per-user history",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed cookie sessions
_production = ENVIRONMENT == "production"
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    session_cookie=SESSION_COOKIE,
    max_age=SESSION_MAX_AGE,
    same_site="none" if _production else "lax",
    https_only=_production,
)

# Initialize services (will be done on startup)
llm_client: Optional[LLMClient] = None
chat_store: ChatStore = None
google_oauth: GoogleOAuth = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global llm_client, chat_store, google_oauth

    logger.info("Initializing Chat Me services...")

    try:
        try:
            llm_client = LLMClient()
            logger.info("Initialized LLMClient")
        except ValueError as e:
            # Chat requests answer 500 until a key is configured
            logger.warning(f"LLMClient not configured: {e}")
            llm_client = None

        chat_store = ChatStore()
        logger.info("Initialized ChatStore")

        google_oauth = GoogleOAuth()
        if not google_oauth.configured:
            logger.warning("Google OAuth credentials missing; only guest login is available")

        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


def _current_principal(request: Request) -> Optional[Principal]:
    """Return the session's principal, dropping a session user that cannot be parsed."""
    user = request.session.get("user")
    if not user:
        return None
    try:
        return Principal.from_session_user(user)
    except (KeyError, ValueError) as e:
        logger.warning(f"Discarding malformed session user: {e}")
        request.session.pop("user", None)
        return None


def _require_principal(request: Request) -> Principal:
    principal = _current_principal(request)
    if principal is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return principal


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Chat Me API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "chat-me",
        "version": "1.0.0",
        "llm_configured": llm_client is not None
    }


# --- Auth routes ---

@app.get("/auth/google")
def google_login(request: Request):
    """Redirect to the Google consent screen."""
    if google_oauth is None or not google_oauth.configured:
        raise HTTPException(status_code=503, detail="Google login is not configured")

    state = GoogleOAuth.new_state()
    request.session["oauth_state"] = state
    return RedirectResponse(google_oauth.authorization_url(state), status_code=302)


@app.get("/auth/google/callback")
def google_callback(request: Request, code: Optional[str] = None, state: Optional[str] = None):
    """Finish the Google login, creating the account row on first visit."""
    expected_state = request.session.pop("oauth_state", None)
    if not code or not state or state != expected_state:
        logger.warning("Google callback rejected: missing code or state mismatch")
        return RedirectResponse(LOGIN_PAGE, status_code=302)

    try:
        profile = google_oauth.fetch_profile(code)
        user = chat_store.get_or_create_google_user(
            google_id=profile.google_id,
            name=profile.name,
            email=profile.email,
            picture=profile.picture
        )
    except (GoogleOAuthError, RuntimeError) as e:
        logger.error(f"Google login failed: {e}")
        return RedirectResponse(LOGIN_PAGE, status_code=302)

    principal = Principal(
        id=user["id"],
        display_name=user.get("name") or profile.name,
        kind=PrincipalKind.DURABLE,
        avatar_url=user.get("picture") or None
    )
    request.session["user"] = principal.to_session_user()
    logger.info(f"Google user {principal.id} logged in", extra={"principal_kind": principal.kind.value})
    return RedirectResponse(CHAT_PAGE, status_code=302)


@app.post("/auth/guest", response_model=OkResponse)
async def guest_login(request: Request, body: GuestLoginRequest) -> OkResponse:
    """Start a session-only guest login."""
    try:
        principal = create_guest_principal(body.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    request.session["user"] = principal.to_session_user()
    logger.info("Guest logged in", extra={"principal_kind": principal.kind.value})
    return OkResponse()


@app.get("/logout")
async def logout(request: Request):
    """End the session and return to the login page."""
    request.session.clear()
    return RedirectResponse(LOGIN_PAGE, status_code=302)


@app.get("/api/user", response_model=UserInfoResponse, response_model_exclude_none=True)
async def user_info(request: Request) -> UserInfoResponse:
    """Session/identity query."""
    principal = _current_principal(request)
    if principal is None:
        return UserInfoResponse(loggedIn=False)
    return UserInfoResponse(loggedIn=True, user=SessionUser(**principal.to_session_user()))


# --- Chat API (protected by session) ---

@app.post("/api/chat", response_model=ChatResponse)
def chat_endpoint(request: Request, body: ChatRequest) -> ChatResponse:
    """
    Answer one question.

    Durable principals get the exchange stored; guests never do.

    Raises:
        HTTPException: 401 without a session, 400 for a blank question,
            500 when no LLM key is configured, 502 when the upstream call fails
    """
    principal = _require_principal(request)

    question = body.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question required")

    if llm_client is None:
        raise HTTPException(status_code=500, detail="Server API key not configured.")

    try:
        llm_response = llm_client.generate(question)
    except LLMClientError as e:
        logger.error(
            f"LLM client error: {e.error.message}",
            extra={"error_code": e.error.code, "error_details": e.error.details}
        )
        raise HTTPException(status_code=502, detail="Upstream AI failed")

    if principal.is_durable:
        try:
            chat_store.add_turn(principal.id, ConversationTurn(question=question, answer=llm_response.text))
        except RuntimeError as e:
            logger.error(f"Answer delivered but not saved: {e}")

    return ChatResponse(result=llm_response.text)


@app.get("/api/history", response_model=HistoryResponse)
def history_endpoint(request: Request) -> HistoryResponse:
    """Durable principals get their stored chats newest first; guests get an empty list."""
    principal = _require_principal(request)

    if principal.kind is PrincipalKind.EPHEMERAL:
        return HistoryResponse(history=[])

    try:
        rows = chat_store.list_chats(principal.id)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return HistoryResponse(history=[HistoryItem(**row) for row in rows])


@app.delete("/api/clear-history", response_model=OkResponse)
def clear_history_endpoint(request: Request) -> OkResponse:
    """Delete all stored chats for a durable principal."""
    principal = _current_principal(request)
    if principal is None or not principal.is_durable:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        chat_store.clear_chats(principal.id)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return OkResponse()


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Chat Me API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
