"""Data models for Chat Me."""
from .principal import Principal, PrincipalKind
from .conversation import ConversationTurn, HistoryEntry, TurnStatus, VisibleTurn
from .api import (
    ChatRequest,
    ChatResponse,
    GuestLoginRequest,
    OkResponse,
    SessionUser,
    UserInfoResponse,
    HistoryItem,
    HistoryResponse,
)

__all__ = [
    "Principal",
    "PrincipalKind",
    "ConversationTurn",
    "HistoryEntry",
    "TurnStatus",
    "VisibleTurn",
    "ChatRequest",
    "ChatResponse",
    "GuestLoginRequest",
    "OkResponse",
    "SessionUser",
    "UserInfoResponse",
    "HistoryItem",
    "HistoryResponse",
]
