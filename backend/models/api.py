"""Request and response schemas for the Chat Me HTTP API."""
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""
    question: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    """Raw, untransformed model answer."""
    result: str


class GuestLoginRequest(BaseModel):
    """Body of POST /auth/guest."""
    name: str = ""


class OkResponse(BaseModel):
    ok: bool = True


class SessionUser(BaseModel):
    """Minimal user info kept in the session cookie."""
    id: Union[int, str]
    name: str
    type: str
    photo: Optional[str] = None


class UserInfoResponse(BaseModel):
    """Body of GET /api/user."""
    loggedIn: bool
    user: Optional[SessionUser] = None


class HistoryItem(BaseModel):
    id: Optional[int] = None
    question: str
    answer: Optional[str] = None
    created_at: Optional[int] = None  # epoch milliseconds


class HistoryResponse(BaseModel):
    history: List[HistoryItem] = Field(default_factory=list)
