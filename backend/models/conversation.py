"""Conversation data models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass
class ConversationTurn:
    """Represents a single question/answer exchange. The answer is stored raw."""
    question: str
    answer: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class HistoryEntry:
    """A recalled question, with its answer when the durable store has one."""
    question: str
    answer: Optional[str] = None
    created_at: Optional[datetime] = None


class TurnStatus(str, Enum):
    PENDING = "pending"
    ANSWERED = "answered"
    FAILED = "failed"


@dataclass
class VisibleTurn:
    """A turn as shown in the conversation view."""
    turn_id: int
    question: str
    markup: str
    status: TurnStatus = TurnStatus.PENDING
    raw_answer: Optional[str] = None
