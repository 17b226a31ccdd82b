"""
Conversation view controller.

Drives one visible conversation through ``idle -> awaiting-answer -> idle``.
User actions and network completions are both fed in as events through
``dispatch``; ``ask`` composes the full turn for synchronous callers.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from models.conversation import TurnStatus, VisibleTurn
from models.principal import Principal
from services.chat_api import ChatAPIClient, ChatAPIError
from services.history_store import HistoryStore, history_store_for
from services.identity import AuthenticationRequired, IdentitySession
from services.local_storage import LocalStorage
from services.speech_player import SpeechPlayer, Synthesizer
from services.text_formatter import ResponseFormatter, wrap_reply

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Something went wrong. Check your connection."
PLACEHOLDER_MARKUP = '<div class="loading" aria-busy="true"></div>'
GREETING = "Hi there! I'm Chat Me, your friendly AI assistant. Let's get started with your thoughts!"
# Real turns are numbered from 1
GREETING_TURN_ID = 0


def greeting_turn() -> VisibleTurn:
    """The welcome message a cleared chat view starts from."""
    return VisibleTurn(
        turn_id=GREETING_TURN_ID,
        question="",
        markup=wrap_reply(GREETING),
        status=TurnStatus.ANSWERED,
    )


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING_ANSWER = "awaiting-answer"


class ClearAction(str, Enum):
    CHAT = "chat"
    HISTORY = "history"


# Events -----------------------------------------------------------------

@dataclass
class SubmitQuestion:
    question: str


@dataclass
class AnswerReceived:
    turn_id: int
    raw_answer: str


@dataclass
class AnswerFailed:
    turn_id: int
    reason: str = ""


@dataclass
class RequestClear:
    action: ClearAction


@dataclass
class ConfirmPendingAction:
    pass


@dataclass
class CancelPendingAction:
    pass


@dataclass
class ToggleSpeech:
    turn_id: int


@dataclass
class ViewContext:
    """All mutable state of one conversation view."""
    identity: IdentitySession
    speech: SpeechPlayer
    phase: Phase = Phase.IDLE
    turn_counter: int = 0
    awaiting_turn_id: Optional[int] = None
    turns: List[VisibleTurn] = field(default_factory=list)
    history: List[str] = field(default_factory=list)
    pending_action: Optional[ClearAction] = None

    @property
    def principal(self) -> Principal:
        return self.identity.require_principal()


class ConversationController:
    """Turn-taking, placeholder/answer correlation and history updates."""

    def __init__(
        self,
        context: ViewContext,
        api: ChatAPIClient,
        history: HistoryStore,
        formatter: Optional[ResponseFormatter] = None
    ):
        self.context = context
        self.api = api
        self.history = history
        self.formatter = formatter or ResponseFormatter()
        self._handlers: Dict[type, Callable[[Any], Any]] = {
            SubmitQuestion: self._on_submit,
            AnswerReceived: self._on_answer,
            AnswerFailed: self._on_failure,
            RequestClear: self._on_request_clear,
            ConfirmPendingAction: self._on_confirm,
            CancelPendingAction: self._on_cancel,
            ToggleSpeech: self._on_toggle_speech,
        }

    @classmethod
    def open(
        cls,
        api: ChatAPIClient,
        storage: LocalStorage,
        synthesizer: Synthesizer,
        identity: Optional[IdentitySession] = None
    ) -> "ConversationController":
        """
        Resolve the current principal and build a controller for it.

        Raises:
            AuthenticationRequired: If there is no logged-in session; the caller
                should send the user to ``error.entry_point``
        """
        identity = identity or IdentitySession()
        try:
            payload = api.get_user()
        except ChatAPIError as e:
            logger.error(f"Failed to fetch user: {e}")
            raise AuthenticationRequired(str(e)) from e

        principal = identity.resolve(payload)
        context = ViewContext(identity=identity, speech=SpeechPlayer(synthesizer))
        controller = cls(context, api, history_store_for(principal, api, storage))
        controller.load_history()
        return controller

    # Public API ---------------------------------------------------------

    def dispatch(self, event: Any) -> Any:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event: {type(event).__name__}")
        return handler(event)

    def ask(self, question: str) -> Optional[VisibleTurn]:
        """Run one full turn. Returns None if the question was not accepted."""
        turn_id = self.dispatch(SubmitQuestion(question))
        if turn_id is None:
            return None

        try:
            raw_answer = self.api.ask(question.strip())
        except ChatAPIError as e:
            self.dispatch(AnswerFailed(turn_id, str(e)))
        else:
            self.dispatch(AnswerReceived(turn_id, raw_answer))
        return self.turn(turn_id)

    def turn(self, turn_id: int) -> Optional[VisibleTurn]:
        for turn in self.context.turns:
            if turn.turn_id == turn_id:
                return turn
        return None

    def copy_text(self, turn_id: int) -> str:
        """Raw answer text for the clipboard ("" when there is none)."""
        turn = self.turn(turn_id)
        return (turn.raw_answer or "") if turn else ""

    def load_history(self) -> List[str]:
        self.context.history = [entry.question for entry in self.history.list()]
        return self.context.history

    def logout(self) -> None:
        self.context.speech.stop()
        try:
            self.api.logout()
        finally:
            self.context.identity.logout()

    # Handlers -----------------------------------------------------------

    def _on_submit(self, event: SubmitQuestion) -> Optional[int]:
        question = (event.question or "").strip()
        if not question:
            return None
        if self.context.phase is Phase.AWAITING_ANSWER:
            logger.debug("Ignoring question while an answer is pending")
            return None

        self.context.turn_counter += 1
        turn_id = self.context.turn_counter
        self.context.turns.append(VisibleTurn(turn_id=turn_id, question=question, markup=PLACEHOLDER_MARKUP))
        self.context.phase = Phase.AWAITING_ANSWER
        self.context.awaiting_turn_id = turn_id
        return turn_id

    def _finish_awaiting(self, turn_id: int) -> bool:
        if self.context.awaiting_turn_id != turn_id:
            logger.warning(f"Ignoring completion for turn {turn_id}", extra={"turn_id": turn_id})
            return False
        self.context.phase = Phase.IDLE
        self.context.awaiting_turn_id = None
        return True

    def _on_answer(self, event: AnswerReceived) -> None:
        if not self._finish_awaiting(event.turn_id):
            return
        turn = self.turn(event.turn_id)
        if turn is not None:
            turn.raw_answer = event.raw_answer
            turn.markup = wrap_reply(self.formatter.format(event.raw_answer))
            turn.status = TurnStatus.ANSWERED
            self._record_history(turn.question)

    def _on_failure(self, event: AnswerFailed) -> None:
        if not self._finish_awaiting(event.turn_id):
            return
        logger.error(f"Chat request failed: {event.reason}", extra={"turn_id": event.turn_id})
        turn = self.turn(event.turn_id)
        if turn is not None:
            turn.markup = FAILURE_MESSAGE
            turn.status = TurnStatus.FAILED

    def _record_history(self, question: str) -> None:
        if self.history.refetch_after_chat:
            self.load_history()
        elif self.history.append(question):
            self.context.history.insert(0, question)

    def _on_request_clear(self, event: RequestClear) -> None:
        self.context.pending_action = event.action

    def _on_cancel(self, event: CancelPendingAction) -> None:
        self.context.pending_action = None

    def _on_confirm(self, event: ConfirmPendingAction) -> None:
        action, self.context.pending_action = self.context.pending_action, None
        if action is ClearAction.CHAT:
            self._clear_chat()
        elif action is ClearAction.HISTORY:
            self._clear_history()

    def _clear_chat(self) -> None:
        # An in-flight answer still completes the phase; its turn is just gone
        self.context.turns = [greeting_turn()]
        self.context.speech.stop()

    def _clear_history(self) -> None:
        if self.history.clear():
            self.context.history = []

    def _on_toggle_speech(self, event: ToggleSpeech) -> bool:
        turn = self.turn(event.turn_id)
        if turn is None or turn.raw_answer is None:
            return False
        return self.context.speech.toggle(turn.raw_answer)
