"""Services for Chat Me."""
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .chat_store import ChatStore
from .google_oauth import GoogleOAuth, GoogleOAuthError, GoogleProfile
from .identity import AuthenticationRequired, IdentitySession, create_guest_principal
from .chat_api import ChatAPIClient, ChatAPIError
from .local_storage import LocalStorage
from .history_store import HistoryStore, DurableHistoryStore, LocalHistoryStore, history_store_for
from .text_formatter import ResponseFormatter, wrap_reply
from .speech_filter import clean_for_speech
from .speech_player import SpeechPlayer
from .conversation_controller import ConversationController

__all__ = ['LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError', 'ChatStore', 'GoogleOAuth', 'GoogleOAuthError', 'GoogleProfile', 'AuthenticationRequired', 'IdentitySession', 'create_guest_principal', 'ChatAPIClient', 'ChatAPIError', 'LocalStorage', 'HistoryStore', 'DurableHistoryStore', 'LocalHistoryStore', 'history_store_for', 'ResponseFormatter', 'wrap_reply', 'clean_for_speech', 'SpeechPlayer', 'ConversationController']
