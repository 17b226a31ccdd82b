"""Durable account and chat storage for Google-authenticated users."""
import logging
import time
from typing import Any, Dict, List, Optional
from supabase import create_client, Client

from models.conversation import ConversationTurn
from config import SUPABASE_URL, SUPABASE_KEY

logger = logging.getLogger(__name__)


class ChatStore:
    """
    Two-table store in Supabase PostgreSQL.

    ``users``: id, google_id (unique), name, email, picture, created_at
    ``chats``: id, user_id, question, answer, created_at

    Timestamps are epoch milliseconds.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = SUPABASE_URL,
        supabase_key: Optional[str] = SUPABASE_KEY
    ):
        """
        Initialize the store with a Supabase client.

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")

        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info("ChatStore initialized with Supabase")

    def get_or_create_google_user(
        self,
        google_id: str,
        name: str,
        email: str = "",
        picture: str = ""
    ) -> Dict[str, Any]:
        """
        Return the ``users`` row for a Google account, inserting it on first login.

        Raises:
            RuntimeError: If the database operation fails
        """
        try:
            result = self.client.table("users").select("*").eq("google_id", google_id).execute()
            if result.data:
                return result.data[0]

            inserted = self.client.table("users").insert({
                "google_id": google_id,
                "name": name,
                "email": email,
                "picture": picture,
                "created_at": self._now_ms()
            }).execute()

            user = inserted.data[0]
            logger.info(f"Created user {user['id']} for Google account")
            return user
        except Exception as e:
            error_msg = f"Failed to load or create Google user: {str(e)}"
            logger.error(error_msg, exc_info=True)
            raise RuntimeError(error_msg)

    def add_turn(self, user_id: int, turn: ConversationTurn) -> None:
        """
        Persist one question/answer pair for an account. The answer is stored raw.

        Raises:
            RuntimeError: If the database operation fails
        """
        try:
            self.client.table("chats").insert({
                "user_id": user_id,
                "question": turn.question,
                "answer": turn.answer,
                "created_at": int(turn.created_at.timestamp() * 1000)
            }).execute()
            logger.info(f"Added chat for user {user_id}")
        except Exception as e:
            error_msg = f"Failed to add chat for user {user_id}: {str(e)}"
            logger.error(error_msg, exc_info=True)
            raise RuntimeError(error_msg)

    def list_chats(self, user_id: int) -> List[Dict[str, Any]]:
        """
        Return all chats for an account, newest first.

        Raises:
            RuntimeError: If the database operation fails
        """
        try:
            result = (
                self.client.table("chats")
                .select("id, question, answer, created_at")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
            return result.data or []
        except Exception as e:
            error_msg = f"Failed to list chats for user {user_id}: {str(e)}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

    def clear_chats(self, user_id: int) -> None:
        """
        Delete every chat belonging to an account.

        Raises:
            RuntimeError: If the database operation fails
        """
        try:
            self.client.table("chats").delete().eq("user_id", user_id).execute()
            logger.info(f"Cleared chats for user {user_id}")
        except Exception as e:
            error_msg = f"Failed to clear chats for user {user_id}: {str(e)}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)
