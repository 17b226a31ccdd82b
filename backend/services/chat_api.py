"""HTTP client for the Chat Me server API."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from config import API_BASE_URL
from models.conversation import HistoryEntry

logger = logging.getLogger(__name__)


class ChatAPIError(Exception):
    """Transport failure: network error or non-success status from the server."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ChatAPIClient:
    """
    Client for the chat, session and history endpoints.

    The session cookie lives in the underlying ``httpx.Client`` cookie jar, so a
    single client instance plays the part of one browser.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            base_url: Server root URL (ignored when ``client`` is given)
            client: Preconfigured httpx client, e.g. a FastAPI TestClient
            timeout: Client-side timeout in seconds; None leaves it to the server
        """
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def get_user(self) -> Dict[str, Any]:
        """Return the session/identity payload ``{loggedIn, user?}``."""
        return self._json(self._request("GET", "/api/user"))

    def login_guest(self, name: str) -> bool:
        data = self._json(self._request("POST", "/auth/guest", json={"name": name}))
        return bool(data.get("ok"))

    def ask(self, question: str) -> str:
        """
        Send one question and return the raw answer.

        Raises:
            ChatAPIError: On network failure or any non-success status
        """
        data = self._json(self._request("POST", "/api/chat", json={"question": question}))
        return data.get("result") or "No response."

    def fetch_history(self) -> List[HistoryEntry]:
        data = self._json(self._request("GET", "/api/history"))
        entries = []
        try:
            for item in data.get("history") or []:
                created_at = item.get("created_at")
                entries.append(HistoryEntry(
                    question=item["question"],
                    answer=item.get("answer"),
                    created_at=datetime.fromtimestamp(created_at / 1000) if created_at else None
                ))
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
            logger.error(f"Malformed history item: {e!r}")
            raise ChatAPIError("Unexpected response shape") from e
        return entries

    def clear_history(self) -> None:
        self._request("DELETE", "/api/clear-history")

    def logout(self) -> None:
        """End the server session and drop the local cookie jar."""
        try:
            response = self.client.get("/logout", follow_redirects=False)
        except httpx.HTTPError as e:
            raise ChatAPIError(f"Network error: {e}") from e
        finally:
            self.client.cookies.clear()
        if not (response.is_success or response.is_redirect):
            raise ChatAPIError(f"Logout failed with status {response.status_code}", response.status_code)

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ChatAPIError(f"Network error: {e}") from e

        if not response.is_success:
            logger.error(f"{method} {path} returned status {response.status_code}")
            raise ChatAPIError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ChatAPIError(f"Invalid JSON response: {e}", response.status_code) from e
        if not isinstance(data, dict):
            raise ChatAPIError("Unexpected response shape", response.status_code)
        return data
