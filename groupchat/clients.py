"""
Client side of the group chat: session handling and optimistic message sending.

A ChatClient talks to the HTTP API and keeps the local view of one group
conversation. Each composed message moves through

    composing -> pending -> committed | reverted

Pending messages are shown immediately and the draft is cleared, so several
sends can be in flight at once. The server decides the final order; a later
refresh() reconciles the local list to it.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_TIMEOUT = 5.0


class SendState(str, Enum):
    COMPOSING = "composing"
    PENDING = "pending"
    COMMITTED = "committed"
    REVERTED = "reverted"


@dataclass
class OutgoingMessage:
    text: str
    local_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    state: SendState = SendState.COMPOSING
    server: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def as_placeholder(self, username: Optional[str]) -> Dict[str, Any]:
        return {
            "id": None,
            "local_id": self.local_id,
            "username": username,
            "message": self.text,
            "timestamp": None,
            "state": self.state.value,
        }


class ApiError(Exception):
    def __init__(self, status_code: Optional[int], detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ChatClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        group_id: int = 1,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.group_id = group_id
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None

        self.group: Optional[Dict[str, Any]] = None
        self.messages: List[Dict[str, Any]] = []
        self.outgoing: List[OutgoingMessage] = []
        self.draft = ""
        self.loading = False
        self.loaded = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    # ---------------------- Transport ----------------------

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            resp = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(None, "Network error") from exc

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail") or resp.reason_phrase
            except ValueError:
                detail = resp.reason_phrase
            if resp.status_code == 401 and self.authenticated:
                # the session is no longer valid; back to the signed-out state
                self.logout()
            raise ApiError(resp.status_code, str(detail))
        return resp.json()

    # ---------------------- Session ----------------------

    async def register(self, username: str, email: str, password: str,
                       confirm_password: Optional[str] = None) -> Dict[str, Any]:
        if confirm_password is not None and confirm_password != password:
            self.error = "Passwords do not match"
            raise ApiError(None, self.error)
        return await self._authenticate(
            "/api/auth/register", {"username": username, "email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._authenticate("/api/auth/login", {"email": email, "password": password})

    async def _authenticate(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        self.error = None
        try:
            data = await self._request("POST", path, json=body)
        except ApiError as exc:
            self.error = exc.detail
            raise
        self.token = data["token"]
        self.user = data["user"]
        return self.user

    def logout(self) -> None:
        self.token = None
        self.user = None
        self.group = None
        self.messages = []
        self.outgoing = []
        self.loaded = False

    async def me(self) -> Dict[str, Any]:
        self.user = await self._request("GET", "/api/auth/me")
        return self.user

    # ---------------------- Conversation ----------------------

    async def load(self) -> None:
        """Fetch group metadata and history together; mark loaded once both settle."""
        self.loading = True
        self.error = None
        try:
            group, history = await asyncio.gather(
                self._request("GET", f"/api/groups/{self.group_id}"),
                self._request("GET", f"/api/groups/{self.group_id}/messages"),
                return_exceptions=True,
            )
            for result in (group, history):
                if isinstance(result, ApiError):
                    self.error = result.detail
                elif isinstance(result, BaseException):
                    raise result
            if not isinstance(group, BaseException):
                self.group = group
            if not isinstance(history, BaseException):
                self.messages = list(history)
        finally:
            self.loading = False
            self.loaded = True

    async def refresh(self) -> None:
        self.messages = list(await self._request("GET", f"/api/groups/{self.group_id}/messages"))
        self.outgoing = [m for m in self.outgoing if m.state is not SendState.COMMITTED]

    @property
    def timeline(self) -> List[Dict[str, Any]]:
        """Server rows followed by the placeholders of messages still in flight."""
        username = self.user["username"] if self.user else None
        pending = [m.as_placeholder(username) for m in self.outgoing if m.state is SendState.PENDING]
        return self.messages + pending

    def compose(self, text: str) -> None:
        self.draft = text

    def submit(self) -> Optional[OutgoingMessage]:
        if not self.draft.strip():
            return None
        msg = OutgoingMessage(text=self.draft, state=SendState.PENDING)
        self.outgoing.append(msg)
        self.draft = ""
        return msg

    async def deliver(self, msg: OutgoingMessage) -> OutgoingMessage:
        try:
            row = await self._request(
                "POST", f"/api/groups/{self.group_id}/messages", json={"message": msg.text}
            )
        except ApiError as exc:
            msg.state = SendState.REVERTED
            msg.error = exc.detail
            self.error = exc.detail
            # give the text back unless the user has started a new draft;
            # otherwise it stays listed as reverted for retry(). A 401 has
            # already cleared outgoing, so the message is put back.
            if not self.draft:
                self.draft = msg.text
                if msg in self.outgoing:
                    self.outgoing.remove(msg)
            elif msg not in self.outgoing:
                self.outgoing.append(msg)
            return msg

        msg.state = SendState.COMMITTED
        msg.server = row
        # a refresh may already have brought this row in
        if not any(m.get("id") == row.get("id") for m in self.messages):
            self.messages.append(row)
        return msg

    async def send(self, text: Optional[str] = None) -> Optional[OutgoingMessage]:
        if text is not None:
            self.compose(text)
        msg = self.submit()
        if msg is None:
            return None
        return await self.deliver(msg)

    async def retry(self, msg: OutgoingMessage) -> OutgoingMessage:
        if msg.state is not SendState.REVERTED:
            raise ValueError(f"cannot retry a {msg.state.value} message")
        msg.state = SendState.PENDING
        msg.error = None
        if msg not in self.outgoing:
            self.outgoing.append(msg)
        return await self.deliver(msg)

    @property
    def reverted(self) -> List[OutgoingMessage]:
        return [m for m in self.outgoing if m.state is SendState.REVERTED]
