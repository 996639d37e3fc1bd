import pathlib
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest
from fastapi import FastAPI, Request

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))
from leadqueue.app_logging import init_logging
from leadqueue.models.session import get_sessionmaker


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.text = "" if isinstance(payload, Exception) else str(payload)

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Return queued responses in order, recording every request."""

    def __init__(self, responses: List[FakeResponse]):
        self._responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        if not self._responses:
            raise AssertionError("no more responses queued")
        return self._responses.pop(0)


class ZokoDirectorySession:
    """Serve ``/customer`` pages and ``/customer/{id}/messages`` from memory.

    ``messages`` maps a customer id to a message payload list, or to an HTTP
    status code to simulate a failed fetch. Pages listed in ``failing_pages``
    answer with a 502.
    """

    def __init__(
        self,
        pages: List[List[Dict[str, Any]]],
        messages: Dict[str, Any] | None = None,
        failing_pages: set[int] | None = None,
    ):
        self.pages = pages
        self.messages = messages or {}
        self.failing_pages = failing_pages or set()
        self.page_requests: List[int] = []
        self.message_requests: List[str] = []
        self.headers: List[Dict[str, str]] = []
        self._lock = threading.Lock()

    def request(self, method: str, url: str, params=None, headers=None, **kwargs: Any):
        with self._lock:
            self.headers.append(headers or {})
        if url.endswith("/messages"):
            customer_id = url.rstrip("/").split("/")[-2]
            with self._lock:
                self.message_requests.append(customer_id)
            payload = self.messages.get(customer_id, [])
            if isinstance(payload, int):
                return FakeResponse({"error": "failed"}, status_code=payload)
            return FakeResponse(payload)

        page = int((params or {}).get("page", 1))
        with self._lock:
            self.page_requests.append(page)
        if page in self.failing_pages:
            return FakeResponse({"error": "bad gateway"}, status_code=502)
        customers = self.pages[page - 1] if 0 < page <= len(self.pages) else []
        return FakeResponse(
            {
                "customers": customers,
                "totalPages": len(self.pages),
                "totalCustomers": sum(len(p) for p in self.pages),
            }
        )


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def iso(value: datetime) -> str:
    return value.isoformat()


def customer_payload(
    customer_id: str,
    phone: str,
    name: str,
    last_inbound: datetime | None = None,
) -> Dict[str, Any]:
    return {
        "id": customer_id,
        "name": name,
        "channel": "whatsapp",
        "channelId": phone,
        "lastIncomingMessageAt": iso(last_inbound) if last_inbound else None,
    }


def message_payload(
    customer_id: str,
    msg_id: str,
    created_at: datetime,
    *,
    type: str = "image",
    direction: str = "FROM_CUSTOMER",
    text: str | None = None,
    media_url: str | None = None,
    caption: str | None = None,
) -> Dict[str, Any]:
    if type == "image" and media_url is None:
        media_url = f"https://media.example/{msg_id}.jpg"
    return {
        "key": {"customerId": customer_id, "msgId": msg_id},
        "direction": direction,
        "type": type,
        "text": text,
        "fileCaption": caption,
        "mediaUrl": media_url,
        "createdAt": iso(created_at),
    }


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_factory(tmp_path):
    factory = get_sessionmaker(
        f"sqlite+pysqlite:///{tmp_path / 'leads.db'}", create_tables=True
    )
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture
def app_factory(monkeypatch):
    def _create_app(log_dir: str, log_request_bodies: bool = False):
        """Create a FastAPI app with logging initialised."""
        monkeypatch.setenv("LOG_DIR", str(log_dir))
        if log_request_bodies:
            monkeypatch.setenv("LOG_REQUEST_BODIES", "true")
        app = FastAPI()

        @app.post("/echo")
        async def echo(request: Request):
            return await request.json()

        init_logging(app)
        return app

    return _create_app
