"""
Pytest Configuration and Fixtures

Shared fixtures for the registry core tests: a manual clock and scheduler
for the store's timers, an in-memory registry backend served through
httpx.MockTransport, and a temporary local draft mirror.
"""
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from mear.config import Settings
from mear.core.store import FormStore, NavigationState, Scheduler, TimerHandle
from mear.services import LocalDraftMirror, RegistryClient


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle(TimerHandle):
    def __init__(self, when: float, callback: Callable, args: tuple):
        self.when = when
        self.callback = callback
        self.args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class FakeScheduler(Scheduler):
    """
    Deterministic scheduler: ``advance()`` moves the shared clock and fires
    due callbacks in order; spawned coroutines are collected and awaited by
    ``run_tasks()``.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.handles: List[FakeHandle] = []
        self.tasks: List[Any] = []

    def call_later(self, delay, callback, *args) -> FakeHandle:
        handle = FakeHandle(self.clock() + delay, callback, args)
        self.handles.append(handle)
        return handle

    def spawn(self, coro):
        self.tasks.append(coro)
        return coro

    @property
    def pending(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.clock() + seconds
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            if handle.when > self.clock():
                self.clock.now = handle.when
            handle.callback(*handle.args)
        self.clock.now = target

    async def run_tasks(self) -> None:
        while self.tasks:
            coro = self.tasks.pop(0)
            await coro


class FakeRegistryBackend:
    """In-memory stand-in for the registry HTTP API."""

    def __init__(self):
        self.drafts: Dict[str, Dict[str, Any]] = {}
        self.cases: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.fail_all = False
        self.fail_delete = False
        self.fail_submit = False
        self._next_id = 1

    def _new_id(self) -> str:
        value = str(self._next_id)
        self._next_id += 1
        return value

    def _find(self, params) -> Optional[Dict[str, Any]]:
        draft_id = params.get("draftId")
        if draft_id is not None:
            return self.drafts.get(draft_id)
        hospital_no = params.get("hospitalNo")
        for draft in self.drafts.values():
            if hospital_no and draft.get("hospitalNo") == hospital_no:
                return draft
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_all:
            return httpx.Response(503, json={"error": "unavailable"})

        path = request.url.path
        method = request.method
        body = json.loads(request.content) if request.content else {}

        if path == "/auth/login" and method == "POST":
            if body.get("password") != "secret":
                return httpx.Response(401, json={"error": "invalid credentials"})
            return httpx.Response(200, json={"token": "token-123", "user": {"email": body.get("email")}})

        if request.headers.get("Authorization") != "Bearer token-123":
            return httpx.Response(401, json={"error": "unauthorized"})

        if path == "/api/draft":
            if method == "POST":
                draft_id = self._new_id()
                form = body.get("form") or {}
                self.drafts[draft_id] = {
                    "id": draft_id,
                    "form": form,
                    "currentPhase": body.get("currentPhase"),
                    "hospitalNo": (form.get("demographics") or {}).get("hospitalNo"),
                    "updatedAt": "2026-01-01T00:00:00Z",
                }
                return httpx.Response(201, json={"id": draft_id})
            if method == "PUT":
                draft_id = body.get("draftId") or self._new_id()
                self.drafts[str(draft_id)] = {
                    "id": str(draft_id),
                    "form": body.get("form") or {},
                    "currentPhase": body.get("currentPhase"),
                    "hospitalNo": body.get("hospitalNo"),
                    "updatedAt": "2026-01-01T00:05:00Z",
                }
                return httpx.Response(200, json={"id": str(draft_id), "hospitalNo": body.get("hospitalNo")})
            if method == "GET":
                draft = self._find(request.url.params)
                if draft is None:
                    return httpx.Response(404, json={"error": "not found"})
                return httpx.Response(200, json=draft)
            if method == "DELETE":
                if self.fail_delete:
                    return httpx.Response(500, json={"error": "delete failed"})
                draft = self._find(request.url.params)
                if draft is None:
                    return httpx.Response(404, json={"error": "not found"})
                del self.drafts[draft["id"]]
                return httpx.Response(204)

        if path == "/api/mear":
            if method == "POST":
                if self.fail_submit:
                    return httpx.Response(500, json={"error": "write failed"})
                case_id = f"case-{len(self.cases) + 1}"
                self.cases[case_id] = body
                return httpx.Response(201, json={"id": case_id})
            if method == "GET":
                items = [{"id": k, **v} for k, v in self.cases.items()]
                return httpx.Response(200, json=items[: int(request.url.params.get("limit", 20))])

        if path.startswith("/api/mear/") and method == "GET":
            case_id = path.rsplit("/", 1)[-1]
            if case_id not in self.cases:
                return httpx.Response(404, json={"error": "not found"})
            return httpx.Response(200, json={"id": case_id, **self.cases[case_id]})

        return httpx.Response(404, json={"error": f"no route {method} {path}"})


# ── Fixtures ────────────────────────────────────────────────────────────────

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock) -> FakeScheduler:
    return FakeScheduler(clock)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url="http://registry.test",
        api_token="token-123",
        draft_cache_dir=str(tmp_path / "drafts"),
        report_output_dir=str(tmp_path / "reports"),
        autosave_enabled=False,
    )


@pytest.fixture
def backend() -> FakeRegistryBackend:
    return FakeRegistryBackend()


@pytest.fixture
def registry(backend) -> RegistryClient:
    return RegistryClient(
        base_url="http://registry.test",
        token="token-123",
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def mirror(tmp_path):
    cache = LocalDraftMirror(str(tmp_path / "mirror"))
    yield cache
    cache.close()


@pytest.fixture
def navigation() -> NavigationState:
    return NavigationState()


@pytest.fixture
def store(registry, mirror, navigation, scheduler, clock, settings) -> FormStore:
    return FormStore(
        registry=registry,
        mirror=mirror,
        navigation=navigation,
        scheduler=scheduler,
        clock=clock,
        settings=settings,
    )


@pytest.fixture
def complete_snapshot() -> Dict[str, Any]:
    """A snapshot that passes submit-time validation."""
    return {
        "demographics": {"age": "45", "sex": "M", "hospitalNo": "HN-1001", "weight": "70", "height": "175"},
        "comorbidities": {"diabetes": True},
        "gcs": {"eyeResponse": "3", "verbalResponse": "4", "motorResponse": "5", "isAlreadyIntubated": False},
        "indication": {"category": "medical", "medical": {"respiratoryFailure": True}},
        "preInductionVitals": {"heartRate": "96", "systolicBP": "128", "diastolicBP": "78", "spo2": "94"},
    }
