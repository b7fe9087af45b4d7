"""
MEAR Registry - FastAPI Application

Thin session API over the form store for a browser front end:
- Form sessions (one FormStore each): data edits, phases, timer, alerts
- Draft save / load against the registry backend with local fallback
- Final submission and PDF case report download
- Stateless rule evaluation for a snapshot
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional
import uuid

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mear import __version__
from mear.config import Settings, load_settings
from mear.core.calculations import calculate_all_values
from mear.core.clinical import ClinicalAlertEngine
from mear.core.navigation import PhaseNavigator
from mear.core.reports import CaseReportGenerator
from mear.core.store import FormStore, NavigationState
from mear.services import LocalDraftMirror, RegistryClient, SubmissionService, SubmitOutcome
from mear.utils import get_logger, setup_logging
from mear.utils.exceptions import (
    DraftNotFoundError,
    MearError,
    RegistryError,
    ReportGenerationError,
    UnknownPhaseError,
)

logger = get_logger(__name__)


# ---- Request / Response Models ----

class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    sessions: int = 0


class OpenSessionRequest(BaseModel):
    draftId: Optional[str] = None
    hospitalNo: Optional[str] = None


class FieldUpdate(BaseModel):
    path: str = Field(min_length=1)
    value: Any = None


class PhaseRequest(BaseModel):
    phaseId: str


class LoadDraftRequest(BaseModel):
    draftId: Optional[str] = None
    hospitalNo: Optional[str] = None


class EvaluateRequest(BaseModel):
    snapshot: Dict[str, Any] = Field(default_factory=dict)


class FormSession:
    """One open form: its store and navigator."""

    def __init__(self, session_id: str, store: FormStore):
        self.id = session_id
        self.store = store
        self.navigator = PhaseNavigator(store)
        self.created_at = datetime.now()

    def state(self) -> Dict[str, Any]:
        payload = self.store.to_dict()
        payload["sessionId"] = self.id
        payload["progress"] = self.navigator.progress()
        payload["location"] = self.store.navigation.url
        return payload


_STATUS_CODES = {
    DraftNotFoundError: 404,
    UnknownPhaseError: 400,
    RegistryError: 502,
    ReportGenerationError: 500,
}

_SUBMIT_STATUS = {
    SubmitOutcome.SUCCEEDED: 200,
    SubmitOutcome.SAVED_DRAFT_NOT_CLEARED: 200,
    SubmitOutcome.INVALID: 422,
    SubmitOutcome.FAILED: 502,
}


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[RegistryClient] = None,
    mirror: Optional[LocalDraftMirror] = None,
    report_generator: Optional[CaseReportGenerator] = None,
) -> FastAPI:
    settings = settings or load_settings()
    registry = registry or RegistryClient(
        base_url=settings.api_base_url,
        token=settings.api_token,
        timeout=settings.request_timeout,
    )
    mirror = mirror or LocalDraftMirror(settings.draft_cache_dir)
    report_generator = report_generator or CaseReportGenerator(settings.report_output_dir)
    submission = SubmissionService(registry, mirror)
    engine = ClinicalAlertEngine()
    sessions: Dict[str, FormSession] = {}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("MEAR API ready to accept requests")
        yield
        mirror.close()
        logger.info("MEAR API shut down.")

    app = FastAPI(
        title="MEAR Registry API",
        description="Emergency airway registry: form sessions, clinical alerts and drafts",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sessions = sessions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MearError)
    async def mear_error_handler(request: Request, exc: MearError):
        status = next((code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)), 400)
        logger.warning(f"{request.method} {request.url.path} -> {status} {exc.code}: {exc.message}")
        return JSONResponse(status_code=status, content=exc.to_dict())

    def _session(session_id: str) -> FormSession:
        session = sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
        return session

    # ---- Health ----

    @app.get("/", response_model=HealthResponse, tags=["Health"])
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        return HealthResponse(
            status="healthy",
            version=__version__,
            timestamp=datetime.now().isoformat(),
            sessions=len(sessions),
        )

    # ---- Stateless evaluation ----

    @app.post("/api/v1/evaluate", tags=["Clinical"])
    async def evaluate(request: EvaluateRequest):
        """Calculated values, alerts and protocols for one snapshot."""
        alerts = engine.analyze(request.snapshot)
        return {
            "calculatedValues": calculate_all_values(request.snapshot).to_dict(),
            "summary": engine.summarise(alerts),
            "activeProtocols": [p.to_dict() for p in engine.protocols(request.snapshot)],
        }

    # ---- Sessions ----

    @app.post("/api/v1/sessions", tags=["Sessions"])
    async def open_session(request: Optional[OpenSessionRequest] = None):
        """Open a form.  With a draftId / hospitalNo the draft is resumed."""
        request = request or OpenSessionRequest()
        params = {k: v for k, v in (("draftId", request.draftId), ("hospitalNo", request.hospitalNo)) if v}
        store = FormStore(
            registry=registry,
            mirror=mirror,
            navigation=NavigationState(params=params),
            settings=settings,
        )
        session = FormSession(uuid.uuid4().hex, store)
        sessions[session.id] = session
        if params:
            found = await store.load_draft()
            logger.info(f"Session {session.id} opened; draft resumed={found}")
        else:
            logger.info(f"Session {session.id} opened")
        return session.state()

    @app.get("/api/v1/sessions/{session_id}", tags=["Sessions"])
    async def get_session(session_id: str):
        session = _session(session_id)
        session.store.update_elapsed_time()
        return session.state()

    @app.delete("/api/v1/sessions/{session_id}", tags=["Sessions"])
    async def close_session(session_id: str, clear: bool = False):
        session = _session(session_id)
        if clear:
            session.store.clear_form()
        else:
            session.store.stop_timer()
        del sessions[session_id]
        return {"closed": session_id, "cleared": clear}

    @app.patch("/api/v1/sessions/{session_id}/data", tags=["Form"])
    async def patch_data(session_id: str, partial: Dict[str, Any]):
        session = _session(session_id)
        session.store.set_data(partial)
        return session.state()

    @app.put("/api/v1/sessions/{session_id}/field", tags=["Form"])
    async def put_field(session_id: str, update: FieldUpdate):
        session = _session(session_id)
        try:
            session.store.update_field(update.path, update.value)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return session.state()

    # ---- Phases ----

    @app.put("/api/v1/sessions/{session_id}/phase", tags=["Phases"])
    async def goto_phase(session_id: str, request: PhaseRequest):
        session = _session(session_id)
        session.navigator.goto(request.phaseId)
        return session.state()

    @app.post("/api/v1/sessions/{session_id}/phase/next", tags=["Phases"])
    async def next_phase(session_id: str):
        session = _session(session_id)
        session.navigator.next()
        return session.state()

    @app.post("/api/v1/sessions/{session_id}/phase/previous", tags=["Phases"])
    async def previous_phase(session_id: str):
        session = _session(session_id)
        session.navigator.previous()
        return session.state()

    @app.post("/api/v1/sessions/{session_id}/phase/complete", tags=["Phases"])
    async def complete_phase(session_id: str):
        session = _session(session_id)
        session.navigator.complete_current()
        return session.state()

    # ---- Monitoring timer ----

    @app.post("/api/v1/sessions/{session_id}/timer/start", tags=["Monitoring"])
    async def start_timer(session_id: str):
        session = _session(session_id)
        session.store.start_timer()
        return session.state()

    @app.post("/api/v1/sessions/{session_id}/timer/stop", tags=["Monitoring"])
    async def stop_timer(session_id: str):
        session = _session(session_id)
        session.store.stop_timer()
        return session.state()

    @app.post("/api/v1/sessions/{session_id}/timer/tick", tags=["Monitoring"])
    async def tick_timer(session_id: str):
        session = _session(session_id)
        return {"elapsedTime": session.store.update_elapsed_time(), "timerActive": session.store.timer_active}

    @app.post("/api/v1/sessions/{session_id}/monitoring/{interval}/complete", tags=["Monitoring"])
    async def complete_interval(session_id: str, interval: str):
        session = _session(session_id)
        session.store.complete_monitoring_interval(interval)
        return session.state()

    # ---- Alerts ----

    @app.delete("/api/v1/sessions/{session_id}/alerts/{alert_id}", tags=["Alerts"])
    async def dismiss_alert(session_id: str, alert_id: str):
        session = _session(session_id)
        session.store.dismiss_alert(alert_id)
        return {"alerts": [a.to_dict() for a in session.store.alerts]}

    @app.delete("/api/v1/sessions/{session_id}/alerts", tags=["Alerts"])
    async def clear_alerts(session_id: str, stale_only: bool = False):
        session = _session(session_id)
        if stale_only:
            session.store.clear_stale_alerts()
        else:
            session.store.clear_all_alerts()
        return {"alerts": [a.to_dict() for a in session.store.alerts]}

    # ---- Drafts ----

    @app.post("/api/v1/sessions/{session_id}/draft/save", tags=["Drafts"])
    async def save_draft(session_id: str):
        session = _session(session_id)
        saved = await session.store.save_draft()
        return {"saved": saved, "draftId": session.store.draft_id, "isDraft": session.store.is_draft}

    @app.post("/api/v1/sessions/{session_id}/draft/load", tags=["Drafts"])
    async def load_draft(session_id: str, request: Optional[LoadDraftRequest] = None):
        session = _session(session_id)
        request = request or LoadDraftRequest()
        found = await session.store.load_draft(request.draftId, request.hospitalNo)
        if not found:
            raise DraftNotFoundError(draft_id=request.draftId, hospital_no=request.hospitalNo)
        return session.state()

    # ---- Submission & reports ----

    @app.post("/api/v1/sessions/{session_id}/submit", tags=["Submission"])
    async def submit(session_id: str):
        session = _session(session_id)
        result = await submission.submit(session.store)
        return JSONResponse(status_code=_SUBMIT_STATUS[result.outcome], content=result.to_dict())

    @app.get("/api/v1/sessions/{session_id}/report", tags=["Reports"])
    async def download_report(session_id: str):
        session = _session(session_id)
        report_id = f"MEAR-{session_id[:8]}-{datetime.now().strftime('%Y%m%d%H%M%S')}"
        pdf = report_generator.render(session.store.report_payload(), report_id=report_id)
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{report_id}.pdf"'},
        )

    return app


def _configure() -> FastAPI:
    settings = load_settings()
    setup_logging(settings.log_level)
    return create_app(settings)


# ---- Run with uvicorn ----
def run():
    import uvicorn
    uvicorn.run(_configure(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
