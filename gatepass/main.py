# =======================================================================================
# gatepass/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import Config, config
from .api.routes.scan import router as scan_router
from .api.routes.verify import router as verify_router
from .api.routes.logs import router as logs_router
from .database import DatabaseManager
from .models.schemas import HealthResponse
from .services.approval_chain import ApprovalChainInspector
from .services.audit_log import AuditLogStore, SqlAuditLogStore
from .services.checkpoint_session import CheckpointSession, SessionRegistry
from .services.pass_decoder import PassDecoder
from .services.repositories import (
    ApprovalChainRepository, RequestRepository, load_repositories,
)
from .services.verification import VerificationEngine
from .utils.exceptions import GatePassError
from .workers.scanner_worker import start_scanner_worker

logger = logging.getLogger(__name__)


def configure_logging(settings: Config) -> None:
    level = logging.DEBUG if settings.API_DEBUG else getattr(logging, settings.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(
    settings: Config = config,
    store: Optional[AuditLogStore] = None,
    requests: Optional[RequestRepository] = None,
    approvals: Optional[ApprovalChainRepository] = None,
    start_worker: bool = True,
) -> FastAPI:
    configure_logging(settings)

    app = FastAPI(
        title="Gatepass Checkpoint API",
        version="1.0.0",
        description="Access-pass verification and audit logging for physical checkpoints",
        debug=settings.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Collaborators
    db: Optional[DatabaseManager] = None
    if store is None:
        db = DatabaseManager(settings.DB_URL)
        store = SqlAuditLogStore(db)
    if requests is None or approvals is None:
        seeded_requests, seeded_approvals = load_repositories(settings.REQUESTS_FILE)
        requests = requests if requests is not None else seeded_requests
        approvals = approvals if approvals is not None else seeded_approvals

    decoder = PassDecoder(settings.PASS_QUERY_PARAM)
    engine = VerificationEngine()
    inspector = ApprovalChainInspector(approvals)

    def new_session(terminal_id: str) -> CheckpointSession:
        return CheckpointSession(
            terminal_id,
            store,
            decoder=decoder,
            engine=engine,
            requests=requests,
            approvals=inspector,
            expected_facility=settings.CHECKPOINT_FACILITY,
            gate=settings.CHECKPOINT_GATE,
        )

    app.state.store = store
    app.state.decoder = decoder
    app.state.engine = engine
    app.state.requests = requests
    app.state.inspector = inspector
    app.state.sessions = SessionRegistry(new_session)
    app.state.scanner = None

    # Routers
    app.include_router(scan_router, prefix="/api", tags=["checkpoint"])
    app.include_router(verify_router, prefix="/api", tags=["verify"])
    app.include_router(logs_router, prefix="/api", tags=["logs"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            store.ping()
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except GatePassError as e:
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    @app.get("/health")
    def legacy_health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def startup_event():
        if isinstance(store, SqlAuditLogStore):
            store.create_schema()
        if start_worker:
            app.state.scanner = start_scanner_worker(
                app.state.sessions.get(settings.TERMINAL_ID),
                debounce_seconds=settings.SCAN_DEBOUNCE_SECONDS,
            )
        logger.info("Gatepass API started (terminal %s)", settings.TERMINAL_ID)

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.scanner is not None:
            app.state.scanner.stop()
        if db is not None:
            db.dispose()

    return app


app = create_app()
