"""FastAPI routes for practice session control."""
from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Iterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.schemas import AnswerReq, CodeReq, CredentialReq, SessionView, StartReq, TurnResp, ValidateReq, session_view
from interview_session import (
    ConfigurationRequiredError,
    PracticeConfig,
    SessionBusyError,
    SessionNotFoundError,
    SessionStateError,
    load_practice_config,
    save_practice_config,
)
from llm_gateway import CredentialStatus, CredentialValidation, LlmGatewayError
from services.sessions import PracticeServices, build_services
from session_reports import HistoryEntry, SessionReport, generate_session_report_pdf

_services: Optional[PracticeServices] = None


def get_services() -> PracticeServices:
    global _services
    if _services is None:
        _services = build_services()
    return _services


@contextmanager
def _session_errors() -> Iterator[None]:  # Map orchestrator errors to HTTP status codes
    try:
        yield
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Practice session not found") from exc
    except SessionBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ConfigurationRequiredError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


sessions_router = APIRouter(prefix="/api/practice-sessions")
config_router = APIRouter(prefix="/api/practice-config")
credential_router = APIRouter(prefix="/api/credential")
history_router = APIRouter(prefix="/api/history")


@sessions_router.post("/start", response_model=TurnResp)
async def start_session(req: StartReq, services: PracticeServices = Depends(get_services)) -> TurnResp:
    with _session_errors():
        if req.session_id:
            orchestrator = services.registry.acquire(req.session_id)
        else:
            orchestrator = services.new_orchestrator()
        try:
            await orchestrator.start(req.config)
        except ConfigurationRequiredError:
            if not req.session_id:
                services.registry.remove(orchestrator.session_id)
            raise
    return TurnResp(session=session_view(orchestrator))


@sessions_router.get("/{session_id}", response_model=SessionView)
async def get_session(session_id: str, services: PracticeServices = Depends(get_services)) -> SessionView:
    with _session_errors():
        return session_view(services.registry.get(session_id))


@sessions_router.post("/{session_id}/question", response_model=TurnResp)
async def request_question(session_id: str, services: PracticeServices = Depends(get_services)) -> TurnResp:
    with _session_errors():
        orchestrator = services.registry.acquire(session_id)
        await orchestrator.request_question()
    return TurnResp(session=session_view(orchestrator))


@sessions_router.post("/{session_id}/answer", response_model=TurnResp)
async def submit_answer(session_id: str, req: AnswerReq, services: PracticeServices = Depends(get_services)) -> TurnResp:
    with _session_errors():
        orchestrator = services.registry.acquire(session_id)
        result = await orchestrator.submit_answer(req.text)
    return TurnResp(session=session_view(orchestrator), result=result)


@sessions_router.post("/{session_id}/code", response_model=TurnResp)
async def submit_code(session_id: str, req: CodeReq, services: PracticeServices = Depends(get_services)) -> TurnResp:
    with _session_errors():
        orchestrator = services.registry.acquire(session_id)
        result = await orchestrator.submit_code(req.content, req.language)
    return TurnResp(session=session_view(orchestrator), result=result)


@sessions_router.post("/{session_id}/stop", response_model=SessionView)
async def stop_session(session_id: str, services: PracticeServices = Depends(get_services)) -> SessionView:
    with _session_errors():
        orchestrator = services.registry.get(session_id)
        orchestrator.stop()
    return session_view(orchestrator)


@sessions_router.post("/{session_id}/report", response_model=SessionReport)
async def request_report(session_id: str, services: PracticeServices = Depends(get_services)) -> SessionReport:
    with _session_errors():
        orchestrator = services.registry.acquire(session_id)
        return await orchestrator.request_report()


@sessions_router.get("/{session_id}/report.pdf")
def fetch_report_pdf(session_id: str, services: PracticeServices = Depends(get_services)) -> Response:
    with _session_errors():
        orchestrator = services.registry.get(session_id)
    report = orchestrator.last_report
    if report is None:
        raise HTTPException(status_code=404, detail="Session report not found")
    payload = generate_session_report_pdf(report)
    filename = f"practice-{_safe_slug(report.config.job_role) or 'report'}-{session_id[:8]}.pdf"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(content=payload, media_type="application/pdf", headers=headers)


@sessions_router.post("/{session_id}/reset", response_model=SessionView)
async def reset_session(session_id: str, services: PracticeServices = Depends(get_services)) -> SessionView:
    with _session_errors():
        orchestrator = services.registry.get(session_id)
        orchestrator.reset()
    return session_view(orchestrator)


@config_router.get("", response_model=PracticeConfig)
def load_config(services: PracticeServices = Depends(get_services)) -> PracticeConfig:
    config = load_practice_config(services.store)
    if config is None:
        raise HTTPException(status_code=404, detail="No practice configuration saved")
    return config


@config_router.put("", response_model=PracticeConfig)
def save_config(config: PracticeConfig, services: PracticeServices = Depends(get_services)) -> PracticeConfig:
    save_practice_config(services.store, config)
    return config


@credential_router.put("", response_model=CredentialStatus)
def save_credential(req: CredentialReq, services: PracticeServices = Depends(get_services)) -> CredentialStatus:
    key = req.api_key.strip()
    try:
        services.client.check_format(key)
    except LlmGatewayError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    services.resolver.save(key)
    return services.resolver.status()


@credential_router.delete("", response_model=CredentialStatus)
def clear_credential(services: PracticeServices = Depends(get_services)) -> CredentialStatus:
    services.resolver.clear()
    return services.resolver.status()


@credential_router.get("/status", response_model=CredentialStatus)
def credential_status(services: PracticeServices = Depends(get_services)) -> CredentialStatus:
    return services.resolver.status()


@credential_router.post("/validate", response_model=CredentialValidation)
async def validate_credential(req: ValidateReq, services: PracticeServices = Depends(get_services)) -> CredentialValidation:
    key = req.api_key.strip() if req.api_key is not None else None
    return await services.client.validate(key)


@history_router.get("", response_model=List[HistoryEntry])
def list_history(
    limit: Optional[int] = Query(default=None, ge=1),
    services: PracticeServices = Depends(get_services),
) -> List[HistoryEntry]:
    return services.history.list(limit)


router = APIRouter()
router.include_router(sessions_router)
router.include_router(config_router)
router.include_router(credential_router)
router.include_router(history_router)


def _safe_slug(value: str) -> str:  # Sanitize value for filenames
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


__all__ = ["get_services", "router"]
