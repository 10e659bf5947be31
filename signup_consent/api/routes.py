"""
Signup Consent - API Routes

REST endpoints the signup form talks to:
- open a consent session (identity, region, notice, served)
- read the session snapshot
- submit the user's decision
- tear the session down
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from signup_consent.api.sessions import ConsentSession, SessionRegistry
from signup_consent.core.errors import SubmissionBlockedError

router = APIRouter(prefix="/consent", tags=["consent"])


# ═══════════════════════════════════════════════════════════════════════════
# REQUEST MODELS
# ═══════════════════════════════════════════════════════════════════════════


class SubmitPreferenceRequest(BaseModel):
    """User decision from the signup form checkbox."""
    consent: bool


# ═══════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════════════════════


async def get_session_registry(request: Request) -> SessionRegistry:
    """Get the registry attached to the running app."""
    registry: SessionRegistry = request.app.state.consent_sessions
    return registry


def _require_session(registry: SessionRegistry, session_id: str) -> ConsentSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Consent session not found")
    return session


def _apply_cookies(response: Response, session: ConsentSession, registry: SessionRegistry) -> None:
    for cookie in session.cookies.drain():
        response.set_cookie(
            key=cookie.key,
            value=cookie.value,
            max_age=cookie.max_age,
            path=registry.config.cookie_path,
            samesite="lax",
        )


def _session_body(session: ConsentSession) -> dict[str, Any]:
    return {
        "session_id": session.session_id,
        "snapshot": session.reconciler.snapshot.to_public(),
    }


# ═══════════════════════════════════════════════════════════════════════════
# SESSION ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════


@router.post("/sessions", response_model=dict, status_code=status.HTTP_201_CREATED)
async def open_session(
    request: Request,
    response: Response,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    Start a consent session for the calling browser.

    Loads or creates the device identity from the ``fides_consent`` cookie,
    resolves the notice for the caller's region and records it as served.
    The returned snapshot says whether a notice is shown and whether the
    form may submit.
    """
    session = await registry.open(request.cookies)
    _apply_cookies(response, session, registry)
    return _session_body(session)


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Get the current session snapshot."""
    session = _require_session(registry, session_id)
    return _session_body(session)


@router.post("/sessions/{session_id}/submit")
async def submit_preference(
    session_id: str,
    body: SubmitPreferenceRequest,
    response: Response,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    Record the user's decision.

    409 if no notice has been served in this session; 502 if the preference
    store rejected the write (the cookie is still updated).
    """
    session = _require_session(registry, session_id)
    try:
        result = await session.reconciler.submit(body.consent)
    except SubmissionBlockedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    _apply_cookies(response, session, registry)
    if not result.remote_recorded:
        response.status_code = status.HTTP_502_BAD_GATEWAY

    payload = _session_body(session)
    payload["result"] = result.model_dump(mode="json")
    return payload


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> Response:
    """Tear the session down; late remote results are discarded."""
    if not await registry.close(session_id):
        raise HTTPException(status_code=404, detail="Consent session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
