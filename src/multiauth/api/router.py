"""Passcode API router — the HTTP face of the passcode registry.

Endpoints
---------
POST /passcodes          → create a passcode or reset its expiry
POST /passcodes/check    → is the passcode still valid?
GET  /passcodes          → active passcodes, soonest-expiring first
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from multiauth.config import settings
from multiauth.errors import InvalidPasscodeInput
from multiauth.registry.store import PasscodeRegistry
from multiauth.services import presenter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["passcodes"])


def get_registry(request: Request) -> PasscodeRegistry:
    """Registry owned by the running application."""
    return request.app.state.registry


# ── Response / request models ────────────────────────────

class PasscodeCreateRequest(BaseModel):
    code: str
    duration_ms: int | None = None


class PasscodeCreateResponse(BaseModel):
    code: str
    renewed: bool
    message: str


class PasscodeCheckRequest(BaseModel):
    code: str


class PasscodeCheckResponse(BaseModel):
    code: str
    valid: bool
    message: str


class ActivePasscodeInfo(BaseModel):
    code: str
    remaining_ms: int
    remaining_seconds: int


class ActivePasscodeList(BaseModel):
    passcodes: list[ActivePasscodeInfo]
    message: str | None = None


# ── Endpoints ────────────────────────────────────────────

@router.post("/passcodes", response_model=PasscodeCreateResponse)
async def create_passcode(
    body: PasscodeCreateRequest,
    registry: PasscodeRegistry = Depends(get_registry),
):
    """Register a passcode, or reset the expiry of one that is still valid."""
    try:
        code = presenter.parse_passcode_input(
            body.code, presenter.EMPTY_GENERATE_MESSAGE
        )
    except InvalidPasscodeInput as exc:
        logger.info("Rejected passcode input %r: %s", body.code, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    duration_ms = (
        settings.default_duration_ms if body.duration_ms is None else body.duration_ms
    )
    renewed = registry.create_or_renew(code, duration_ms)
    return PasscodeCreateResponse(
        code=code, renewed=renewed, message=presenter.create_message(renewed)
    )


@router.post("/passcodes/check", response_model=PasscodeCheckResponse)
async def check_passcode(
    body: PasscodeCheckRequest,
    registry: PasscodeRegistry = Depends(get_registry),
):
    """Report whether a passcode exists and has not expired."""
    try:
        code = presenter.parse_passcode_input(body.code, presenter.EMPTY_CHECK_MESSAGE)
    except InvalidPasscodeInput as exc:
        logger.info("Rejected passcode input %r: %s", body.code, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    valid = registry.is_valid(code)
    logger.info("Passcode check for %s: %s", code, "valid" if valid else "invalid")
    return PasscodeCheckResponse(
        code=code, valid=valid, message=presenter.check_message(valid)
    )


@router.get("/passcodes", response_model=ActivePasscodeList)
async def list_passcodes(registry: PasscodeRegistry = Depends(get_registry)):
    """List registered passcodes with the time they have left."""
    entries = presenter.sort_soonest_first(registry.list_active())
    return ActivePasscodeList(
        passcodes=[
            ActivePasscodeInfo(
                code=e.identifier,
                remaining_ms=e.remaining_ms,
                remaining_seconds=presenter.remaining_seconds(e.remaining_ms),
            )
            for e in entries
        ],
        message=None if entries else presenter.NO_ACTIVE_MESSAGE,
    )
