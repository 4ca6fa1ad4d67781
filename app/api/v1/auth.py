"""Registration and login endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, ResultStatus
from app.services import accounts

router = APIRouter()

STATUS_CODES: dict[ResultStatus, int] = {
    ResultStatus.CREATED: 201,
    ResultStatus.ALLOWED: 200,
    ResultStatus.REJECTED: 400,
    ResultStatus.CONFLICT: 409,
    ResultStatus.DENIED: 401,
    ResultStatus.LOCKED: 423,
    ResultStatus.SERVER_ERROR: 500,
}


@router.post(
    "/register",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    status_code=201,
)
def register(
    body: RegisterRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Create an account.
    201 on success, 400 when a format rule is broken, 409 when the name is taken.
    """
    result = accounts.register(db, body.username, body.password, settings)
    response.status_code = STATUS_CODES[result.status]
    return result.body


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """
    Check credentials.
    200 when allowed, 401 when denied (with attemptsRemaining for a wrong password),
    423 while the account is locked (with lockedUntil).
    """
    result = accounts.login(db, body.username, body.password, settings)
    response.status_code = STATUS_CODES[result.status]
    return result.body
