from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
import logging

from authcode.core.appwrite import aget_appwrite
from authcode.core.config import Settings, get_settings, settings
from authcode.core.exceptions import AuthCodeError, UnexpectedError
from authcode.core.limiter import limiter
from authcode.schemas.authSchema import (
    SendCodeRequest,
    SendCodeResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
    ErrorResponse,
)
from authcode.services.AppwriteClient import AppwriteClient
from authcode.services.LoginCodeService import LoginCodeService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def get_login_code_service(
    store: AppwriteClient = Depends(aget_appwrite),
    app_settings: Settings = Depends(get_settings)
) -> LoginCodeService:
    return LoginCodeService(store, app_settings)


def unexpected(e: Exception) -> UnexpectedError:
    """Wrap a store or runtime failure, echoing its message to the caller."""
    return UnexpectedError(str(e) or e.__class__.__name__)


# -----------------------------
# Send Code
# -----------------------------
@router.post(
    "/send-code",
    response_model=SendCodeResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
@limiter.limit(settings.SEND_CODE_RATE_LIMIT)
async def send_code(
    request: Request,
    payload: Optional[SendCodeRequest] = None,
    role: Optional[str] = Query(default=None),
    ref: Optional[str] = Query(default=None),
    service: LoginCodeService = Depends(get_login_code_service),
    app_settings: Settings = Depends(get_settings)
):
    """
    Issue a six digit login code for an email.

    In development mode the code and its expiry are returned inline;
    otherwise only an acknowledgment is returned.
    """
    try:
        result = await service.send_code(payload.email if payload else None, role=role, ref=ref)
    except AuthCodeError:
        raise
    except Exception as e:
        logger.exception(f"Error sending code: {e}")
        raise unexpected(e)

    if app_settings.DEV_MODE:
        return SendCodeResponse(
            message="Code generated (DEV)",
            code_dev=result.code,
            expires_at=result.expires_at,
        )
    # delivery channel not wired, acknowledge only
    return SendCodeResponse(message="Code sent")


# -----------------------------
# Verify Code
# -----------------------------
@router.post(
    "/verify-code",
    response_model=VerifyCodeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def verify_code(
    payload: Optional[VerifyCodeRequest] = None,
    service: LoginCodeService = Depends(get_login_code_service)
):
    """
    Verify a login code, record the role on the user profile and issue a token.
    """
    payload = payload or VerifyCodeRequest()
    try:
        result = await service.verify_code(
            payload.email, payload.code, role=payload.role, ref=payload.ref
        )
    except AuthCodeError:
        raise
    except Exception as e:
        logger.exception(f"Error verifying code: {e}")
        raise unexpected(e)

    return VerifyCodeResponse(user_id=result.user_id, role_set=result.role_set, token=result.token)
