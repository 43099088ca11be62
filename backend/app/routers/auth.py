import logging
import os
from datetime import datetime, timezone
from typing import Any

import jwt
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import rate_limits_disabled
from ..db import get_session
from ..models import Profile
from ..schemas import ProfileOut
from ..exceptions import http_problem

logger = logging.getLogger(__name__)


def get_jwt_secret() -> str:
  secret = os.getenv("JWT_SECRET")
  if not secret:
    raise RuntimeError("JWT_SECRET environment variable is required")
  if len(secret) < 32 or secret.lower() in {"secret", "changeme", "default"}:
    raise RuntimeError(
        "JWT_SECRET must be at least 32 characters and not a common default"
    )
  return secret


def get_jwt_audience() -> str | None:
  return (os.getenv("JWT_AUDIENCE") or "").strip() or None


# Tokens are issued by the hosted identity provider; we only verify them.
JWT_ALG = "HS256"


def _get_client_ip(request: Request) -> str:
  forwarded = request.headers.get("X-Forwarded-For")
  if forwarded:
    parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
    if parts:
      return parts[-1]
  real_ip = request.headers.get("X-Real-IP")
  if real_ip:
    return real_ip
  return request.client.host if request.client else ""


limiter = Limiter(key_func=_get_client_ip)
router = APIRouter(prefix="/auth", tags=["auth"])


def write_rate_limit() -> str:
  if rate_limits_disabled():
    return "1000/second"
  return "30/minute"


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
  detail = exc.detail if isinstance(exc.detail, str) else ""
  if detail:
    message = f"rate limit exceeded: {detail}"
  else:
    message = "rate limit exceeded: please wait before submitting another request."
  return JSONResponse(
      status_code=429,
      content={
          "detail": message,
          "code": "rate_limit_exceeded",
      },
  )


def _utcnow() -> datetime:
  return datetime.now(timezone.utc).replace(tzinfo=None)


def _extract_bearer_token(authorization: str | None) -> str:
  if authorization and authorization.lower().startswith("bearer "):
    token = authorization.split(" ", 1)[1].strip()
    if token:
      return token

  raise http_problem(
      status_code=401,
      detail="missing token",
      code="auth_missing_token",
  )


def decode_access_token(token: str) -> dict[str, Any]:
  audience = get_jwt_audience()
  options = {"require": ["sub"]}
  if audience is None:
    options["verify_aud"] = False
  try:
    return jwt.decode(
        token,
        get_jwt_secret(),
        algorithms=[JWT_ALG],
        audience=audience,
        options=options,
    )
  except jwt.ExpiredSignatureError:
    raise http_problem(
        status_code=401,
        detail="token expired",
        code="auth_token_expired",
    )
  except jwt.PyJWTError:
    raise http_problem(
        status_code=401,
        detail="invalid token",
        code="auth_invalid_token",
    )


def _profile_fields(payload: dict[str, Any]) -> dict[str, str | None]:
  metadata = payload.get("user_metadata")
  if not isinstance(metadata, dict):
    metadata = {}
  full_name = metadata.get("full_name") or metadata.get("name") or None
  avatar_url = metadata.get("avatar_url") or metadata.get("picture") or None
  email = payload.get("email") or None
  return {"email": email, "full_name": full_name, "avatar_url": avatar_url}


async def _sync_profile(
    session: AsyncSession, user_id: str, payload: dict[str, Any]
) -> Profile:
  fields = _profile_fields(payload)
  profile = await session.get(Profile, user_id)
  if profile is None:
    profile = Profile(id=user_id, updated_at=_utcnow(), **fields)
    session.add(profile)
    await session.commit()
    logger.info("Created profile for user %s", user_id)
    return profile

  changed = False
  for name, value in fields.items():
    if getattr(profile, name) != value:
      setattr(profile, name, value)
      changed = True
  if changed:
    profile.updated_at = _utcnow()
    await session.commit()
  return profile


async def get_current_user(
    authorization: str | None = Header(None),
    session: AsyncSession = Depends(get_session),
) -> Profile:
  token = _extract_bearer_token(authorization)
  payload = decode_access_token(token)
  uid = payload.get("sub")
  if not isinstance(uid, str) or not uid:
    raise http_problem(
        status_code=401,
        detail="invalid token",
        code="auth_invalid_token",
    )
  return await _sync_profile(session, uid, payload)


@router.get("/me", response_model=ProfileOut)
async def read_me(current: Profile = Depends(get_current_user)):
  return ProfileOut(
      id=current.id,
      email=current.email,
      full_name=current.full_name,
      avatar_url=current.avatar_url,
  )
