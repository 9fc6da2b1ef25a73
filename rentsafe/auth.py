from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .models import Owner


@dataclass(frozen=True)
class Principal:
    """The signed-in landlord. owner_id scopes every query."""

    owner_id: int
    email: str


# -------------------------
# JWT helpers (identity is delegated; we only mint/verify session tokens)
# -------------------------
def create_access_token(*, owner_id: int, email: str, minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(owner_id),
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=int(minutes or settings.jwt_exp_minutes))).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


# -------------------------
# Owner helpers
# -------------------------
def get_owner_by_email(db: Session, email: str) -> Owner | None:
    return db.scalar(select(Owner).where(Owner.email == email))


def get_or_create_owner(db: Session, email: str, display_name: Optional[str] = None) -> Owner:
    email = email.strip().lower()
    owner = get_owner_by_email(db, email)
    if owner:
        return owner
    owner = Owner(email=email, display_name=display_name or email.split("@")[0], created_at=datetime.utcnow())
    db.add(owner)
    db.commit()
    db.refresh(owner)
    return owner


def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Auth modes (in priority order):
      1) Authorization: Bearer <token>
      2) dev header X-User-Email (ONLY if settings.auth_mode == "dev")
    """
    if authorization and str(authorization).lower().startswith("bearer "):
        claims = decode_access_token(str(authorization).split(" ", 1)[1].strip())
        sub = str(claims.get("sub") or "")
        if not sub.isdigit():
            raise HTTPException(status_code=401, detail="Token missing sub")

        owner = db.get(Owner, int(sub))
        if owner is None:
            raise HTTPException(status_code=401, detail="Unknown owner")
        return Principal(owner_id=int(owner.id), email=str(owner.email))

    if settings.auth_mode == "dev":
        email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
        if not email:
            raise HTTPException(status_code=401, detail=f"Missing {settings.dev_header_user_email} for dev auth")

        owner = get_owner_by_email(db, email)
        if owner is None and settings.dev_auto_provision:
            owner = get_or_create_owner(db, email)
        if owner is None:
            raise HTTPException(status_code=401, detail="Unknown owner")
        return Principal(owner_id=int(owner.id), email=str(owner.email))

    raise HTTPException(status_code=401, detail="Not authenticated")
