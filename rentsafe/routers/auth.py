from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import Principal, create_access_token, get_or_create_owner, get_owner_by_email, get_principal
from ..config import settings
from ..db import get_db
from ..schemas import PrincipalOut, TokenOut, TokenRequest

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=TokenOut)
def issue_token(payload: TokenRequest, db: Session = Depends(get_db)):
    """
    Dev helper: exchange an email for a session token.
    Identity proofing is delegated to the external provider in every other mode.
    """
    if settings.auth_mode != "dev":
        raise HTTPException(status_code=404, detail="token issuance is only available in dev mode")

    email = payload.email.strip().lower()
    owner = get_owner_by_email(db, email)
    if owner is None:
        if not settings.dev_auto_provision:
            raise HTTPException(status_code=401, detail="Unknown owner")
        owner = get_or_create_owner(db, email, payload.display_name)

    return TokenOut(access_token=create_access_token(owner_id=owner.id, email=owner.email), owner_id=owner.id)


@router.get("/me", response_model=PrincipalOut)
def me(p: Principal = Depends(get_principal)):
    return PrincipalOut(owner_id=p.owner_id, email=p.email)
