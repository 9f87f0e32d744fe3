from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app import crud
from app.api.deps import get_current_user, require_api_key
from app.db import get_db
from app.schemas.profile import ApiKeyOut, ProfileOut, RegisterIn, RegisterOut
from app.security import api_key_prefix

router = APIRouter(prefix="/auth", tags=["auth"], dependencies=[Depends(require_api_key)])


@router.post("/register", response_model=RegisterOut, status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    try:
        user, token = crud.register_user(db, payload.email, name=payload.name, timezone=payload.timezone or "UTC")
    except crud.DuplicateEmailError:
        raise HTTPException(status_code=409, detail="Email is already registered")
    except RuntimeError:
        raise HTTPException(status_code=500, detail="Server auth is not configured")
    return RegisterOut(api_key=token, api_key_prefix=api_key_prefix(token), user=ProfileOut.model_validate(user))


@router.post("/rotate-key", response_model=ApiKeyOut)
def rotate_key(db: Session = Depends(get_db), user=Depends(get_current_user)):
    token = crud.rotate_user_api_key(db, user.id)
    return ApiKeyOut(api_key=token, api_key_prefix=api_key_prefix(token))
