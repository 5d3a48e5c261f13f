"""Shared FastAPI dependencies."""
from fastapi import HTTPException, Request, status

from voucher_ledger.core.config import settings


def get_current_user_id(request: Request) -> str:
    """User id injected by the upstream authentication layer."""
    user_id = (request.headers.get(settings.AUTH_HEADER) or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user_id
