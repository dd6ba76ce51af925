from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps.auth import require_account
from ..models.account import Account
from ..schemas.auth import AccountOut

router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


@router.get("/me", response_model=AccountOut, summary="Describe the authenticated account")
def api_current_account(account: Account = Depends(require_account)):
    return AccountOut(
        sid=account.sid,
        name=account.name,
        created_at=account.created_at,
        active_key_count=len(account.active_keys),
    )
