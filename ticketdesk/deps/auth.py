from __future__ import annotations

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..core.errors import Unauthenticated
from ..crud.accounts import authenticate
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.account import Account

ACCOUNT_SID_HEADER = "x-account-sid"
API_KEY_HEADER = "x-api-key"


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


def require_account(
    request: Request,
    x_account_sid: str | None = Header(default=None, alias=ACCOUNT_SID_HEADER),
    x_api_key: str | None = Header(default=None, alias=API_KEY_HEADER),
    db: Session = Depends(get_db),
) -> Account:
    """Gate for API routes: both credential headers must identify an account.

    Header names are matched case-insensitively by Starlette.
    """

    sid = (x_account_sid or "").strip()
    api_key = (x_api_key or "").strip()
    missing = [name for name, value in ((ACCOUNT_SID_HEADER, sid), (API_KEY_HEADER, api_key)) if not value]
    if missing:
        raise Unauthenticated(f"Missing required headers: {', '.join(missing)}", reason="missing_headers")

    account = authenticate(db, sid, api_key)
    _set_principal(request, f"account:{account.sid}")
    request.state.account = account
    return account
