"""
Identity lookup.

Sessions are owned by the external identity provider; the gateway in front of
this API forwards the authenticated user id in a trusted header
(``AUTH_USER_HEADER``, default ``X-User-Id``). Routes that write on behalf of a
user depend on ``require_user``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from dealtracker.config import AUTH_USER_HEADER
from dealtracker.errors import Unauthorized


async def get_current_user_id(request: Request) -> Optional[str]:
    user_id = (request.headers.get(AUTH_USER_HEADER) or "").strip()
    return user_id or None


async def require_user(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if not user_id:
        raise Unauthorized()
    return user_id
