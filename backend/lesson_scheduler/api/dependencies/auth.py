# backend/lesson_scheduler/api/dependencies/auth.py
"""
Owner identity.

Authentication happens upstream (gateway or identity provider); this
service only receives the verified owner id in the X-Owner-Id header
and trusts it.
"""

from typing import Optional

from fastapi import Header

from ...core.exceptions import UnauthorizedException

OWNER_HEADER = "X-Owner-Id"


def get_owner_id(x_owner_id: Optional[str] = Header(None, alias=OWNER_HEADER)) -> str:
    owner_id = (x_owner_id or "").strip()
    if not owner_id:
        raise UnauthorizedException("Authentication required", code="MISSING_OWNER")
    return owner_id
