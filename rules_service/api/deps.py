"""
Shared request dependencies: caller identity, client info and admin checks.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Query, Request, status

from rules_service.core.config import settings


@dataclass
class ClientInfo:
    ip_address: Optional[str]
    user_agent: Optional[str]


def get_client_info(request: Request) -> ClientInfo:
    """Client address and user agent recorded with audit entries."""
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def require_user_id(user_id: Optional[str], header_user_id: Optional[str]) -> str:
    """Pick the explicit user_id, else the X-User-ID header; fail when neither."""
    resolved = user_id or header_user_id
    if not resolved:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user_id is required in the request or the X-User-ID header",
        )
    return resolved


def get_query_user_id(
    user_id: Optional[str] = Query(None),
    x_user_id: Optional[str] = Header(None),
) -> str:
    """Caller identity for requests without a body."""
    return require_user_id(user_id, x_user_id)


def verify_admin_token(x_admin_token: Optional[str] = Header(None)) -> bool:
    """
    Verify the admin token from the X-Admin-Token header.

    Raises:
        HTTPException: 500 if no token is configured, 403 if it does not match
    """
    if not settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin token not configured on server",
        )

    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    return True
