"""
Request info for audit logging: IP, User-Agent, method and path from a FastAPI Request.
"""
from dataclasses import dataclass
from typing import Optional
from fastapi import Request


@dataclass(frozen=True)
class RequestMeta:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP; respects X-Forwarded-For when behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def get_user_agent(request: Request) -> Optional[str]:
    """User-Agent header."""
    return request.headers.get("user-agent")


def request_meta(request: Request) -> RequestMeta:
    """Collect the ambient request metadata recorded alongside an audit entry."""
    return RequestMeta(
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
        method=request.method,
        path=request.url.path,
    )
