"""Route-level access policy, applied as HTTP middleware before routing.

Page namespaces redirect to the login page; API namespaces answer with a
JSON error envelope.
"""

from __future__ import annotations

from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse

from dental_portal.api.deps import identify_request
from dental_portal.models.user import Role

LOGIN_PAGE = "/client/login"
HOME_PAGE = "/"

# Always open, matched exactly
PUBLIC_ROUTES = frozenset({"/", "/client/login", "/client/signup", "/client/faq"})

# Open API prefixes (auth endpoints, public catalog, health)
PUBLIC_API_PREFIXES = ("/api/auth/", "/api/courses", "/api/health")

GUARDED_PREFIXES = ("/client", "/admin", "/profile", "/classroom", "/api")
ADMIN_PREFIXES = ("/admin", "/api/admin")


class Access(str, Enum):
    public = "public"
    user = "user"
    admin = "admin"


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def route_policy(path: str) -> Access:
    if path in PUBLIC_ROUTES:
        return Access.public
    if any(path.startswith(p) if p.endswith("/") else _under(path, p) for p in PUBLIC_API_PREFIXES):
        return Access.public
    if any(_under(path, p) for p in ADMIN_PREFIXES):
        return Access.admin
    if any(_under(path, p) for p in GUARDED_PREFIXES):
        return Access.user
    return Access.public


def _is_api(path: str) -> bool:
    return _under(path, "/api")


def _reject(request: Request, *, status_code: int, code: str, message: str, redirect_to: str):
    if _is_api(request.url.path):
        req_id = getattr(request.state, "request_id", None) or ""
        return JSONResponse(
            status_code=status_code,
            content={"request_id": req_id, "data": None, "error": {"code": code, "message": message}},
        )
    return RedirectResponse(url=redirect_to, status_code=307)


async def access_guard_middleware(request: Request, call_next):
    policy = route_policy(request.url.path)
    if policy is Access.public or request.method == "OPTIONS":
        return await call_next(request)

    tokens = getattr(request.app.state, "tokens", None)
    claim = identify_request(request, tokens) if tokens is not None else None
    if claim is None:
        return _reject(request, status_code=401, code="UNAUTHORIZED", message="Unauthorized", redirect_to=LOGIN_PAGE)

    if policy is Access.admin and claim.role is not Role.admin:
        return _reject(request, status_code=403, code="FORBIDDEN", message="Forbidden", redirect_to=HOME_PAGE)

    request.state.claim = claim
    return await call_next(request)
