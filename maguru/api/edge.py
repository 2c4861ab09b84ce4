"""Edge check for page areas.

Runs before any handler and redirects instead of answering with an error,
since these paths are navigated to by browsers. Handlers behind it still
check roles themselves because deployments may switch the edge check off.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from urllib.parse import urlencode

import structlog
from fastapi import Request
from starlette.responses import RedirectResponse, Response

from maguru.core.auth import TokenError, resolve_identity
from maguru.core.authorization import DenyReason, authorize, role_set
from maguru.core.config import Settings
from maguru.domain import ALL_ROLES, Identity, Role

logger = structlog.get_logger()


@dataclass(frozen=True)
class RouteProtection:
    name: str
    patterns: tuple[str, ...]
    required_roles: frozenset[Role]
    redirect_to: str
    description: str = ""
    legacy: bool = False
    _regexes: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_regexes", tuple(_compile(p) for p in self.patterns))

    def matches(self, path: str) -> bool:
        return any(regex.match(path) for regex in self._regexes)


def _compile(pattern: str) -> re.Pattern[str]:
    # "/admin/*" -> ^/admin/.*$ ; ":param" segments match one path segment
    escaped = re.escape(pattern).replace(r"\*", ".*")
    escaped = re.sub(r":[A-Za-z_]\w*", "[^/]+", escaped)
    return re.compile(f"^{escaped}$")


def protection(
    name: str,
    patterns: Sequence[str],
    roles: Sequence[Role],
    redirect_to: str,
    description: str = "",
    *,
    legacy: bool = False,
) -> RouteProtection:
    return RouteProtection(
        name=name,
        patterns=tuple(patterns),
        required_roles=role_set(roles),
        redirect_to=redirect_to,
        description=description,
        legacy=legacy,
    )


# First match wins.
PROTECTED_ROUTES: tuple[RouteProtection, ...] = (
    protection(
        "admin_area",
        ["/admin", "/admin/*"],
        [Role.ADMIN],
        "/unauthorized",
        "Admin control panel and management tools",
    ),
    protection(
        "creator_area",
        ["/creator", "/creator/*"],
        [Role.ADMIN, Role.CREATOR],
        "/unauthorized",
        "Creator studio and content management",
    ),
    protection("user_dashboard", ["/dashboard"], list(ALL_ROLES), "/sign-in", "User dashboard"),
    protection(
        "settings", ["/settings", "/settings/*"], list(ALL_ROLES), "/sign-in", "User settings"
    ),
    protection(
        "profile", ["/profile", "/profile/*"], list(ALL_ROLES), "/sign-in", "Profile management"
    ),
    protection(
        "legacy_user_dashboard",
        ["/user/dashboard", "/user/*"],
        list(ALL_ROLES),
        "/dashboard",
        "Legacy user dashboard redirect",
        legacy=True,
    ),
    protection(
        "legacy_admin_dashboard",
        ["/dashboard/admin", "/dashboard/admin/*"],
        [Role.ADMIN],
        "/admin/dashboard",
        "Legacy admin dashboard redirect",
        legacy=True,
    ),
    protection(
        "legacy_content_dashboard",
        ["/dashboard/content", "/dashboard/content/*"],
        [Role.ADMIN, Role.CREATOR],
        "/creator/dashboard",
        "Legacy content dashboard redirect",
        legacy=True,
    ),
)


def sanitize_path(path: str) -> str:
    cleaned = path.split("?", 1)[0].split("#", 1)[0]
    cleaned = re.sub(r"/+", "/", cleaned).rstrip("/")
    return cleaned or "/"


def find_route_protection(
    path: str, routes: Sequence[RouteProtection] = PROTECTED_ROUTES
) -> RouteProtection | None:
    for route in routes:
        if route.matches(path):
            return route
    return None


def _with_query(path: str, **params: str) -> str:
    return f"{path}?{urlencode(params)}"


def _session_token(request: Request, settings: Settings) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(settings.session_cookie_name)


def _log_decision(
    path: str, identity: Identity | None, route: RouteProtection | None, decision: str
) -> None:
    logger.debug(
        "edge_guard_decision",
        path=path,
        role=identity.role.value if identity and identity.role else None,
        protection=route.name if route else None,
        required=sorted(r.value for r in route.required_roles) if route else None,
        decision=decision,
    )


def build_edge_guard(
    settings: Settings,
    routes: Sequence[RouteProtection] = PROTECTED_ROUTES,
) -> Callable[[Request, Callable[[Request], Awaitable[Response]]], Awaitable[Response]]:
    """Create the HTTP middleware enforcing ``routes`` ahead of the handlers."""

    async def edge_guard_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = sanitize_path(request.url.path)
        route = find_route_protection(path, routes)
        if route is None:
            return await call_next(request)

        if route.legacy:
            _log_decision(path, None, route, "redirect")
            return RedirectResponse(route.redirect_to)

        try:
            identity = resolve_identity(_session_token(request, settings))
        except TokenError:
            # Fail closed on a bad session
            _log_decision(path, None, route, "deny")
            return RedirectResponse(
                _with_query(settings.sign_in_path, redirect=path, error="auth_error")
            )

        decision = authorize(route.required_roles, identity)
        if decision.allowed:
            _log_decision(path, identity, route, "allow")
            return await call_next(request)

        _log_decision(path, identity, route, "deny")
        if decision.reason is DenyReason.UNAUTHENTICATED:
            return RedirectResponse(_with_query(settings.sign_in_path, redirect=path))
        return RedirectResponse(_with_query(settings.unauthorized_path, **{"from": path}))

    return edge_guard_middleware
