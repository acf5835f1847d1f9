# backend/app/core/permissions.py
"""
Role-based route permissions.

Shared by the API (require_role) and the dashboard sidebar
(get_accessible_routes). Paths are matched by prefix, first match wins.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from app.core.constants import UserRole

ADMIN = UserRole.ADMIN.value
MANAGER = UserRole.MANAGER.value
STAFF = UserRole.STAFF.value
VIEWER = UserRole.VIEWER.value


@dataclass(frozen=True)
class RoutePermission:
    path: str
    allowed_roles: Sequence[str]
    label: str


ROUTE_PERMISSIONS: List[RoutePermission] = [
    # Admin-only
    RoutePermission("/users", (ADMIN,), "Users"),
    RoutePermission("/settings", (ADMIN,), "Settings"),
    RoutePermission("/workflow-settings", (ADMIN,), "Workflow Settings"),

    # Admin & manager
    RoutePermission("/dashboard", (ADMIN, MANAGER), "Dashboard"),
    RoutePermission("/customers", (ADMIN, MANAGER), "Customers"),
    RoutePermission("/agents", (ADMIN, MANAGER), "Agents"),
    RoutePermission("/products", (ADMIN, MANAGER), "Products"),
    RoutePermission("/invoices", (ADMIN, MANAGER), "Invoices"),
    RoutePermission("/quotes", (ADMIN, MANAGER), "Quotes"),
    RoutePermission("/payments", (ADMIN, MANAGER), "Payments"),
    RoutePermission("/promotions", (ADMIN, MANAGER), "Promotions"),
    RoutePermission("/packages", (ADMIN, MANAGER), "Packages"),
    RoutePermission("/reports", (ADMIN, MANAGER), "Reports"),
    RoutePermission("/finance", (ADMIN, MANAGER), "Finance"),
    RoutePermission("/shipments", (ADMIN, MANAGER), "Shipments"),

    # Production team
    RoutePermission("/production-board", (ADMIN, MANAGER, STAFF), "Production Board"),
    RoutePermission("/orders", (ADMIN, MANAGER, STAFF), "Orders"),
    RoutePermission("/profile", (ADMIN, MANAGER, STAFF, VIEWER), "Profile"),
]


def can_access_route(role: str, path: str, custom_routes: Optional[Sequence[str]] = None) -> bool:
    """
    Check if a role may open a route.

    A non-empty ``custom_routes`` replaces the role defaults entirely.
    Paths without an entry are admin-only.
    """
    if path in ("", "/"):
        return True

    if custom_routes:
        return any(path.startswith(route) for route in custom_routes)

    permission = next((p for p in ROUTE_PERMISSIONS if path.startswith(p.path)), None)
    if permission is None:
        return role == ADMIN
    return role in permission.allowed_roles


def get_accessible_routes(role: str) -> List[str]:
    return [p.path for p in ROUTE_PERMISSIONS if role in p.allowed_roles]
