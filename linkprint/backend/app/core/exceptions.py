# backend/app/core/exceptions.py
"""Domain errors raised by the data access layer and plan services.

HTTP mapping lives in app.main; nothing here knows about FastAPI.
"""
from typing import Optional


class LinkPrintError(Exception):
    """Base class for application errors"""


class CrossTenantAccessError(LinkPrintError):
    """A query explicitly named an organization other than the caller's scope"""

    def __init__(self, model: str, requested: str, scope: str):
        self.model = model
        self.requested = requested
        self.scope = scope
        super().__init__(
            f"Access denied: cannot access {model} data from another organization"
        )


class RecordNotFoundError(LinkPrintError):
    """No record matched a single-record update/delete/lookup"""

    def __init__(self, model: str, detail: Optional[str] = None):
        self.model = model
        super().__init__(detail or f"{model} not found")


class UsageLimitExceededError(LinkPrintError):
    """Plan quota for a resource is used up"""

    def __init__(self, resource: str, limit: int, current: Optional[int] = None):
        self.resource = resource
        self.limit = limit
        self.current = current
        super().__init__(
            f"Plan limit reached for {resource} ({limit}). Upgrade your plan to add more."
        )


class FeatureNotAvailableError(LinkPrintError):
    """The organization's plan does not include a feature"""

    def __init__(self, feature: str, plan_slug: str):
        self.feature = feature
        self.plan_slug = plan_slug
        super().__init__(f"Feature '{feature}' is not available on the {plan_slug} plan")


class PlanNotFoundError(LinkPrintError):
    """Requested plan slug does not exist or is inactive"""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Invalid plan selected: {slug}")


class SlugTakenError(LinkPrintError):
    """Organization slug already registered"""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' is already taken")
