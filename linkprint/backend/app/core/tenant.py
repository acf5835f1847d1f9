"""Request principal and per-request data access selection."""
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.scoped import DataAccess, create_scoped_client, create_unscoped_client


class Principal(BaseModel):
    """Authenticated caller, as asserted by a verified access token"""
    user_id: str
    organization_id: Optional[str] = None
    role: str = "staff"
    is_super_admin: bool = False

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        """
        Build a principal from decoded token claims.

        Raises:
            ValueError: if the token names no user, or a tenant user has no organization
        """
        user_id = claims.get("sub")
        if not user_id:
            raise ValueError("Token has no subject")

        principal = cls(
            user_id=str(user_id),
            organization_id=claims.get("organization_id"),
            role=claims.get("role") or "staff",
            is_super_admin=claims.get("is_super_admin") is True,
        )
        if not principal.is_super_admin and not principal.organization_id:
            raise ValueError("Token has no organization")
        return principal


def resolve_data_access(principal: Principal, session: AsyncSession) -> DataAccess:
    """
    Pick the data access for one request.

    Super admins get the unscoped client; everyone else is pinned to the
    organization in their token.
    """
    if principal.is_super_admin:
        return create_unscoped_client(session)
    return create_scoped_client(session, principal.organization_id)
