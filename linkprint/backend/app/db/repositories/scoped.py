# backend/app/db/repositories/scoped.py
"""
Tenant-scoped data access.

``create_scoped_client(session, organization_id)`` returns a client whose
repositories constrain every read and write to one organization:

- reads/updates/deletes/counts get ``organization_id == scope`` AND-ed into
  their filter; an explicit, different ``organization_id`` in the filter
  raises CrossTenantAccessError before any query runs
- creates always store ``organization_id = scope`` whatever the payload says
- creates and updates may only reference records of the same organization
- unique lookups run unscoped, then drop records owned by another tenant so
  they look exactly like a missing row

Super admins get ``create_unscoped_client``: a different class, never a flag
on the scoped one.
"""
import re
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator, Dict, Generic, List, Optional, Tuple, Type, Union

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import CrossTenantAccessError, RecordNotFoundError
from app.core.logging import get_logger
from app.db.base import Base
from app.db.repositories.base import LOGICAL_KEYS, BaseRepository, ModelType, OrderBy, Where
import app.db.models  # noqa: F401  (registers every model with Base)

logger = get_logger("data_access")

TENANT_KEY = "organization_id"


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@lru_cache(maxsize=None)
def registered_models() -> Dict[str, Type]:
    """Every mapped model, keyed by snake_case class name"""
    return {_snake(mapper.class_.__name__): mapper.class_ for mapper in Base.registry.mappers}


def is_tenant_owned(model: Type) -> bool:
    return TENANT_KEY in sa_inspect(model).columns


def tenant_models() -> Dict[str, Type]:
    return {name: model for name, model in registered_models().items() if is_tenant_owned(model)}


@lru_cache(maxsize=None)
def tenant_references(model: Type) -> Dict[str, Tuple[Type, str]]:
    """
    Columns of ``model`` that point at another tenant-owned model, as
    ``{column: (target model, target column)}``.
    """
    by_table = {target.__table__.name: target for target in tenant_models().values()}
    references = {}
    for key, column in sa_inspect(model).columns.items():
        if key == TENANT_KEY:
            continue
        for foreign_key in column.foreign_keys:
            target = by_table.get(foreign_key.column.table.name)
            if target is not None:
                references[key] = (target, foreign_key.column.key)
    return references


class ScopedRepository(Generic[ModelType]):
    """Store operations for one tenant-owned model, pinned to one organization"""

    def __init__(self, repository: BaseRepository[ModelType], organization_id: str):
        self._repository = repository
        self.organization_id = organization_id

    @property
    def model(self) -> Type[ModelType]:
        return self._repository.model

    def _is_scope(self, value: Any) -> bool:
        # Operator dicts ({"in": [...]}) never count as the scope
        return not isinstance(value, dict) and str(value) == self.organization_id

    def _check_scope(self, where: Where, operation: str) -> None:
        for key, value in where.items():
            if key in LOGICAL_KEYS:
                for nested in value if isinstance(value, (list, tuple)) else [value]:
                    self._check_scope(nested or {}, operation)
            elif key == TENANT_KEY and value is not None and not self._is_scope(value):
                logger.warning(
                    "Rejected cross-tenant %s on %s",
                    operation,
                    self._repository.model_name,
                    extra={"organization_id": self.organization_id, "requested_organization_id": str(value)},
                )
                raise CrossTenantAccessError(self._repository.model_name, str(value), self.organization_id)

    def _scoped_where(self, where: Optional[Where], operation: str) -> Where:
        scoped = dict(where or {})
        self._check_scope(scoped, operation)
        scoped[TENANT_KEY] = self.organization_id
        return scoped

    async def _check_references(self, data: Dict[str, Any], operation: str) -> None:
        """Referenced records must belong to the same organization"""
        for key, (target, target_key) in tenant_references(self.model).items():
            value = data.get(key)
            if value is None:
                continue
            store = BaseRepository(target, self._repository.session, autocommit=False)
            if await store.count({target_key: value, TENANT_KEY: self.organization_id}) == 0:
                logger.warning(
                    "Rejected %s of %s referencing %s outside the organization",
                    operation,
                    self._repository.model_name,
                    target.__name__,
                    extra={"organization_id": self.organization_id, "field": key},
                )
                raise RecordNotFoundError(target.__name__)

    def _strip_tenant(self, data: Dict[str, Any], operation: str) -> Dict[str, Any]:
        cleaned = dict(data)
        claimed = cleaned.pop(TENANT_KEY, None)
        if claimed is not None and not self._is_scope(claimed):
            logger.warning(
                "Ignored client-supplied organization_id on %s of %s",
                operation,
                self._repository.model_name,
                extra={"organization_id": self.organization_id, "requested_organization_id": str(claimed)},
            )
        return cleaned

    async def find_many(
        self,
        where: Optional[Where] = None,
        order_by: OrderBy = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> List[ModelType]:
        return await self._repository.find_many(
            self._scoped_where(where, "find_many"), order_by=order_by, skip=skip, take=take
        )

    async def find_first(self, where: Optional[Where] = None, order_by: OrderBy = None) -> Optional[ModelType]:
        return await self._repository.find_first(self._scoped_where(where, "find_first"), order_by=order_by)

    async def find_unique(self, where: Where) -> Optional[ModelType]:
        lookup = self._scoped_where(where, "find_unique")
        lookup.pop(TENANT_KEY)
        record = await self._repository.find_unique(lookup)
        if record is None or not self._is_scope(getattr(record, TENANT_KEY)):
            return None
        return record

    async def create(self, data: Dict[str, Any]) -> ModelType:
        payload = self._strip_tenant(data, "create")
        payload[TENANT_KEY] = self.organization_id
        await self._check_references(payload, "create")
        return await self._repository.create(payload)

    async def update(self, where: Where, data: Dict[str, Any]) -> ModelType:
        scoped = self._scoped_where(where, "update")
        payload = self._strip_tenant(data, "update")
        await self._check_references(payload, "update")
        return await self._repository.update(scoped, payload)

    async def update_many(self, where: Optional[Where], data: Dict[str, Any]) -> int:
        scoped = self._scoped_where(where, "update_many")
        payload = self._strip_tenant(data, "update_many")
        await self._check_references(payload, "update_many")
        return await self._repository.update_many(scoped, payload)

    async def delete(self, where: Where) -> ModelType:
        return await self._repository.delete(self._scoped_where(where, "delete"))

    async def delete_many(self, where: Optional[Where] = None) -> int:
        return await self._repository.delete_many(self._scoped_where(where, "delete_many"))

    async def count(self, where: Optional[Where] = None) -> int:
        return await self._repository.count(self._scoped_where(where, "count"))


class _Client:
    """Shared plumbing: per-model repository cache and transactions"""

    def __init__(self, session: AsyncSession, autocommit: bool = True):
        self.session = session
        self._autocommit = autocommit
        self._repositories: Dict[Type, Any] = {}

    @property
    def in_transaction(self) -> bool:
        return not self._autocommit

    def _models(self) -> Dict[str, Type]:
        raise NotImplementedError

    def _build(self, model: Type) -> Any:
        raise NotImplementedError

    def _child(self) -> "_Client":
        raise NotImplementedError

    def repository(self, model: Type):
        if model not in self._repositories:
            self._repositories[model] = self._build(model)
        return self._repositories[model]

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        model = self._models().get(name)
        if model is None:
            raise AttributeError(f"{type(self).__name__} has no model '{name}'")
        return self.repository(model)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["_Client"]:
        """
        All writes made through the yielded client commit together at the end
        of the block, or roll back if it raises. Nested blocks join the outer one.
        """
        if self.in_transaction:
            yield self
            return

        tx = self._child()
        try:
            yield tx
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


class ScopedClient(_Client):
    """Data access bound to one organization"""

    def __init__(self, session: AsyncSession, organization_id: str, autocommit: bool = True):
        if not organization_id:
            raise ValueError("A scoped client needs an organization_id")
        super().__init__(session, autocommit)
        self.organization_id = str(organization_id)

    def _models(self) -> Dict[str, Type]:
        return tenant_models()

    def _build(self, model: Type) -> ScopedRepository:
        if not is_tenant_owned(model):
            raise ValueError(f"{model.__name__} is not tenant-owned and cannot be accessed through a scoped client")
        return ScopedRepository(BaseRepository(model, self.session, autocommit=self._autocommit), self.organization_id)

    def _child(self) -> "ScopedClient":
        return ScopedClient(self.session, self.organization_id, autocommit=False)

    def __repr__(self) -> str:
        return f"<ScopedClient(organization_id={self.organization_id!r})>"


class UnscopedClient(_Client):
    """Platform-wide data access for super admins"""

    def _models(self) -> Dict[str, Type]:
        return registered_models()

    def _build(self, model: Type) -> BaseRepository:
        return BaseRepository(model, self.session, autocommit=self._autocommit)

    def _child(self) -> "UnscopedClient":
        return UnscopedClient(self.session, autocommit=False)

    def __repr__(self) -> str:
        return "<UnscopedClient>"


DataAccess = Union[ScopedClient, UnscopedClient]


def create_scoped_client(session: AsyncSession, organization_id: str) -> ScopedClient:
    return ScopedClient(session, organization_id)


def create_unscoped_client(session: AsyncSession) -> UnscopedClient:
    return UnscopedClient(session)
