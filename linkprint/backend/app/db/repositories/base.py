# backend/app/db/repositories/base.py
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import and_, delete, false, func, inspect as sa_inspect, not_, or_, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from app.core.exceptions import RecordNotFoundError

ModelType = TypeVar("ModelType")

Where = Dict[str, Any]
OrderBy = Union[str, Sequence[str], None]

LOGICAL_KEYS = ("AND", "OR", "NOT")

OPERATORS = {
    "equals": lambda col, v: col.is_(None) if v is None else col == v,
    "not": lambda col, v: col.is_not(None) if v is None else col != v,
    "in": lambda col, v: col.in_(list(v)),
    "not_in": lambda col, v: col.not_in(list(v)),
    "lt": lambda col, v: col < v,
    "lte": lambda col, v: col <= v,
    "gt": lambda col, v: col > v,
    "gte": lambda col, v: col >= v,
    "contains": lambda col, v: col.contains(v, autoescape=True),
    "icontains": lambda col, v: func.lower(col).contains(str(v).lower(), autoescape=True),
    "startswith": lambda col, v: col.startswith(v, autoescape=True),
}


def _column(model: Type, key: str):
    if key not in sa_inspect(model).columns:
        raise ValueError(f"Unknown field '{key}' for {model.__name__}")
    return getattr(model, key)


def _all(clauses: List[ColumnElement]) -> ColumnElement:
    return and_(*clauses) if clauses else true()


def build_conditions(model: Type, where: Optional[Where]) -> List[ColumnElement]:
    """
    Compile a where dict into SQLAlchemy clauses (implicitly AND-ed).

    {"status": "paid"}                      -> status = 'paid'
    {"total": {"gte": 10, "lt": 100}}        -> total >= 10 AND total < 100
    {"OR": [{"name": ...}, {"slug": ...}]}   -> (...) OR (...)
    """
    if not where:
        return []

    clauses: List[ColumnElement] = []
    for key, value in where.items():
        if key in LOGICAL_KEYS:
            nested = value if isinstance(value, (list, tuple)) else [value]
            parts = [_all(build_conditions(model, item)) for item in nested]
            if key == "AND":
                clauses.extend(parts)
            elif key == "OR":
                clauses.append(or_(*parts) if parts else false())
            else:
                clauses.extend(not_(part) for part in parts)
            continue

        column = _column(model, key)
        if isinstance(value, dict):
            for op, operand in value.items():
                if op not in OPERATORS:
                    raise ValueError(f"Unsupported operator '{op}' on {model.__name__}.{key}")
                clauses.append(OPERATORS[op](column, operand))
        elif value is None:
            clauses.append(column.is_(None))
        else:
            clauses.append(column == value)
    return clauses


def build_order_by(model: Type, order_by: OrderBy) -> List[ColumnElement]:
    if not order_by:
        return []
    fields: Iterable[str] = [order_by] if isinstance(order_by, str) else order_by
    clauses = []
    for field in fields:
        if field.startswith("-"):
            clauses.append(_column(model, field[1:]).desc())
        else:
            clauses.append(_column(model, field).asc())
    return clauses


class BaseRepository(Generic[ModelType]):
    """
    Model-oriented store over an AsyncSession.

    Unscoped: it filters on exactly what it is given. Tenant code reaches
    it through app.db.repositories.scoped.ScopedRepository.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession, autocommit: bool = True):
        self.model = model
        self.session = session
        self.autocommit = autocommit

    @property
    def model_name(self) -> str:
        return self.model.__name__

    def unique_fields(self) -> List[str]:
        return [
            key
            for key, column in sa_inspect(self.model).columns.items()
            if column.primary_key or column.unique
        ]

    def _select(self, where: Optional[Where], order_by: OrderBy = None) -> Select:
        query = select(self.model).where(*build_conditions(self.model, where))
        order = build_order_by(self.model, order_by)
        if order:
            query = query.order_by(*order)
        return query

    async def _commit(self) -> None:
        # Inside a client transaction the outer block commits
        if self.autocommit:
            await self.session.commit()
        else:
            await self.session.flush()

    async def _get_one(self, where: Where) -> ModelType:
        result = await self.session.execute(self._select(where).limit(2))
        records = result.scalars().all()
        if not records:
            raise RecordNotFoundError(self.model_name)
        if len(records) > 1:
            raise ValueError(f"{self.model_name} filter matched more than one record")
        return records[0]

    async def find_many(
        self,
        where: Optional[Where] = None,
        order_by: OrderBy = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> List[ModelType]:
        """Get multiple records"""
        query = self._select(where, order_by)
        if skip:
            query = query.offset(skip)
        if take is not None:
            query = query.limit(take)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_first(self, where: Optional[Where] = None, order_by: OrderBy = None) -> Optional[ModelType]:
        """Get the first matching record"""
        result = await self.session.execute(self._select(where, order_by).limit(1))
        return result.scalars().first()

    async def find_unique(self, where: Where) -> Optional[ModelType]:
        """Get by primary key or a unique column"""
        if not where:
            raise ValueError(f"find_unique on {self.model_name} needs a unique field")
        unique = set(self.unique_fields())
        non_unique = [key for key in where if key not in unique]
        if non_unique:
            raise ValueError(f"find_unique on {self.model_name} got non-unique fields: {non_unique}")
        result = await self.session.execute(self._select(where))
        return result.scalar_one_or_none()

    async def create(self, data: Dict[str, Any]) -> ModelType:
        """Create new record"""
        db_obj = self.model(**data)
        self.session.add(db_obj)
        await self._commit()
        await self.session.refresh(db_obj)
        return db_obj

    async def update(self, where: Where, data: Dict[str, Any]) -> ModelType:
        """Update exactly one record"""
        db_obj = await self._get_one(where)
        for key, value in data.items():
            _column(self.model, key)
            setattr(db_obj, key, value)
        await self._commit()
        await self.session.refresh(db_obj)
        return db_obj

    async def update_many(self, where: Optional[Where], data: Dict[str, Any]) -> int:
        """Bulk update, returns affected row count. Already-loaded instances are not refreshed."""
        for key in data:
            _column(self.model, key)
        result = await self.session.execute(
            update(self.model)
            .where(*build_conditions(self.model, where))
            .values(**data)
            .execution_options(synchronize_session=False)
        )
        await self._commit()
        return result.rowcount or 0

    async def delete(self, where: Where) -> ModelType:
        """Delete exactly one record"""
        db_obj = await self._get_one(where)
        await self.session.delete(db_obj)
        await self._commit()
        return db_obj

    async def delete_many(self, where: Optional[Where] = None) -> int:
        """Bulk delete, returns affected row count"""
        result = await self.session.execute(
            delete(self.model)
            .where(*build_conditions(self.model, where))
            .execution_options(synchronize_session=False)
        )
        await self._commit()
        return result.rowcount or 0

    async def count(self, where: Optional[Where] = None) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(self.model).where(*build_conditions(self.model, where))
        )
        return result.scalar() or 0
