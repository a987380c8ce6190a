from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from dojo.exceptions import ConflictError, NotFoundError, StoreError

log = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)
T = TypeVar("T")


class EntityStore(Generic[ModelT]):
    """Create/read/update/delete/filter access to one table.

    Every mutating call commits on its own; there are no multi-record
    transactions. Backend failures come back as StoreError, unique-key and
    version clashes as ConflictError.
    """

    def __init__(self, session: Session, model: Type[ModelT]):
        self.session = session
        self.model = model

    @property
    def kind(self) -> str:
        return self.model.__name__

    def _order(self, stmt, order_by: Optional[str]):
        if not order_by:
            return stmt
        descending = order_by.startswith("-")
        column = getattr(self.model, order_by.lstrip("-"))
        return stmt.order_by(column.desc() if descending else column.asc(), self.model.id)

    def list(self, order_by: Optional[str] = None) -> list[ModelT]:
        stmt = self._order(select(self.model), order_by)
        return self._run("list", None, lambda: list(self.session.exec(stmt).all()))

    def get(self, entity_id: int) -> Optional[ModelT]:
        return self._run("get", entity_id, lambda: self.session.get(self.model, entity_id))

    def filter(self, *clauses, order_by: Optional[str] = None, **criteria: Any) -> list[ModelT]:
        stmt = select(self.model).where(*clauses)
        for name, value in criteria.items():
            stmt = stmt.where(getattr(self.model, name) == value)
        stmt = self._order(stmt, order_by)
        return self._run("filter", None, lambda: list(self.session.exec(stmt).all()))

    def create(self, fields: dict[str, Any]) -> ModelT:
        def _create():
            obj = self.model(**fields)
            self.session.add(obj)
            self.session.commit()
            self.session.refresh(obj)
            return obj

        return self._run("create", None, _create)

    def update(self, entity_id: int, fields: dict[str, Any], *, expected_version: Optional[int] = None) -> ModelT:
        """Write `fields` to one row.

        With `expected_version` the write only lands if the row still carries
        that version, and bumps it; otherwise ConflictError.
        """
        if expected_version is None:
            def _update():
                obj = self.session.get(self.model, entity_id)
                if obj is None:
                    raise NotFoundError(f"{self.kind} {entity_id} not found")
                for name, value in fields.items():
                    setattr(obj, name, value)
                self.session.add(obj)
                self.session.commit()
                self.session.refresh(obj)
                return obj

            return self._run("update", entity_id, _update)

        table = self.model.__table__

        def _conditional_update():
            stmt = (
                update(table)
                .where(table.c.id == entity_id, table.c.version == expected_version)
                .values(**fields, version=expected_version + 1)
            )
            result = self.session.connection().execute(stmt)
            if result.rowcount == 0:
                self.session.rollback()
                raise ConflictError(
                    f"{self.kind} {entity_id} changed since version {expected_version}"
                )
            self.session.commit()
            return self.session.get(self.model, entity_id)

        return self._run("update", entity_id, _conditional_update)

    def delete(self, entity_id: int) -> None:
        def _delete():
            obj = self.session.get(self.model, entity_id)
            if obj is None:
                raise NotFoundError(f"{self.kind} {entity_id} not found")
            self.session.delete(obj)
            self.session.commit()

        self._run("delete", entity_id, _delete)

    def _run(self, operation: str, entity_id: Optional[int], fn: Callable[[], T]) -> T:
        try:
            return fn()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(f"{self.kind}.{operation} violated a unique constraint") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            log.warning("%s.%s failed (id=%s): %s", self.kind, operation, entity_id, exc)
            raise StoreError(self.kind, operation, entity_id, str(exc)) from exc
