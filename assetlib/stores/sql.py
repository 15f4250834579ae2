"""Hosted store over Flask-SQLAlchemy: three tables plus change notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError

from assetlib.errors import StoreError
from assetlib.extensions import db
from assetlib.metrics import store_errors_total
from assetlib.models import Asset, Folder, Project
from assetlib.stores.base import ChangeBus, ChangeCallback, ChangeEvent, Row, check_table

logger = logging.getLogger(__name__)

MODELS = {"projects": Project, "folders": Folder, "assets": Asset}

# Deleting a row can remove or detach rows of these tables as well.
_DEPENDENT_TABLES = {
    "projects": ("projects", "folders", "assets"),
    "folders": ("folders", "assets"),
    "assets": ("assets",),
}


class SqlStore:
    """Store backed by the application database.

    Every operation runs in its own transaction; failures are rolled back and
    re-raised as :class:`StoreError` so callers keep their prior state.
    """

    def __init__(self, bus: ChangeBus | None = None) -> None:
        self.bus = bus or ChangeBus()

    # -- helpers -----------------------------------------------------------
    def _model(self, table: str):
        check_table(table)
        return MODELS[table]

    def _fail(self, operation: str, table: str, exc: Exception) -> StoreError:
        db.session.rollback()
        store_errors_total.labels(operation).inc()
        logger.error("Store %s on %s failed: %s", operation, table, exc)
        return StoreError(f"Error during {operation} on {table}", details=str(exc))

    def _apply_filters(self, query, model, filters: dict[str, Any] | None):
        for column, value in (filters or {}).items():
            attr = getattr(model, column, None)
            if attr is None:
                raise StoreError(f"Unknown column '{column}'")
            if value is None:
                query = query.filter(attr.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(attr.in_(list(value)))
            else:
                query = query.filter(attr == value)
        return query

    def _values(self, model, values: Row) -> Row:
        allowed = set(model.__table__.columns.keys()) - {"id"}
        return {k: v for k, v in values.items() if k in allowed}

    # -- Store contract ----------------------------------------------------
    def list(
        self,
        table: str,
        *,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        columns: Iterable[str] | None = None,
    ) -> list[Row]:
        model = self._model(table)
        try:
            query = self._apply_filters(model.query, model, filters)
            if order_by:
                attr = getattr(model, order_by)
                tie = model.id.desc() if descending else model.id.asc()
                query = query.order_by(attr.desc() if descending else attr.asc(), tie)
            if limit is not None:
                query = query.limit(limit)
            if columns:
                # Column subsets skip the (large) data payload entirely.
                names = list(columns)
                query = query.with_entities(*(getattr(model, name) for name in names))
                return [dict(zip(names, values)) for values in query.all()]
            return [obj.to_dict() for obj in query.all()]
        except SQLAlchemyError as exc:
            raise self._fail("list", table, exc) from exc

    def get(self, table: str, row_id: Any) -> Row | None:
        model = self._model(table)
        try:
            obj = db.session.get(model, row_id)
        except SQLAlchemyError as exc:
            raise self._fail("get", table, exc) from exc
        return obj.to_dict() if obj else None

    def insert(self, table: str, values: Row) -> Row:
        model = self._model(table)
        try:
            obj = model(**self._values(model, values))
            db.session.add(obj)
            db.session.commit()
            row = obj.to_dict()
        except SQLAlchemyError as exc:
            raise self._fail("insert", table, exc) from exc
        self.bus.publish(ChangeEvent(table, "INSERT", row["id"]))
        return row

    def insert_replacing(self, table: str, values: Row, match_on: Iterable[str]) -> Row:
        """Insert ``values`` and drop older rows sharing the ``match_on`` columns.

        Both changes go out in one commit; on failure nothing is written.
        """
        model = self._model(table)
        keys = list(match_on)
        try:
            obj = model(**self._values(model, values))
            db.session.add(obj)
            db.session.flush()
            older = self._apply_filters(
                model.query, model, {key: values.get(key) for key in keys}
            ).filter(model.id != obj.id)
            for stale in older.all():
                db.session.delete(stale)
            db.session.commit()
            row = obj.to_dict()
        except SQLAlchemyError as exc:
            raise self._fail("insert_replacing", table, exc) from exc
        self.bus.publish(ChangeEvent(table, "INSERT", row["id"]))
        return row

    def update(self, table: str, row_id: Any, values: Row) -> Row:
        model = self._model(table)
        try:
            obj = db.session.get(model, row_id)
            if obj is None:
                raise StoreError(f"Row {row_id} not found in {table}")
            for key, value in self._values(model, values).items():
                setattr(obj, key, value)
            db.session.commit()
            row = obj.to_dict()
        except SQLAlchemyError as exc:
            raise self._fail("update", table, exc) from exc
        self.bus.publish(ChangeEvent(table, "UPDATE", row_id))
        return row

    def delete(self, table: str, row_id: Any) -> None:
        model = self._model(table)
        try:
            obj = db.session.get(model, row_id)
            if obj is not None:
                db.session.delete(obj)
                db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete", table, exc) from exc
        for dependent in _DEPENDENT_TABLES[table]:
            self.bus.publish(ChangeEvent(dependent, "DELETE", row_id))

    def delete_with(
        self,
        table: str,
        row_id: Any,
        *,
        also_delete: dict[str, Iterable[Any]] | None = None,
        also_update: dict[str, tuple[Iterable[Any], Row]] | None = None,
    ) -> int:
        """Delete one row together with changes to rows that depend on it.

        ``also_delete`` maps a table to ids removed first; ``also_update``
        maps a table to ``(ids, values)``. Everything commits once and
        returns how many dependent rows were deleted.
        """
        model = self._model(table)
        removed = 0
        try:
            for other, ids in (also_delete or {}).items():
                dep = self._model(other)
                id_list = list(ids)
                if id_list:
                    for obj in dep.query.filter(dep.id.in_(id_list)).all():
                        db.session.delete(obj)
                        removed += 1
            for other, (ids, values) in (also_update or {}).items():
                dep = self._model(other)
                id_list = list(ids)
                if id_list:
                    for obj in dep.query.filter(dep.id.in_(id_list)).all():
                        for key, value in self._values(dep, values).items():
                            setattr(obj, key, value)
            obj = db.session.get(model, row_id)
            if obj is not None:
                db.session.delete(obj)
            db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete_with", table, exc) from exc
        for dependent in _DEPENDENT_TABLES[table]:
            self.bus.publish(ChangeEvent(dependent, "DELETE", row_id))
        return removed

    def delete_in(self, table: str, ids: Iterable[Any]) -> int:
        model = self._model(table)
        id_list = list(ids)
        if not id_list:
            return 0
        try:
            rows = model.query.filter(model.id.in_(id_list)).all()
            for obj in rows:
                db.session.delete(obj)
            db.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete_in", table, exc) from exc
        for dependent in _DEPENDENT_TABLES[table]:
            self.bus.publish(ChangeEvent(dependent, "DELETE"))
        return len(rows)

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        model = self._model(table)
        try:
            return self._apply_filters(model.query, model, filters).count()
        except SQLAlchemyError as exc:
            raise self._fail("count", table, exc) from exc

    def subscribe(self, table: str, callback: ChangeCallback) -> Callable[[], None]:
        check_table(table)
        return self.bus.subscribe(table, callback)
