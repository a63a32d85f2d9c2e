from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cuemaster.application.ports.gateway import KeyValueStore, PersistenceError
from cuemaster.infrastructure.db.models.kv import KeyValueModel
from cuemaster.infrastructure.db.session import get_engine

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlAlchemyKeyValueStore(KeyValueStore):
    """JSON blobs in the ``kv_store`` table, one row per key."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, key: str) -> Any | None:
        statement = select(KeyValueModel.value).where(KeyValueModel.key_name == key)
        try:
            with Session(self._engine) as session:
                raw = session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to read {key}") from exc

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"stored value for {key} is not valid JSON") from exc

    def set(self, key: str, value: Any) -> None:
        dialect = self._engine.dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise PersistenceError(f"unsupported database dialect {dialect}")

        payload = json.dumps(value, ensure_ascii=False)
        statement = (
            insert(KeyValueModel)
            .values(key_name=key, value=payload)
            .on_conflict_do_update(
                index_elements=[KeyValueModel.key_name],
                set_={"value": payload},
            )
        )
        try:
            with Session(self._engine) as session:
                session.execute(statement)
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to write {key}") from exc
