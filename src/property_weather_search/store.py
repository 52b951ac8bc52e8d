from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence

from .errors import StoreError
from .models import PropertyRecord


logger = logging.getLogger("pws.store")

SEARCH_FIELDS = ("name", "city", "state")
ORDER_COLUMNS = {"id", "name", "city", "state", "country"}


@dataclass(frozen=True)
class WhereClause:
    sql: str
    params: tuple[Any, ...]


def build_where(search_text: str | None) -> WhereClause | None:
    """OR of case-sensitive substring matches over name/city/state."""

    if not isinstance(search_text, str):
        return None
    query = search_text.strip()
    if not query:
        return None
    # instr() is case-sensitive, unlike LIKE.
    parts = [f"instr(COALESCE({field}, ''), ?) > 0" for field in SEARCH_FIELDS]
    return WhereClause(sql="(" + " OR ".join(parts) + ")", params=(query,) * len(parts))


class PropertyStore(Protocol):
    def find(
        self,
        *,
        skip: int,
        take: int,
        where: WhereClause | None = None,
        order_by: str = "id",
    ) -> list[PropertyRecord]: ...


def _row_to_record(row: sqlite3.Row) -> PropertyRecord:
    keys = row.keys()
    return PropertyRecord(
        id=int(row["id"]),
        name=str(row["name"] or ""),
        city=row["city"] if "city" in keys else None,
        state=row["state"] if "state" in keys else None,
        country=row["country"] if "country" in keys else None,
        lat=float(row["lat"]) if "lat" in keys and row["lat"] is not None else None,
        lng=float(row["lng"]) if "lng" in keys and row["lng"] is not None else None,
        is_active=bool(row["isActive"]) if "isActive" in keys else True,
    )


class SQLitePropertyStore:
    """Read-only paginated access to the `properties` table."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _open(self):
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open property store: {exc}") from exc
        try:
            yield conn
        finally:
            conn.close()

    def find(
        self,
        *,
        skip: int,
        take: int,
        where: WhereClause | None = None,
        order_by: str = "id",
    ) -> list[PropertyRecord]:
        if order_by not in ORDER_COLUMNS:
            raise ValueError(f"unsupported order column: {order_by}")
        sql = "SELECT * FROM properties"
        params: list[Any] = []
        if where is not None:
            sql += f" WHERE {where.sql}"
            params.extend(where.params)
        sql += f" ORDER BY {order_by} ASC LIMIT ? OFFSET ?"
        params.extend([int(take), int(skip)])

        with self._open() as conn:
            try:
                rows = conn.execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as exc:
                raise StoreError(f"property query failed: {exc}") from exc
        logger.debug("store: skip=%d take=%d -> %d rows", skip, take, len(rows))
        return [_row_to_record(row) for row in rows]

    def init_schema(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._open() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS properties (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    city TEXT,
                    state TEXT,
                    country TEXT,
                    lat REAL,
                    lng REAL,
                    isActive INTEGER NOT NULL DEFAULT 1
                )
                """
            )
            conn.commit()

    def insert_properties(self, records: Iterable[PropertyRecord | dict]) -> int:
        rows: list[Sequence[Any]] = []
        for rec in records:
            if isinstance(rec, dict):
                rec = PropertyRecord(**rec)
            rows.append(
                (
                    rec.id,
                    rec.name,
                    rec.city,
                    rec.state,
                    rec.country,
                    rec.lat,
                    rec.lng,
                    int(rec.is_active),
                )
            )
        with self._open() as conn:
            try:
                conn.executemany(
                    "INSERT OR REPLACE INTO properties "
                    "(id, name, city, state, country, lat, lng, isActive) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    rows,
                )
                conn.commit()
            except sqlite3.Error as exc:
                raise StoreError(f"property insert failed: {exc}") from exc
        return len(rows)
