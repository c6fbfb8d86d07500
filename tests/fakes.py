# =============================================================================
# tests/fakes.py - In-Memory Backends for Tests
# =============================================================================
# Small stand-ins for the three backends the API talks to:
# - FakeSupabase: the postgrest query-builder subset the services use
#   (select with embedded many-to-one joins, eq / in_ / not_.is_, order,
#   limit, range, count="exact", insert, upsert, update, delete)
# - FakeStorage: storage.from_(bucket).upload / get_public_url
# - FakeRedis: get / set(ex=) / delete / ping for the session store
#
# Tables are plain lists of dicts: seed them through `db.tables[...]` or
# `db.seed(...)` and assert on them afterwards.
# =============================================================================

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any

JOIN = re.compile(r"^(?:(?P<alias>\w+):)?(?P<table>\w+)(?:!\w+)?\((?P<cols>.*)\)$")


def _split_columns(select: str) -> list[str]:
    """Split a select string on top-level commas."""
    parts, depth, current = [], 0, ""
    for char in select:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def _same(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is b
    return a == b or str(a) == str(b)


@dataclass
class FakeResponse:
    data: Any
    count: int | None = None


class FakeQuery:
    """One table(...) call chain."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.count_mode: str | None = None
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list = []
        self.orders: list[tuple[str, bool]] = []
        self.limit_n: int | None = None
        self.range_: tuple[int, int] | None = None
        self._negate = False

    # -- verbs ----------------------------------------------------------------

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, rows: Any) -> "FakeQuery":
        self.action, self.payload = "insert", rows
        return self

    def upsert(self, rows: Any, on_conflict: str = "id") -> "FakeQuery":
        self.action, self.payload, self.on_conflict = "upsert", rows, on_conflict
        return self

    def update(self, patch: dict[str, Any]) -> "FakeQuery":
        self.action, self.payload = "update", patch
        return self

    def delete(self) -> "FakeQuery":
        self.action = "delete"
        return self

    # -- filters --------------------------------------------------------------

    @property
    def not_(self) -> "FakeQuery":
        self._negate = True
        return self

    def _add(self, predicate) -> "FakeQuery":
        negate, self._negate = self._negate, False
        self.filters.append((lambda row: not predicate(row)) if negate else predicate)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._add(lambda row: _same(row.get(column), value))

    def in_(self, column: str, values: list[Any]) -> "FakeQuery":
        return self._add(lambda row: any(_same(row.get(column), v) for v in values))

    def is_(self, column: str, value: str) -> "FakeQuery":
        assert value == "null"
        return self._add(lambda row: row.get(column) is None)

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.orders.append((column, desc))
        return self

    def limit(self, n: int) -> "FakeQuery":
        self.limit_n = n
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.range_ = (start, end)
        return self

    # -- execution ------------------------------------------------------------

    def _matches(self) -> list[dict[str, Any]]:
        rows = self.db.tables.setdefault(self.table_name, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for column in _split_columns(self.columns):
            if column == "*":
                out.update(copy.deepcopy(row))
                continue
            join = JOIN.match(column)
            if join:
                table = join.group("table")
                key = join.group("alias") or table
                target_id = row.get(f"{table}_id")
                target = next(
                    (r for r in self.db.tables.get(table, []) if _same(r.get("id"), target_id)),
                    None,
                )
                sub = FakeQuery(self.db, table).select(join.group("cols"))
                out[key] = sub._project(target) if target else None
                continue
            out[column] = copy.deepcopy(row.get(column))
        return out

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table_name, self.action))
        if self.table_name in self.db.failing:
            raise RuntimeError(f"relation {self.table_name} is unavailable")

        if self.action == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([self.db.insert_row(self.table_name, r) for r in rows])

        if self.action == "upsert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
            return FakeResponse([self.db.upsert_row(self.table_name, r, keys) for r in rows])

        matched = self._matches()

        if self.action == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse([copy.deepcopy(r) for r in matched])

        if self.action == "delete":
            table = self.db.tables[self.table_name]
            self.db.tables[self.table_name] = [r for r in table if r not in matched]
            return FakeResponse([copy.deepcopy(r) for r in matched])

        for column, desc in reversed(self.orders):
            matched = sorted(
                matched,
                key=lambda r: (r.get(column) is None, r.get(column) if r.get(column) is not None else 0),
                reverse=desc,
            )

        total = len(matched)
        if self.range_ is not None:
            matched = matched[self.range_[0]:self.range_[1] + 1]
        if self.limit_n is not None:
            matched = matched[:self.limit_n]

        data = [self._project(r) for r in matched]
        return FakeResponse(data, count=total if self.count_mode == "exact" else None)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path: str, file: bytes, file_options: dict | None = None):
        if self.storage.fail:
            raise RuntimeError("bucket not found")
        self.storage.files[(self.name, path)] = (file, file_options or {})
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path: str) -> str:
        return f"https://storage.test/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.files: dict[tuple[str, str], tuple[bytes, dict]] = {}
        self.fail = False

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeSupabase:
    """Drop-in for supabase.Client in SupabaseClient._instance."""

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.storage = FakeStorage()
        self.calls: list[tuple[str, str]] = []
        self.failing: set[str] = set()
        self._ids: dict[str, int] = {}
        self._clock = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows: dict[str, Any]) -> list[dict[str, Any]]:
        return [self.insert_row(table, row) for row in rows]

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    def _next_id(self, table: str) -> int:
        existing = [r.get("id") for r in self.tables.get(table, []) if isinstance(r.get("id"), int)]
        self._ids[table] = max([self._ids.get(table, 0), *existing]) + 1
        return self._ids[table]

    def insert_row(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        stored = copy.deepcopy(row)
        if stored.get("id") is None:
            stored["id"] = self._next_id(table)
        if "created_at" not in stored:
            self._clock += 1
            stored["created_at"] = f"2025-01-01T00:00:{self._clock:02d}+00:00"
        self.tables.setdefault(table, []).append(stored)
        return copy.deepcopy(stored)

    def upsert_row(self, table: str, row: dict[str, Any], keys: list[str]) -> dict[str, Any]:
        for existing in self.tables.setdefault(table, []):
            if all(_same(existing.get(k), row.get(k)) for k in keys):
                existing.update(copy.deepcopy(row))
                return copy.deepcopy(existing)
        return self.insert_row(table, row)


class FakeRedis:
    """The redis.Redis subset used by SessionStore."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    def set(self, key: str, value: str, ex: int | None = None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key: str) -> str | None:
        return self.store.get(key)

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass
