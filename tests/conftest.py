"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides an in-memory stand-in for the
Supabase client so repository code runs unchanged without a database.
"""

from __future__ import annotations

import copy
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from postgrest.exceptions import APIError

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.client import set_supabase  # noqa: E402


def _sort_key(column: str, value: Any) -> Any:
    if column.endswith("_at") and isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


@dataclass
class FakeResponse:
    data: List[dict]
    error: Any = None


@dataclass
class FakeQuery:
    db: "FakeSupabase"
    table_name: str
    op: str = "select"
    payload: Any = None
    filters: List[Tuple[str, str, Any]] = field(default_factory=list)
    order_by: List[Tuple[str, bool]] = field(default_factory=list)
    row_limit: Optional[int] = None
    row_range: Optional[Tuple[int, int]] = None

    def select(self, columns: str = "*", **_: Any) -> "FakeQuery":
        self.op = "select"
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload: dict) -> "FakeQuery":
        self.op, self.payload = "update", payload
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        self.filters.append(("in", column, list(values)))
        return self

    def lt(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(("lt", column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by.append((column, desc))
        return self

    def limit(self, n: int) -> "FakeQuery":
        self.row_limit = n
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.row_range = (start, end)
        return self

    def _matches(self, row: dict) -> bool:
        for kind, column, value in self.filters:
            if kind == "eq" and row.get(column) != value:
                return False
            if kind == "in" and row.get(column) not in value:
                return False
            if kind == "lt" and not _sort_key(column, row.get(column)) < _sort_key(column, value):
                return False
        return True

    def execute(self) -> FakeResponse:
        return self.db._execute(self)


class FakeSupabase:
    """
    Minimal PostgREST-compatible client backed by Python lists.

    - Unique constraints raise APIError with code 23505, like PostgreSQL.
    - Bulk inserts are all-or-nothing.
    - `fail_next(table, op)` makes the next matching call raise.
    - `max_rows` caps every select like PostgREST's server setting.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[dict]] = {}
        self.unique: Dict[str, List[str]] = {
            "customers": ["phone_number"],
            "transactions": ["invoice_number"],
        }
        self.calls: List[Tuple[str, str]] = []
        self._failures: Dict[Tuple[str, str], List[Exception]] = {}
        self.before_execute: Optional[Callable[[FakeQuery], None]] = None
        self.max_rows: Optional[int] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(db=self, table_name=name)

    def rows(self, name: str) -> List[dict]:
        return self.tables.setdefault(name, [])

    def fail_next(self, table: str, op: str, error: Optional[Exception] = None) -> None:
        error = error or APIError({"message": "simulated failure", "code": "XX000", "hint": None, "details": None})
        self._failures.setdefault((table, op), []).append(error)

    def _execute(self, query: FakeQuery) -> FakeResponse:
        self.calls.append((query.table_name, query.op))
        if self.before_execute is not None:
            self.before_execute(query)

        pending = self._failures.get((query.table_name, query.op))
        if pending:
            raise pending.pop(0)

        rows = self.rows(query.table_name)

        if query.op == "insert":
            new_rows = query.payload if isinstance(query.payload, list) else [query.payload]
            self._check_unique(query.table_name, rows, new_rows)
            rows.extend(copy.deepcopy(new_rows))
            return FakeResponse(data=copy.deepcopy(new_rows))

        matched = [row for row in rows if query._matches(row)]

        if query.op == "update":
            for row in matched:
                row.update(copy.deepcopy(query.payload))
            return FakeResponse(data=copy.deepcopy(matched))

        if query.op == "delete":
            self.tables[query.table_name] = [row for row in rows if not query._matches(row)]
            return FakeResponse(data=copy.deepcopy(matched))

        # Stable sorts applied last key first give a multi-column ORDER BY.
        for column, desc in reversed(query.order_by):
            matched = sorted(matched, key=lambda r, column=column: _sort_key(column, r.get(column)), reverse=desc)
        if query.row_range is not None:
            start, end = query.row_range
            matched = matched[start : end + 1]
        if query.row_limit is not None:
            matched = matched[: query.row_limit]
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        return FakeResponse(data=copy.deepcopy(matched))

    def _check_unique(self, table: str, existing: List[dict], new_rows: List[dict]) -> None:
        for column in self.unique.get(table, []):
            seen = {row.get(column) for row in existing}
            for row in new_rows:
                value = row.get(column)
                if value in seen:
                    raise APIError(
                        {
                            "message": f'duplicate key value violates unique constraint "{table}_{column}_key"',
                            "code": "23505",
                            "hint": None,
                            "details": f"Key ({column})=({value}) already exists.",
                        }
                    )
                seen.add(value)


@pytest.fixture
def fake_db():
    """Install a fresh in-memory store for the duration of a test."""

    db = FakeSupabase()
    set_supabase(db)
    yield db
    set_supabase(None)
