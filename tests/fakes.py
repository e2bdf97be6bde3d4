"""In-memory stand-in for the parts of the Supabase client the repositories use.

Mimics the `notes`, `tags` and `note_tags` tables of the hosted schema,
including the usage-count triggers, the cascades on delete, the unique
constraints and the `search_notes` RPC.
"""
from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from postgrest.exceptions import APIError

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


@dataclass
class FakeResponse:
    data: Any
    count: int | None = None


def _coerce(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return value
    return value


def _api_error(message: str, code: str) -> APIError:
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def _plain_text(content: Any) -> str:
    ops = content.get("ops", []) if isinstance(content, dict) else []
    return "".join(op.get("insert", "") for op in ops if isinstance(op.get("insert"), str))


class FakeQuery:
    def __init__(self, db: FakeSupabaseClient, table: str) -> None:
        self._db = db
        self._table = table
        self._action = "select"
        self._columns = "*"
        self._count: str | None = None
        self._payload: Any = None
        self._filters: list[tuple[str, str, Any]] = []
        self._order: tuple[str, bool] | None = None
        self._range: tuple[int, int] | None = None
        self._limit: int | None = None

    def select(self, columns: str = "*", count: str | None = None) -> FakeQuery:
        self._action = "select"
        self._columns = columns
        self._count = count
        return self

    def insert(self, row: dict[str, Any]) -> FakeQuery:
        self._action = "insert"
        self._payload = row
        return self

    def update(self, changes: dict[str, Any]) -> FakeQuery:
        self._action = "update"
        self._payload = changes
        return self

    def delete(self) -> FakeQuery:
        self._action = "delete"
        return self

    def eq(self, column: str, value: Any) -> FakeQuery:
        self._filters.append(("eq", column, value))
        return self

    def gt(self, column: str, value: Any) -> FakeQuery:
        self._filters.append(("gt", column, value))
        return self

    def gte(self, column: str, value: Any) -> FakeQuery:
        self._filters.append(("gte", column, value))
        return self

    def order(self, column: str, desc: bool = False) -> FakeQuery:
        self._order = (column, desc)
        return self

    def range(self, start: int, end: int) -> FakeQuery:
        self._range = (start, end)
        return self

    def limit(self, size: int) -> FakeQuery:
        self._limit = size
        return self

    def execute(self) -> FakeResponse:
        self._db.raise_if_failing()
        self._db.calls.append((self._table, self._action))
        if self._action == "insert":
            return FakeResponse(data=[self._db.insert_row(self._table, self._payload)])

        matched = [row for row in self._db.tables[self._table] if self._matches(row)]
        if self._action == "update":
            return FakeResponse(data=[self._db.update_row(self._table, row, self._payload) for row in matched])
        if self._action == "delete":
            for row in matched:
                self._db.delete_row(self._table, row)
            return FakeResponse(data=copy.deepcopy(matched))

        total = len(matched)
        if self._order is not None:
            column, desc = self._order
            present = [r for r in matched if r.get(column) is not None]
            missing = [r for r in matched if r.get(column) is None]
            matched = sorted(present, key=lambda r: _coerce(r[column]), reverse=desc) + missing
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse(data=[self._project(row) for row in matched], count=total if self._count else None)

    def _matches(self, row: dict[str, Any]) -> bool:
        for op, column, value in self._filters:
            actual = row.get(column)
            if op == "eq" and str(actual) != str(value):
                return False
            if op in {"gt", "gte"}:
                if actual is None:
                    return False
                left, right = _coerce(actual), _coerce(value)
                if op == "gt" and not left > right:
                    return False
                if op == "gte" and not left >= right:
                    return False
        return True

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        if self._columns == "*":
            return copy.deepcopy(row)
        if self._columns == "tags(*)":
            return {"tags": copy.deepcopy(self._db.find("tags", row["tag_id"]))}
        if self._columns == "notes(*)":
            return {"notes": copy.deepcopy(self._db.find("notes", row["note_id"]))}
        return {c.strip(): copy.deepcopy(row.get(c.strip())) for c in self._columns.split(",")}


class FakeRpc:
    def __init__(self, db: FakeSupabaseClient, name: str, params: dict[str, Any]) -> None:
        self._db = db
        self._name = name
        self._params = params

    def execute(self) -> FakeResponse:
        self._db.raise_if_failing()
        self._db.calls.append((self._name, "rpc"))
        if self._name != "search_notes":
            raise _api_error(f"Could not find the function public.{self._name}", "PGRST202")
        return FakeResponse(data=self._db.search_notes(**self._params))


class FakeSupabaseClient:
    """Single-user in-memory database behind the Supabase query builder API."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"notes": [], "tags": [], "note_tags": []}
        self.calls: list[tuple[str, str]] = []
        self._failures: list[Exception] = []
        self._tick = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict[str, Any] | None = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    def fail_next(self, error: Exception) -> None:
        """Make the next executed query raise ``error``."""
        self._failures.append(error)

    def raise_if_failing(self) -> None:
        if self._failures:
            raise self._failures.pop(0)

    def find(self, table: str, row_id: Any) -> dict[str, Any] | None:
        return next((r for r in self.tables[table] if str(r["id"]) == str(row_id)), None)

    def now(self) -> str:
        # Strictly increasing so ordering by timestamp is deterministic
        self._tick += 1
        return (BASE_TIME + timedelta(seconds=self._tick)).isoformat()

    def insert_row(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        row = copy.deepcopy(payload)
        if table == "notes":
            stamp = self.now()
            row = {
                "id": str(uuid.uuid4()),
                "title": None,
                "content": None,
                "language": None,
                "language_confidence": None,
                "created_at": stamp,
                "updated_at": stamp,
                **row,
            }
        elif table == "tags":
            if any(t["user_id"] == row["user_id"] and t["name"] == row["name"] for t in self.tables["tags"]):
                raise _api_error('duplicate key value violates unique constraint "tags_user_id_name_key"', "23505")
            stamp = self.now()
            row = {
                "id": str(uuid.uuid4()),
                "color": "#21409A",
                "icon": None,
                "description": None,
                "usage_count": 0,
                "created_at": stamp,
                "updated_at": stamp,
                **row,
            }
        elif table == "note_tags":
            if self.find("notes", row["note_id"]) is None or self.find("tags", row["tag_id"]) is None:
                raise _api_error("insert or update on table \"note_tags\" violates foreign key constraint", "23503")
            if any(
                a["note_id"] == row["note_id"] and a["tag_id"] == row["tag_id"]
                for a in self.tables["note_tags"]
            ):
                raise _api_error('duplicate key value violates unique constraint "note_tags_pkey"', "23505")
            row = {"id": str(uuid.uuid4()), "created_at": self.now(), **row}
            self.find("tags", row["tag_id"])["usage_count"] += 1
        self.tables[table].append(row)
        return copy.deepcopy(row)

    def update_row(self, table: str, row: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
        if table == "tags" and "name" in changes:
            if any(
                t is not row and t["user_id"] == row["user_id"] and t["name"] == changes["name"]
                for t in self.tables["tags"]
            ):
                raise _api_error('duplicate key value violates unique constraint "tags_user_id_name_key"', "23505")
        row.update(copy.deepcopy(changes))
        if "updated_at" in row:
            row["updated_at"] = self.now()
        return copy.deepcopy(row)

    def delete_row(self, table: str, row: dict[str, Any]) -> None:
        self.tables[table].remove(row)
        if table == "note_tags":
            tag = self.find("tags", row["tag_id"])
            if tag is not None:
                tag["usage_count"] = max(0, tag["usage_count"] - 1)
        elif table in {"notes", "tags"}:
            column = "note_id" if table == "notes" else "tag_id"
            for assoc in [a for a in self.tables["note_tags"] if a[column] == row["id"]]:
                self.delete_row("note_tags", assoc)

    def search_notes(
        self,
        user_id_param: str,
        search_query: str | None = None,
        tag_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        terms = [t.lower() for t in search_query.split(" & ")] if search_query else []
        results = []
        for note in self.tables["notes"]:
            if note["user_id"] != user_id_param:
                continue
            if tag_ids:
                note_tag_ids = {a["tag_id"] for a in self.tables["note_tags"] if a["note_id"] == note["id"]}
                if not note_tag_ids.intersection(tag_ids):
                    continue
            haystack = f"{note.get('title') or ''} {_plain_text(note.get('content'))}".lower()
            if terms and not all(term in haystack for term in terms):
                continue
            rank = sum(haystack.count(term) for term in terms)
            results.append({**copy.deepcopy(note), "rank": float(rank), "search_vector": "'stub':1"})
        results.sort(key=lambda r: _coerce(r["updated_at"]), reverse=True)
        if terms:
            results.sort(key=lambda r: r["rank"], reverse=True)
        return results
