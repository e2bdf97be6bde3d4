from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .base import AppBaseModel


class DeltaOperation(AppBaseModel):
    """A single insert operation of a delta document."""

    insert: str
    attributes: dict[str, Any] | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def _merge_attributes(
    current: Mapping[str, Any] | None,
    changes: Mapping[str, Any],
) -> dict[str, Any] | None:
    merged = dict(current or {})
    for key, value in changes.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged or None


class Document:
    """In-memory rich text document for one editing session.

    The document is an ordered sequence of insert operations. Editing methods
    address characters by offset into the flattened text and keep the sequence
    compact: no empty runs, and no two adjacent runs with equal attributes.
    """

    def __init__(self, ops: Iterable[DeltaOperation] | None = None) -> None:
        self._ops: list[DeltaOperation] = list(ops or [])

    @property
    def ops(self) -> list[DeltaOperation]:
        return list(self._ops)

    @property
    def length(self) -> int:
        return sum(len(op.insert) for op in self._ops)

    def to_delta(self) -> list[dict[str, Any]]:
        return [op.to_json() for op in self._ops]

    def to_plain_text(self) -> str:
        return "".join(op.insert for op in self._ops)

    def insert(self, index: int, text: str, attributes: Mapping[str, Any] | None = None) -> None:
        self._check_range(index, 0)
        if not text:
            return
        position = self._split_at(index)
        self._ops.insert(position, DeltaOperation(insert=text, attributes=dict(attributes) if attributes else None))
        self._compact()

    def delete(self, index: int, length: int) -> None:
        self._check_range(index, length)
        if length == 0:
            return
        start = self._split_at(index)
        end = self._split_at(index + length)
        del self._ops[start:end]
        self._compact()

    def format(self, index: int, length: int, attributes: Mapping[str, Any]) -> None:
        """Apply ``attributes`` to a range; a ``None`` value clears that attribute."""
        self._check_range(index, length)
        if length == 0 or not attributes:
            return
        start = self._split_at(index)
        end = self._split_at(index + length)
        for i in range(start, end):
            op = self._ops[i]
            self._ops[i] = DeltaOperation(insert=op.insert, attributes=_merge_attributes(op.attributes, attributes))
        self._compact()

    def _check_range(self, index: int, length: int) -> None:
        if index < 0 or length < 0 or index + length > self.length:
            raise IndexError(f"Range {index}:{index + length} outside document of length {self.length}")

    def _split_at(self, index: int) -> int:
        """Ensure an operation boundary at ``index`` and return the op position starting there."""
        pos = 0
        for i, op in enumerate(self._ops):
            end = pos + len(op.insert)
            if index == pos:
                return i
            if pos < index < end:
                offset = index - pos
                self._ops[i:i + 1] = [
                    DeltaOperation(insert=op.insert[:offset], attributes=op.attributes),
                    DeltaOperation(insert=op.insert[offset:], attributes=op.attributes),
                ]
                return i + 1
            pos = end
        return len(self._ops)

    def _compact(self) -> None:
        compacted: list[DeltaOperation] = []
        for op in self._ops:
            if not op.insert:
                continue
            if compacted and compacted[-1].attributes == op.attributes:
                last = compacted.pop()
                op = DeltaOperation(insert=last.insert + op.insert, attributes=op.attributes)
            compacted.append(op)
        self._ops = compacted

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return self._ops == other._ops

    def __repr__(self) -> str:
        return f"Document({self.to_delta()!r})"
