"""Ordered, id-unique record snapshots.

A :class:`RecordCollection` is immutable.  Merging returns a new
collection, so a snapshot handed to a subscriber never changes under it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, overload

from pydantic import ValidationError

from livefeed.exceptions import ParseError
from livefeed.models.record import Record


def _coerce_record(item: Record | Mapping[str, Any]) -> Record:
    if isinstance(item, Record):
        return item
    try:
        return Record.model_validate(dict(item))
    except ValidationError as exc:
        raise ParseError(f"Invalid initial record: {item!r}") from exc


class RecordCollection(Sequence[Record]):
    """Insertion-ordered records with at most one entry per ``id``.

    Lookup by id goes through an ``id -> position`` index.  Replacing an
    id keeps its position; a new id is appended.
    """

    __slots__ = ("_index", "_records")

    def __init__(self, records: Iterable[Record | Mapping[str, Any]] = ()) -> None:
        items: list[Record] = []
        index: dict[int, int] = {}
        for item in records:
            record = _coerce_record(item)
            position = index.get(record.id)
            if position is None:
                index[record.id] = len(items)
                items.append(record)
            else:
                items[position] = record
        self._records: tuple[Record, ...] = tuple(items)
        self._index: dict[int, int] = index

    @classmethod
    def _from_parts(cls, records: tuple[Record, ...], index: dict[int, int]) -> RecordCollection:
        collection = cls.__new__(cls)
        collection._records = records
        collection._index = index
        return collection

    def merge(self, record: Record) -> RecordCollection:
        """Insert or replace *record* by id and return the new collection.

        The stored entry is *record* itself: a partial record overwrites
        every field of the previous entry.
        """
        position = self._index.get(record.id)
        if position is not None:
            records = self._records[:position] + (record,) + self._records[position + 1 :]
            return self._from_parts(records, self._index)
        index = dict(self._index)
        index[record.id] = len(self._records)
        return self._from_parts(self._records + (record,), index)

    def get(self, record_id: int, default: Record | None = None) -> Record | None:
        position = self._index.get(record_id)
        if position is None:
            return default
        return self._records[position]

    def index_of(self, record_id: int) -> int | None:
        return self._index.get(record_id)

    def has_id(self, record_id: int) -> bool:
        return record_id in self._index

    def ids(self) -> tuple[int, ...]:
        return tuple(record.id for record in self._records)

    def to_list(self) -> list[dict[str, Any]]:
        """Plain dicts in collection order, as received on the wire."""
        return [record.to_dict() for record in self._records]

    @overload
    def __getitem__(self, index: int) -> Record: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Record, ...]: ...

    def __getitem__(self, index: int | slice) -> Record | tuple[Record, ...]:
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __contains__(self, value: object) -> bool:
        if isinstance(value, Record):
            position = self._index.get(value.id)
            return position is not None and self._records[position] == value
        return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RecordCollection):
            return self._records == other._records
        return NotImplemented

    def __repr__(self) -> str:
        return f"RecordCollection({self.to_list()!r})"
