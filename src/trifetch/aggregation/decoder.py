"""Decode raw aggregation result documents into Summary records.

The document store is schema-less, so each field has its own policy:
- group key: required, int or str
- count: defaults to 0 when absent
- items: defaults to an empty sequence when absent
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from trifetch.core.errors import MalformedSummary
from trifetch.models.types import Summary
from trifetch.pipeline.pipeline import COUNT_FIELD, ITEMS_FIELD


def _as_int(value: Any) -> int | None:
    """Return value as int if it is an integer or an integral float."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


class SummaryDecoder:
    """Converts one raw result document into a Summary."""

    def __init__(
        self,
        key_field: str = "_id",
        count_field: str = COUNT_FIELD,
        items_field: str = ITEMS_FIELD,
    ):
        self.key_field = key_field
        self.count_field = count_field
        self.items_field = items_field

    def decode(self, raw: Mapping[str, Any]) -> Summary:
        """Decode a raw document.

        Args:
            raw: Result document produced by the Group stage.

        Returns:
            Summary for the group.

        Raises:
            MalformedSummary: If the key is missing or any field is mistyped.
        """
        if not isinstance(raw, Mapping):
            raise MalformedSummary(f"result is not a document: {raw!r}")

        key = self._decode_key(raw)
        count = self._decode_count(raw, key)
        items = self._decode_items(raw, key)

        try:
            return Summary(key=key, count=count, items=items)
        except ValidationError as e:
            raise MalformedSummary(f"group {key!r}: {e}") from e

    def decode_all(self, documents: Iterable[Mapping[str, Any]]) -> Iterator[Summary]:
        """Lazily decode documents in order."""
        for raw in documents:
            yield self.decode(raw)

    def _decode_key(self, raw: Mapping[str, Any]) -> int | str:
        if self.key_field not in raw:
            raise MalformedSummary(f"missing group key {self.key_field!r}")
        value = raw[self.key_field]
        if isinstance(value, str):
            return value
        key = _as_int(value)
        if key is None:
            raise MalformedSummary(
                f"group key {self.key_field!r} has unexpected type {type(value).__name__}"
            )
        return key

    def _decode_count(self, raw: Mapping[str, Any], key: int | str) -> int:
        value = raw.get(self.count_field)
        if value is None:
            return 0
        count = _as_int(value)
        if count is None or count < 0:
            raise MalformedSummary(f"group {key!r}: invalid {self.count_field} {value!r}")
        return count

    def _decode_items(self, raw: Mapping[str, Any], key: int | str) -> tuple[str, ...]:
        value = raw.get(self.items_field)
        if value is None:
            return ()
        if not isinstance(value, (list, tuple)):
            raise MalformedSummary(
                f"group {key!r}: {self.items_field} is {type(value).__name__}, expected array"
            )
        for item in value:
            if not isinstance(item, str):
                raise MalformedSummary(f"group {key!r}: non-string item {item!r}")
        return tuple(value)
