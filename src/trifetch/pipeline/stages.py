"""Aggregation pipeline stages.

Each stage is an immutable description of one server-side operation and
renders to its MongoDB stage document with `to_document()`. Only structural
checks happen here; whether a field exists on the documents is the store's
business.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal, Union

SortDirection = Literal["ascending", "descending"]
StageKind = Literal["filter", "group", "sort", "limit"]


def _check_field(name: str, what: str) -> None:
    if not isinstance(name, str) or not name:
        raise TypeError(f"{what} must be a non-empty string, got {name!r}")


# Predicates


@dataclass(frozen=True)
class TypeIs:
    """Match documents whose field holds a value of the given BSON type alias."""

    bson_type: str

    def __post_init__(self) -> None:
        _check_field(self.bson_type, "bson_type")

    def to_expression(self) -> dict[str, Any]:
        return {"$type": self.bson_type}


Predicate = TypeIs


# Aggregation ops


@dataclass(frozen=True)
class Count:
    """Number of documents in the group."""

    def to_expression(self) -> dict[str, Any]:
        return {"$sum": 1}


@dataclass(frozen=True)
class Collect:
    """Values of `field` across the group, in store enumeration order."""

    field: str

    def __post_init__(self) -> None:
        _check_field(self.field, "Collect field")

    def to_expression(self) -> dict[str, Any]:
        return {"$push": f"${self.field}"}


Aggregation = Union[Count, Collect]


# Stages


@dataclass(frozen=True)
class Filter:
    """Keep documents where `field` satisfies `predicate`."""

    field: str
    predicate: Predicate
    kind: StageKind = dataclasses.field(default="filter", init=False)

    def __post_init__(self) -> None:
        _check_field(self.field, "Filter field")
        if not isinstance(self.predicate, TypeIs):
            raise TypeError(f"unsupported predicate: {self.predicate!r}")

    def to_document(self) -> dict[str, Any]:
        return {"$match": {self.field: self.predicate.to_expression()}}


@dataclass(frozen=True)
class Group:
    """Group by `key_field`, computing each named aggregation per group.

    The group key lands in the output document's `_id`.
    """

    key_field: str
    aggregations: Mapping[str, Aggregation]
    kind: StageKind = dataclasses.field(default="group", init=False)

    def __post_init__(self) -> None:
        _check_field(self.key_field, "Group key_field")
        if self.key_field.startswith("$"):
            raise ValueError(f"Group key_field must not start with '$': {self.key_field!r}")
        if not isinstance(self.aggregations, Mapping) or not self.aggregations:
            raise TypeError("Group aggregations must be a non-empty mapping")
        for name, op in self.aggregations.items():
            _check_field(name, "aggregation output name")
            if name == "_id":
                raise ValueError("aggregation output name '_id' is reserved for the group key")
            if not isinstance(op, (Count, Collect)):
                raise TypeError(f"unsupported aggregation for {name!r}: {op!r}")
        # Freeze a private copy so later changes to the caller's dict don't leak in
        object.__setattr__(self, "aggregations", MappingProxyType(dict(self.aggregations)))

    def to_document(self) -> dict[str, Any]:
        body: dict[str, Any] = {"_id": f"${self.key_field}"}
        for name, op in self.aggregations.items():
            body[name] = op.to_expression()
        return {"$group": body}


@dataclass(frozen=True)
class Sort:
    """Order documents by `field`."""

    field: str
    direction: SortDirection = "ascending"
    kind: StageKind = dataclasses.field(default="sort", init=False)

    def __post_init__(self) -> None:
        _check_field(self.field, "Sort field")
        if self.direction not in ("ascending", "descending"):
            raise ValueError(f"unknown sort direction: {self.direction!r}")

    def to_document(self) -> dict[str, Any]:
        return {"$sort": {self.field: 1 if self.direction == "ascending" else -1}}


@dataclass(frozen=True)
class Limit:
    """Keep only the first `count` documents."""

    count: int
    kind: StageKind = dataclasses.field(default="limit", init=False)

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise TypeError(f"Limit count must be an int, got {self.count!r}")
        if self.count < 1:
            raise ValueError(f"Limit count must be positive, got {self.count}")

    def to_document(self) -> dict[str, Any]:
        return {"$limit": self.count}


Stage = Union[Filter, Group, Sort, Limit]
STAGE_TYPES = (Filter, Group, Sort, Limit)
