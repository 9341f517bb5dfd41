"""Ordered, immutable aggregation pipeline."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from trifetch.pipeline.stages import (
    STAGE_TYPES,
    Collect,
    Count,
    Filter,
    Group,
    Limit,
    Sort,
    Stage,
    TypeIs,
)

DEFAULT_SUMMARY_LIMIT = 10

# Output field names shared with SummaryDecoder
COUNT_FIELD = "count"
ITEMS_FIELD = "items"


class EmptyPipelineError(ValueError):
    """Raised when an empty pipeline is sealed for execution."""


class Pipeline:
    """Sequence of stages executed in declaration order.

    `append` returns a new pipeline; an existing pipeline never changes.
    """

    __slots__ = ("_stages",)

    def __init__(self, stages: tuple[Stage, ...] = ()):
        for stage in stages:
            if not isinstance(stage, STAGE_TYPES):
                raise TypeError(f"not a pipeline stage: {stage!r}")
        self._stages = tuple(stages)

    @classmethod
    def of(cls, *stages: Stage) -> Pipeline:
        return cls(stages)

    def append(self, stage: Stage) -> Pipeline:
        return Pipeline(self._stages + (stage,))

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages)

    def __len__(self) -> int:
        return len(self._stages)

    def __getitem__(self, index: int) -> Stage:
        return self._stages[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pipeline):
            return NotImplemented
        return self._stages == other._stages

    def __repr__(self) -> str:
        kinds = ", ".join(stage.kind for stage in self._stages)
        return f"Pipeline([{kinds}])"

    def to_documents(self) -> list[dict[str, Any]]:
        """Render the stages as the store's aggregation request body.

        Raises:
            EmptyPipelineError: If the pipeline has no stages.
        """
        if not self._stages:
            raise EmptyPipelineError("cannot execute an empty pipeline")
        return [stage.to_document() for stage in self._stages]


def year_summary_pipeline(
    limit: int = DEFAULT_SUMMARY_LIMIT,
    key_field: str = "year",
    items_field: str = "title",
) -> Pipeline:
    """Build the grouped, sorted, limited summary pipeline.

    1. Filter: keep documents whose key field is numeric (drops malformed years).
    2. Group: per key, count documents and collect the items field.
    3. Sort: by group key ascending (grouping discards document order).
    4. Limit: first `limit` groups of the sorted key order.

    Args:
        limit: Number of groups to keep.
        key_field: Document field to group by.
        items_field: Document field collected into each group's items.

    Returns:
        Four-stage Pipeline.
    """
    return Pipeline.of(
        Filter(key_field, TypeIs("number")),
        Group(key_field, {COUNT_FIELD: Count(), ITEMS_FIELD: Collect(items_field)}),
        Sort("_id", "ascending"),
        Limit(limit),
    )
