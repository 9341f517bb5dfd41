"""Aggregation pipeline model.

Stages describe intent only; execution lives in trifetch.aggregation.
"""

from trifetch.pipeline.pipeline import (
    COUNT_FIELD,
    ITEMS_FIELD,
    EmptyPipelineError,
    Pipeline,
    year_summary_pipeline,
)
from trifetch.pipeline.stages import Collect, Count, Filter, Group, Limit, Sort, Stage, TypeIs

__all__ = [
    "COUNT_FIELD",
    "ITEMS_FIELD",
    "Collect",
    "Count",
    "EmptyPipelineError",
    "Filter",
    "Group",
    "Limit",
    "Pipeline",
    "Sort",
    "Stage",
    "TypeIs",
    "year_summary_pipeline",
]
