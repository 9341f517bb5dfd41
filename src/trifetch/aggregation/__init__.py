"""Aggregation execution and result decoding.

- executor: sends a Pipeline to the document store, streams raw documents
- decoder: turns each raw document into a Summary
"""

from trifetch.aggregation.decoder import SummaryDecoder
from trifetch.aggregation.executor import AggregationExecutor, CursorStream

__all__ = ["AggregationExecutor", "CursorStream", "SummaryDecoder"]
