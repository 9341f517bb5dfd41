"""MongoDB document backend.

Runs the year summary pipeline over the movies collection and decodes each
result group. The cursor is consumed strictly in order on one thread.
"""

from __future__ import annotations

import logging
from contextlib import closing

from pymongo import MongoClient
from pymongo.errors import ConfigurationError

from trifetch.aggregation.decoder import SummaryDecoder
from trifetch.aggregation.executor import AggregationExecutor
from trifetch.backends.base import BackendClient
from trifetch.core.config import Settings
from trifetch.core.errors import BackendUnavailable
from trifetch.models.types import Summary
from trifetch.pipeline.pipeline import EmptyPipelineError, Pipeline, year_summary_pipeline

logger = logging.getLogger(__name__)


class DocumentBackend(BackendClient[list[Summary]]):
    """Grouped, sorted, limited summary over one collection."""

    name = "mongodb"

    def __init__(
        self,
        settings: Settings,
        client: MongoClient | None = None,
        pipeline: Pipeline | None = None,
        decoder: SummaryDecoder | None = None,
    ):
        """Initialize backend.

        Args:
            settings: Process settings (URI, database, collection, limit, timeout).
            client: Optional MongoClient (or compatible). Created and closed per
                fetch when omitted.
            pipeline: Overrides the default year summary pipeline.
            decoder: Overrides the default SummaryDecoder.

        Raises:
            EmptyPipelineError: If an explicit pipeline has no stages.
        """
        self.settings = settings
        if pipeline is None:
            pipeline = year_summary_pipeline(limit=settings.summary_limit)
        elif len(pipeline) == 0:
            raise EmptyPipelineError("document backend needs at least one stage")
        self.pipeline = pipeline
        self.decoder = decoder if decoder is not None else SummaryDecoder()
        self._client = client

    def _fetch(self) -> list[Summary]:
        if self._client is not None:
            return self._summarize(self._client)

        client = self._connect()
        try:
            return self._summarize(client)
        finally:
            client.close()

    def _connect(self) -> MongoClient:
        timeout_ms = int(self.settings.fetch_timeout_s * 1000)
        try:
            return MongoClient(
                self.settings.mongodb_uri,
                serverSelectionTimeoutMS=timeout_ms,
                socketTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
            )
        except (ConfigurationError, ValueError) as e:
            raise BackendUnavailable(f"invalid document store URI: {e}") from e

    def _summarize(self, client: MongoClient) -> list[Summary]:
        database = client[self.settings.mongodb_database]
        executor = AggregationExecutor(database, self.settings.mongodb_collection)

        summaries = []
        with closing(executor.execute(self.pipeline)) as documents:
            logger.info("Connected to %s database successfully", self.settings.mongodb_database)
            for summary in self.decoder.decode_all(documents):
                logger.info("* // %r // %d %r //", summary.key, summary.count, list(summary.items))
                summaries.append(summary)
        return summaries
