"""Run a Pipeline against the document store.

`execute` opens one server-side cursor and hands back a CursorStream over it.
Documents are pulled one at a time; the pipeline's Limit stage is the only
bound on result size.
"""

from __future__ import annotations

import logging
from typing import Any

from pymongo.database import Database
from pymongo.errors import ConfigurationError, ConnectionFailure, OperationFailure, PyMongoError

from trifetch.core.errors import BackendUnavailable, PipelineRejected, TransportError
from trifetch.pipeline.pipeline import Pipeline

logger = logging.getLogger(__name__)


class AggregationExecutor:
    """Executes pipelines against a single collection."""

    def __init__(self, database: Database, collection_name: str):
        """Initialize executor.

        Args:
            database: Database handle (pymongo or compatible).
            collection_name: Collection the pipeline runs against.
        """
        self.database = database
        self.collection_name = collection_name

    def execute(self, pipeline: Pipeline) -> CursorStream:
        """Open a cursor for the pipeline.

        Connection and stage errors surface here, before iteration starts.

        Args:
            pipeline: Non-empty pipeline to run.

        Returns:
            Single-pass iterator over result documents.

        Raises:
            EmptyPipelineError: If the pipeline has no stages.
            BackendUnavailable: If the store cannot be reached.
            PipelineRejected: If the store rejects a stage.
            TransportError: For any other driver failure.
        """
        stages = pipeline.to_documents()

        try:
            self.database.command("ping")
            cursor = self.database[self.collection_name].aggregate(stages)
        except (ConnectionFailure, ConfigurationError) as e:
            raise BackendUnavailable(f"document store unreachable: {e}") from e
        except OperationFailure as e:
            raise PipelineRejected(f"store rejected pipeline {pipeline!r}: {e}") from e
        except PyMongoError as e:
            raise TransportError(f"aggregation failed: {e}") from e

        logger.debug("Opened cursor on %s for %r", self.collection_name, pipeline)
        return CursorStream(cursor)


class CursorStream:
    """Single-pass iterator that owns an open cursor.

    The cursor is closed when the stream is exhausted, fails, or is closed,
    including when `close()` is called before the first document is read.
    """

    def __init__(self, cursor: Any):
        self._cursor = cursor
        self._documents = iter(cursor)
        self.closed = False

    def __iter__(self) -> CursorStream:
        return self

    def __next__(self) -> dict[str, Any]:
        if self.closed:
            raise StopIteration
        try:
            return next(self._documents)
        except StopIteration:
            self.close()
            raise
        except PyMongoError as e:
            self.close()
            raise TransportError(f"cursor failed mid-stream: {e}") from e

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close = getattr(self._cursor, "close", None)
        if close is not None:
            close()
