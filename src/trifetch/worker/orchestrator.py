"""Orchestrator for the three backend fetches.

Architecture:
- Orchestrator: dispatches all fetches together and waits for every outcome
- CombinedReport: the three FetchResults, reported together

One backend's failure never prevents the others from completing or being
reported. A fetch that raises unexpectedly or overruns the deadline is
recorded as a failed result, the same way a backend's own errors are.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, wait
from dataclasses import dataclass
from typing import Literal

from trifetch.backends.base import BackendClient
from trifetch.models.result import FetchError, FetchResult
from trifetch.models.types import AccountBalance, Employee, Summary

logger = logging.getLogger(__name__)

OrchestratorState = Literal["not_started", "dispatched", "completed"]


@dataclass(frozen=True)
class CombinedReport:
    """Outcomes of all three backends."""

    account: FetchResult[AccountBalance]
    employees: FetchResult[list[Employee]]
    summaries: FetchResult[list[Summary]]

    @property
    def results(self) -> tuple[FetchResult, ...]:
        return (self.account, self.employees, self.summaries)

    @property
    def all_ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failures(self) -> list[FetchResult]:
        return [result for result in self.results if not result.ok]

    def as_line(self) -> str:
        """Single combined debug line of all three outcomes."""
        return ", ".join(str(result) for result in self.results)


class Orchestrator:
    """Runs the RPC, relational and document fetches concurrently.

    State moves not_started -> dispatched -> completed; there are no retry
    states.
    """

    def __init__(
        self,
        rpc: BackendClient[AccountBalance],
        relational: BackendClient[list[Employee]],
        document: BackendClient[list[Summary]],
        timeout_s: float | None = None,
    ):
        """Initialize orchestrator.

        Args:
            rpc: Account balance backend.
            relational: Employees backend.
            document: Aggregation summary backend.
            timeout_s: Deadline for all fetches, measured from dispatch.
                None waits indefinitely.
        """
        self.rpc = rpc
        self.relational = relational
        self.document = document
        self.timeout_s = timeout_s
        self.state: OrchestratorState = "not_started"

    def run(self) -> CombinedReport:
        """Dispatch all fetches and collect every outcome.

        Returns:
            CombinedReport with one FetchResult per backend.
        """
        backends = (self.rpc, self.relational, self.document)
        futures = [self._dispatch(backend) for backend in backends]
        self.state = "dispatched"
        logger.debug("Dispatched %d fetches", len(futures))

        done, not_done = wait(futures, timeout=self.timeout_s)
        if not_done:
            logger.warning("%d fetch(es) still running at deadline", len(not_done))

        results = [
            self._collect(backend, future, future in done)
            for backend, future in zip(backends, futures)
        ]
        self.state = "completed"

        return CombinedReport(account=results[0], employees=results[1], summaries=results[2])

    @staticmethod
    def _dispatch(backend: BackendClient) -> Future:
        """Start one fetch on a daemon thread.

        Daemon threads do not hold the process open, so a fetch that overruns
        the deadline is abandoned once the report has been produced.
        """
        future: Future = Future()

        def run_fetch() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(backend.fetch())
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=run_fetch, name=f"trifetch-{backend.name}", daemon=True).start()
        return future

    def _collect(self, backend: BackendClient, future: Future, finished: bool) -> FetchResult:
        """Turn a finished, failed, or overdue future into a FetchResult."""
        if not finished:
            return FetchResult.failure(
                backend.name,
                FetchError(code="FetchTimeout", detail=f"no result within {self.timeout_s}s"),
            )
        try:
            return future.result()
        except Exception as e:
            logger.exception("%s fetch raised unexpectedly", backend.name)
            return FetchResult.failure(backend.name, e)
