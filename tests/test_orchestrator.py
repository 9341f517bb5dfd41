"""Tests for the orchestrator.

Every backend outcome is reported; one failure never hides another.
"""

import threading

import httpx

from trifetch.backends.base import BackendClient
from trifetch.backends.document import DocumentBackend
from trifetch.backends.relational import RelationalBackend
from trifetch.backends.rpc import RpcBackend
from trifetch.core.config import Settings
from trifetch.core.errors import AuthError
from trifetch.models.result import FetchResult
from trifetch.models.types import AccountBalance
from trifetch.worker.orchestrator import CombinedReport, Orchestrator


class StaticBackend(BackendClient):
    """Backend returning a fixed value or raising a fixed error."""

    def __init__(self, name, value=None, error=None):
        self.name = name
        self.value = value
        self.error = error
        self.calls = 0

    def _fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.value


class BlockingBackend(BackendClient):
    """Backend that waits on an event before returning."""

    name = "slow"

    def __init__(self, release: threading.Event):
        self.release = release

    def _fetch(self):
        self.release.wait(timeout=5)
        return ["late"]


class BarrierBackend(BackendClient):
    """Backend that only completes if all three run at the same time."""

    def __init__(self, name, barrier: threading.Barrier):
        self.name = name
        self.barrier = barrier

    def _fetch(self):
        self.barrier.wait(timeout=5)
        return [self.name]


class ThreadRecordingBackend(BackendClient):
    """Backend that records the thread its fetch ran on."""

    def __init__(self, name):
        self.name = name
        self.thread = None

    def _fetch(self):
        self.thread = threading.current_thread()
        return []


BALANCE = AccountBalance(account_id="a.testnet", amount=5)


class TestLifecycle:
    """State moves not_started -> dispatched -> completed."""

    def test_initial_state(self):
        orchestrator = Orchestrator(
            StaticBackend("a", 1), StaticBackend("b", 2), StaticBackend("c", 3)
        )
        assert orchestrator.state == "not_started"

    def test_completed_after_run(self):
        orchestrator = Orchestrator(
            StaticBackend("a", 1), StaticBackend("b", 2), StaticBackend("c", 3)
        )
        orchestrator.run()
        assert orchestrator.state == "completed"


class TestIndependentOutcomes:
    """Each backend's result is collected regardless of the others."""

    def test_all_succeed(self):
        report = Orchestrator(
            StaticBackend("rpc", BALANCE), StaticBackend("rel", []), StaticBackend("doc", [])
        ).run()

        assert isinstance(report, CombinedReport)
        assert report.all_ok
        assert report.account.unwrap() == BALANCE

    def test_first_failure_does_not_short_circuit(self):
        """A failing first backend still lets the other two report."""
        rpc = StaticBackend("rpc", error=AuthError("nope"))
        rel = StaticBackend("rel", ["row"])
        doc = StaticBackend("doc", ["summary"])

        report = Orchestrator(rpc, rel, doc).run()

        assert not report.account.ok
        assert report.employees.unwrap() == ["row"]
        assert report.summaries.unwrap() == ["summary"]
        assert (rel.calls, doc.calls) == (1, 1)
        assert [f.backend for f in report.failures] == ["rpc"]

    def test_unexpected_exception_recorded(self):
        """Non-backend exceptions become failures too."""
        report = Orchestrator(
            StaticBackend("rpc", BALANCE),
            StaticBackend("rel", error=RuntimeError("bug")),
            StaticBackend("doc", []),
        ).run()

        assert report.employees.error.code == "RuntimeError"
        assert report.account.ok and report.summaries.ok

    def test_fetches_run_concurrently(self):
        """All three fetches are in flight at the same time."""
        barrier = threading.Barrier(3)
        report = Orchestrator(
            BarrierBackend("a", barrier),
            BarrierBackend("b", barrier),
            BarrierBackend("c", barrier),
            timeout_s=10,
        ).run()
        assert report.all_ok

    def test_timeout_reports_overdue_backend(self):
        """A fetch past the deadline is reported as FetchTimeout."""
        release = threading.Event()
        try:
            report = Orchestrator(
                StaticBackend("rpc", BALANCE),
                BlockingBackend(release),
                StaticBackend("doc", []),
                timeout_s=0.2,
            ).run()
        finally:
            release.set()

        assert report.employees.error.code == "FetchTimeout"
        assert report.account.ok
        assert report.summaries.ok


    def test_fetches_run_on_daemon_threads(self):
        """Overdue fetches never keep the process alive after the report."""
        backends = [ThreadRecordingBackend(name) for name in ("a", "b", "c")]
        Orchestrator(*backends, timeout_s=10).run()

        for backend in backends:
            assert backend.thread is not threading.main_thread()
            assert backend.thread.daemon


class TestCombinedLine:
    """Test the single combined output line."""

    def test_line_has_all_three_outcomes(self):
        report = CombinedReport(
            account=FetchResult.success("rpc", BALANCE),
            employees=FetchResult.failure("rel", AuthError("bad key")),
            summaries=FetchResult.success("doc", []),
        )
        line = report.as_line()

        assert "\n" not in line
        assert line.startswith("Ok(")
        assert "Err(AuthError: bad key)" in line
        assert line.endswith("Ok([])")


class TestWithRealBackends:
    """Wire the concrete backends together with in-memory transports."""

    def test_end_to_end(self, settings: Settings, mongo_client):
        def rpc_handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": "x", "error": {"cause": {"name": "UNKNOWN_ACCOUNT"}}},
            )

        def rest_handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=[{"id": 1, "first_name": "Ana", "age": 34, "interests": "x", "city": "y"}],
            )

        report = Orchestrator(
            RpcBackend(settings, client=httpx.Client(transport=httpx.MockTransport(rpc_handler))),
            RelationalBackend(
                settings, client=httpx.Client(transport=httpx.MockTransport(rest_handler))
            ),
            DocumentBackend(settings, client=mongo_client),
            timeout_s=10,
        ).run()

        assert report.account.error.code == "AccountNotFound"
        assert len(report.employees.unwrap()) == 1
        assert [s.key for s in report.summaries.unwrap()] == list(range(1995, 2005))
