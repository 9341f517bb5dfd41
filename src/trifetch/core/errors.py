"""Error taxonomy.

Backends raise these from `_fetch()`; `BackendClient.fetch()` turns any
`BackendError` into a failed FetchResult so one backend never aborts another.
"""

from __future__ import annotations


class TrifetchError(Exception):
    """Base class for all trifetch errors."""


class ConfigError(TrifetchError):
    """Missing or invalid process configuration."""


class BackendError(TrifetchError):
    """A backend could not produce its result."""


class TransportError(BackendError):
    """Network or protocol failure talking to a backend."""


class RpcTransportError(TransportError):
    """JSON-RPC call failed or returned an unusable response."""


class AuthError(BackendError):
    """Backend rejected the credential."""


class DecodeError(BackendError):
    """Response payload did not have the expected shape."""


class MalformedSummary(DecodeError):
    """Aggregation result document is missing its group key or is mistyped."""


class PipelineRejected(BackendError):
    """Document store refused one of the pipeline stages."""


class BackendUnavailable(BackendError):
    """Connection to the backend could not be established."""


class AccountNotFound(BackendError):
    """RPC node reports the account does not exist."""

    def __init__(self, account_id: str, detail: str | None = None):
        self.account_id = account_id
        message = f"Account not found: {account_id}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
