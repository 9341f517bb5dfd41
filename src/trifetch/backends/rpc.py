"""NEAR JSON-RPC backend.

Single `query` call with `view_account` at final finality. No retry.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from trifetch.backends.base import BackendClient
from trifetch.core.config import Settings, validate_account_id
from trifetch.core.errors import AccountNotFound, ConfigError, RpcTransportError
from trifetch.models.types import AccountBalance

logger = logging.getLogger(__name__)

UNKNOWN_ACCOUNT_CAUSE = "UNKNOWN_ACCOUNT"


def build_view_account_request(account_id: str) -> dict[str, Any]:
    """JSON-RPC body for a finalized account view."""
    return {
        "jsonrpc": "2.0",
        "id": "trifetch",
        "method": "query",
        "params": {
            "request_type": "view_account",
            "finality": "final",
            "account_id": account_id,
        },
    }


def _is_unknown_account(error: Any) -> bool:
    """Recognize both structured and legacy "account does not exist" errors."""
    if isinstance(error, dict):
        cause = error.get("cause")
        if isinstance(cause, dict) and cause.get("name") == UNKNOWN_ACCOUNT_CAUSE:
            return True
        text = f"{error.get('data', '')} {error.get('message', '')}"
    else:
        text = str(error)
    return "does not exist" in text


def _error_text(error: Any) -> str:
    if isinstance(error, dict):
        for key in ("data", "message", "name"):
            if error.get(key):
                return str(error[key])
    return str(error)


class RpcBackend(BackendClient[AccountBalance]):
    """Looks up one account's balance on the NEAR node."""

    name = "near_rpc"

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client | None = None,
        account_id: str | None = None,
    ):
        """Initialize backend.

        Args:
            settings: Process settings (RPC url, account id, timeout).
            client: Optional pre-built httpx client. One is opened per fetch otherwise.
            account_id: Overrides settings.near_account_id.

        Raises:
            ConfigError: If account_id is not a valid NEAR account id.
        """
        self.url = settings.near_rpc_url
        if account_id is None:
            account_id = settings.near_account_id
        else:
            try:
                validate_account_id(account_id)
            except ValueError as e:
                raise ConfigError(str(e)) from e
        self.account_id = account_id
        self.timeout = settings.fetch_timeout_s
        self._client = client

    def _fetch(self) -> AccountBalance:
        if self._client is not None:
            return self._query(self._client)
        with httpx.Client(timeout=self.timeout) as client:
            return self._query(client)

    def _query(self, client: httpx.Client) -> AccountBalance:
        try:
            response = client.post(self.url, json=build_view_account_request(self.account_id))
        except httpx.HTTPError as e:
            raise RpcTransportError(f"RPC request to {self.url} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise RpcTransportError(
                f"RPC returned non-JSON body (HTTP {response.status_code})"
            ) from e

        # The node reports errors in the envelope, sometimes with a non-2xx status
        if isinstance(body, dict) and body.get("error") is not None:
            error = body["error"]
            if _is_unknown_account(error):
                raise AccountNotFound(self.account_id, _error_text(error))
            raise RpcTransportError(f"RPC error: {_error_text(error)}")

        if response.status_code != 200:
            raise RpcTransportError(f"RPC returned HTTP {response.status_code}")

        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, dict):
            raise RpcTransportError("RPC response has no result object")

        # Older nodes answer unknown accounts with a 200 result carrying an error string
        if "error" in result:
            if _is_unknown_account(result["error"]):
                raise AccountNotFound(self.account_id, str(result["error"]))
            raise RpcTransportError(f"RPC query error: {result['error']}")

        try:
            balance = AccountBalance(
                account_id=self.account_id,
                amount=result["amount"],
                locked=result.get("locked", 0),
                storage_usage=result.get("storage_usage"),
                block_height=result.get("block_height"),
                block_hash=result.get("block_hash"),
            )
        except (KeyError, ValidationError) as e:
            raise RpcTransportError(f"unexpected account view shape: {e}") from e

        logger.info("Account: %s // Yocto: %d", balance.account_id, balance.amount)
        return balance
