"""PostgREST relational backend (Supabase)."""

from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from trifetch.backends.base import BackendClient
from trifetch.core.config import Settings
from trifetch.core.errors import AuthError, DecodeError, TransportError
from trifetch.models.types import Employee

logger = logging.getLogger(__name__)

_EMPLOYEES = TypeAdapter(list[Employee])


class RelationalBackend(BackendClient[list[Employee]]):
    """Select-all over one table through the PostgREST HTTP API."""

    name = "supabase"

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client | None = None,
        table: str = "employees",
    ):
        self.base_url = settings.supabase_url
        self.table = table
        self.timeout = settings.fetch_timeout_s
        self._api_key = settings.supabase_key
        self._client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.table}"

    def _fetch(self) -> list[Employee]:
        if self._client is not None:
            return self._select_all(self._client)
        with httpx.Client(timeout=self.timeout) as client:
            return self._select_all(client)

    def _select_all(self, client: httpx.Client) -> list[Employee]:
        try:
            response = client.get(
                self.url,
                params={"select": "*"},
                headers={"apikey": self._api_key, "Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"GET {self.url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(f"{self.table}: credential rejected (HTTP {response.status_code})")
        if not response.is_success:
            raise TransportError(f"GET {self.url} returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(f"{self.table}: response is not JSON") from e

        if not isinstance(payload, list):
            raise DecodeError(f"{self.table}: expected JSON array, got {type(payload).__name__}")

        try:
            employees = _EMPLOYEES.validate_python(payload)
        except ValidationError as e:
            raise DecodeError(f"{self.table}: unexpected record shape: {e}") from e

        for employee in employees:
            logger.info(
                "Employee: %s // Age: %d // Interests: %s // City: %s",
                employee.first_name,
                employee.age,
                employee.interests,
                employee.city,
            )
        return employees
