"""Tests for the PostgREST relational backend."""

import httpx

from trifetch.backends.relational import RelationalBackend
from trifetch.core.config import Settings
from trifetch.models.types import Employee

EMPLOYEES = [
    {"id": 1, "first_name": "Ana", "age": 34, "interests": "chess", "city": "Lisbon"},
    {"id": 2, "first_name": "Bo", "age": 28, "interests": "climbing", "city": "Oslo"},
    {"id": 3, "first_name": "Cy", "age": 45, "interests": "jazz", "city": "Austin"},
]


def rest_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def respond(status_code=200, **kwargs):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)

    return handler


class TestRequest:
    """Test the select-all request."""

    def test_get_with_select_and_apikey(self, settings: Settings):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        RelationalBackend(settings, client=rest_client(handler)).fetch()

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/employees"
        assert request.url.params["select"] == "*"
        assert request.headers["apikey"] == "test-key"

    def test_table_is_configurable(self, settings: Settings):
        backend = RelationalBackend(settings, table="contractors")
        assert backend.url == "https://example.supabase.co/rest/v1/contractors"


class TestDecoding:
    """Test decoding of the JSON array response."""

    def test_returns_records_in_response_order(self, settings: Settings):
        """N well-formed records -> N Employees, same order."""
        client = rest_client(respond(json=EMPLOYEES))
        result = RelationalBackend(settings, client=client).fetch()

        employees = result.unwrap()
        assert len(employees) == len(EMPLOYEES)
        assert all(isinstance(e, Employee) for e in employees)
        assert [e.id for e in employees] == [1, 2, 3]
        assert employees[1].city == "Oslo"

    def test_empty_table(self, settings: Settings):
        result = RelationalBackend(settings, client=rest_client(respond(json=[]))).fetch()
        assert result.ok
        assert result.unwrap() == []

    def test_object_instead_of_array(self, settings: Settings):
        client = rest_client(respond(json={"message": "not a list"}))
        result = RelationalBackend(settings, client=client).fetch()
        assert result.error.code == "DecodeError"

    def test_record_missing_field(self, settings: Settings):
        broken = [dict(EMPLOYEES[0]), {"id": 9, "first_name": "Dee"}]
        result = RelationalBackend(settings, client=rest_client(respond(json=broken))).fetch()
        assert result.error.code == "DecodeError"

    def test_non_json_body(self, settings: Settings):
        client = rest_client(respond(text="not json"))
        result = RelationalBackend(settings, client=client).fetch()
        assert result.error.code == "DecodeError"


class TestErrors:
    """Test auth and transport failures."""

    def test_bad_credential(self, settings: Settings):
        client = rest_client(respond(401, json={"message": "Invalid API key"}))
        result = RelationalBackend(settings, client=client).fetch()
        assert result.error.code == "AuthError"

    def test_forbidden(self, settings: Settings):
        client = rest_client(respond(403, json={"message": "permission denied"}))
        result = RelationalBackend(settings, client=client).fetch()
        assert result.error.code == "AuthError"

    def test_server_error(self, settings: Settings):
        client = rest_client(respond(500, json={"message": "boom"}))
        result = RelationalBackend(settings, client=client).fetch()
        assert result.error.code == "TransportError"

    def test_connection_error(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        result = RelationalBackend(settings, client=rest_client(handler)).fetch()
        assert result.error.code == "TransportError"

    def test_api_key_not_in_error_detail(self, settings: Settings):
        client = rest_client(respond(401, json={}))
        result = RelationalBackend(settings, client=client).fetch()
        assert "test-key" not in result.error.detail
