"""Tests for the exchange rate API client."""

from unittest.mock import MagicMock

import httpx
import pytest

from ledger_split.clients.exchange_rates import ExchangeRateClient
from ledger_split.exceptions import ExchangeRateAPIError, ExternalDependencyError


@pytest.fixture
def client():
    """Create a client whose HTTP transport is mocked out."""
    rate_client = ExchangeRateClient("https://rates.test/v6/latest")
    rate_client.client.close()
    rate_client.client = MagicMock()
    return rate_client


def mock_response(client, payload):
    """Make the mocked HTTP client return a JSON payload."""
    response = MagicMock()
    response.json.return_value = payload
    client.client.get.return_value = response
    return response


class TestGetRates:
    """Tests for get_rates."""

    def test_returns_rates(self, client):
        """Rates are read from a successful response."""
        mock_response(client, {"result": "success", "rates": {"CAD": 1, "USD": 0.8}})

        rates = client.get_rates("CAD")

        assert rates == {"CAD": 1, "USD": 0.8}
        client.client.get.assert_called_once_with("/CAD")

    def test_api_error_payload(self, client):
        """An error result from the API is raised."""
        mock_response(client, {"result": "error", "error-type": "unsupported-code"})

        with pytest.raises(ExchangeRateAPIError, match="unsupported-code"):
            client.get_rates("XXX")

    def test_http_error(self, client):
        """Transport failures become ExchangeRateAPIError."""
        client.client.get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(ExchangeRateAPIError, match="connection refused"):
            client.get_rates("CAD")

    def test_bad_status(self, client):
        """HTTP error statuses become ExchangeRateAPIError."""
        response = mock_response(client, {})
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "503 Service Unavailable", request=MagicMock(), response=MagicMock()
        )

        with pytest.raises(ExchangeRateAPIError):
            client.get_rates("CAD")

    def test_invalid_json(self, client):
        """Unparseable bodies become ExchangeRateAPIError."""
        response = mock_response(client, None)
        response.json.side_effect = ValueError("Expecting value")

        with pytest.raises(ExchangeRateAPIError):
            client.get_rates("CAD")


class TestGetRate:
    """Tests for get_rate."""

    def test_same_currency(self, client):
        """No request is made when nothing needs converting."""
        assert client.get_rate("CAD", "CAD") == 1.0
        client.client.get.assert_not_called()

    def test_inverts_quoted_rate(self, client):
        """One unit of the currency is worth 1 / quoted base units."""
        mock_response(client, {"result": "success", "rates": {"USD": 0.8}})

        assert client.get_rate("USD", "CAD") == pytest.approx(1.25)

    def test_missing_currency(self, client):
        """A currency absent from the rates is an error."""
        mock_response(client, {"result": "success", "rates": {"USD": 0.8}})

        with pytest.raises(ExchangeRateAPIError, match="No exchange rate for PLN"):
            client.get_rate("PLN", "CAD")

    def test_is_external_dependency_error(self, client):
        """Rate failures are classified as external dependency failures."""
        client.client.get.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(ExternalDependencyError):
            client.get_rate("USD", "CAD")


class TestContextManager:
    """Tests for context manager use."""

    def test_closes_http_client(self, client):
        """Leaving the block closes the HTTP client."""
        with client as entered:
            assert entered is client

        client.client.close.assert_called_once()
