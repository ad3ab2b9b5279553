"""Exchange rate API client."""

import logging

import httpx

from ..exceptions import ExchangeRateAPIError

logger = logging.getLogger(__name__)


class ExchangeRateClient:
    """Client for an open.er-api.com compatible exchange rate API."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        """Initialize the exchange rate client."""
        self.base_url = base_url
        self.client = httpx.Client(base_url=base_url, timeout=timeout)

    def close(self):
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def get_rates(self, base_currency: str) -> dict[str, float]:
        """
        Get the latest rates relative to a base currency.

        Args:
            base_currency: ISO code the rates are quoted against

        Returns:
            Mapping of ISO code to units of that currency per base unit
        """
        try:
            response = self.client.get(f"/{base_currency}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ExchangeRateAPIError(
                f"Unable to get exchange rates for {base_currency}: {e}"
            ) from e

        if data.get("result") == "error" or "rates" not in data:
            raise ExchangeRateAPIError(
                f"Exchange rate API returned no rates for {base_currency}: "
                f"{data.get('error-type', 'unknown error')}"
            )

        rates: dict[str, float] = data["rates"]
        return rates

    def get_rate(self, currency: str, base_currency: str) -> float:
        """
        Get the value of one unit of `currency` expressed in `base_currency`.

        Args:
            currency: Currency the transaction was recorded in
            base_currency: Currency balances are computed in

        Returns:
            Multiplier converting `currency` amounts to `base_currency`
        """
        if currency == base_currency:
            return 1.0

        rates = self.get_rates(base_currency)
        quoted = rates.get(currency)
        if not quoted:
            raise ExchangeRateAPIError(
                f"No exchange rate for {currency} against {base_currency}"
            )

        rate = 1 / float(quoted)
        logger.info(f"Exchange rate {currency} -> {base_currency}: {rate}")
        return rate
