"""Gateway transfer configuration."""

import datetime
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable

from eth_bridge.gateway.constants import DEFAULT_FEE_BUFFER, DEFAULT_MAX_FEE, GATEWAY_API_TESTNET_URL


@dataclass(slots=True, frozen=True)
class GatewayConfig:
    """Tunables of a Gateway transfer.

    Use :py:meth:`from_env` to read overrides from environment variables.
    """

    #: Gateway API base URL, without the ``/v1`` path
    api_base_url: str = GATEWAY_API_TESTNET_URL

    #: Extra USDC required in the vault on the top of the transfer amount.
    #:
    #: A heuristic cushion for the Gateway fee, not the fee itself.
    #: The fee ceiling is :py:attr:`max_fee`.
    fee_buffer: Decimal = DEFAULT_FEE_BUFFER

    #: Maximum fee the operator may deduct, raw USDC units
    max_fee: int = DEFAULT_MAX_FEE

    #: How often to poll the vault balance after a deposit
    poll_interval: datetime.timedelta = datetime.timedelta(seconds=30)

    #: How long to wait for Gateway to credit a deposit
    balance_timeout: datetime.timedelta = datetime.timedelta(minutes=25)

    #: HTTP request timeout for the Gateway API
    api_timeout: datetime.timedelta = datetime.timedelta(seconds=30)

    #: How long to wait for approve, deposit and mint transactions to confirm
    confirmation_timeout: datetime.timedelta = datetime.timedelta(minutes=5)

    #: Log vault and wallet balances before and after the transfer
    report_balances: bool = False

    def __post_init__(self):
        assert self.fee_buffer >= 0, f"Negative fee buffer: {self.fee_buffer}"
        assert self.max_fee >= 0, f"Negative max fee: {self.max_fee}"

    def get_api_url(self, path: str) -> str:
        """Full URL for an API path like ``/v1/balances``."""
        return f"{self.api_base_url.rstrip('/')}{path}"

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "GatewayConfig":
        """Read configuration from environment variables.

        - ``GATEWAY_API_URL``
        - ``GATEWAY_FEE_BUFFER`` (USDC, decimal)
        - ``GATEWAY_MAX_FEE`` (raw USDC units)
        - ``GATEWAY_POLL_INTERVAL_SECONDS``
        - ``GATEWAY_BALANCE_TIMEOUT_SECONDS``
        - ``GATEWAY_REPORT_BALANCES`` (``true`` / ``false``)

        Unset variables keep their defaults.

        :raise ValueError:
            A variable is set but cannot be parsed
        """
        if environ is None:
            environ = os.environ

        kwargs = {}

        if environ.get("GATEWAY_API_URL"):
            kwargs["api_base_url"] = environ["GATEWAY_API_URL"]

        if environ.get("GATEWAY_FEE_BUFFER"):
            kwargs["fee_buffer"] = _parse_env(environ, "GATEWAY_FEE_BUFFER", Decimal)

        if environ.get("GATEWAY_MAX_FEE"):
            kwargs["max_fee"] = _parse_env(environ, "GATEWAY_MAX_FEE", int)

        if environ.get("GATEWAY_POLL_INTERVAL_SECONDS"):
            kwargs["poll_interval"] = datetime.timedelta(seconds=_parse_env(environ, "GATEWAY_POLL_INTERVAL_SECONDS", float))

        if environ.get("GATEWAY_BALANCE_TIMEOUT_SECONDS"):
            kwargs["balance_timeout"] = datetime.timedelta(seconds=_parse_env(environ, "GATEWAY_BALANCE_TIMEOUT_SECONDS", float))

        if environ.get("GATEWAY_REPORT_BALANCES"):
            kwargs["report_balances"] = environ["GATEWAY_REPORT_BALANCES"].strip().lower() in ("1", "true", "yes")

        return cls(**kwargs)


def _parse_env(environ: dict, name: str, parse: Callable[[str], Any]) -> Any:
    raw = environ[name]
    try:
        return parse(raw.strip())
    except (ValueError, ArithmeticError) as e:
        raise ValueError(f"Bad value for {name}: {raw!r}") from e
