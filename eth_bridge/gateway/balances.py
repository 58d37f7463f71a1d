"""Gateway vault balances.

Deposited USDC is held by ``GatewayWallet`` and accounted per depositor and domain.
Gateway credits a deposit only after the deposit transaction is final
on the source chain, which may take several minutes.

Example:

.. code-block:: python

    entries = fetch_vault_balances(get_evm_chains(), wallet.address)
    print(format_vault_balances(entries))
"""

import datetime
import logging
import threading
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable

import requests
from eth_typing import HexAddress

from eth_bridge.chain import SupportedChain, get_chain_by_domain
from eth_bridge.gateway.config import GatewayConfig
from eth_bridge.gateway.constants import GATEWAY_TOKEN
from eth_bridge.gateway.errors import BalanceWaitTimeout, GatewayAPIError
from eth_bridge.gateway.session import create_gateway_session, post_gateway_api
from eth_bridge.polling import LoggingPollObserver, PollObserver, PollTimeout, poll_until

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class VaultBalanceEntry:
    """Vault balance of a depositor on one domain."""

    #: Chain key, or ``Domain N`` for domains we do not know
    chain: str

    domain: int

    #: Human USDC
    balance: Decimal


def fetch_vault_balances(
    chains: Iterable[SupportedChain],
    depositor: HexAddress | str,
    session: requests.Session | None = None,
    config: GatewayConfig | None = None,
) -> list[VaultBalanceEntry]:
    """Read vault balances of a depositor on several chains with one API call.

    :param chains:
        Chains to query

    :param depositor:
        Depositor address

    :return:
        One entry per domain in the API response

    :raise GatewayAPIError:
        API error or unexpected response
    """
    if session is None:
        session = create_gateway_session()

    if config is None:
        config = GatewayConfig()

    payload = {
        "token": GATEWAY_TOKEN,
        "sources": [{"domain": c.descriptor.domain, "depositor": depositor} for c in chains],
    }

    url = config.get_api_url("/v1/balances")
    response = post_gateway_api(session, url, payload, timeout=config.api_timeout.total_seconds())

    try:
        data = response.json()
        raw_balances = data["balances"]
    except (ValueError, KeyError, TypeError) as e:
        raise GatewayAPIError(f"Unexpected /v1/balances response: {response.text}", status_code=response.status_code, body=response.text) from e

    entries = []
    for item in raw_balances:
        try:
            domain = int(item["domain"])
            balance = Decimal(str(item["balance"]))
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise GatewayAPIError(f"Bad balance entry: {item}", status_code=response.status_code, body=response.text) from e

        chain = get_chain_by_domain(domain)
        label = chain.key if chain else f"Domain {domain}"
        entries.append(VaultBalanceEntry(chain=label, domain=domain, balance=balance))

    return entries


def fetch_vault_balance(
    chain: SupportedChain,
    depositor: HexAddress | str,
    session: requests.Session | None = None,
    config: GatewayConfig | None = None,
) -> Decimal:
    """Read the vault balance of a depositor on a single chain.

    :return:
        Human USDC. Zero if Gateway does not report the domain.
    """
    entries = fetch_vault_balances([chain], depositor, session=session, config=config)
    domain = chain.descriptor.domain
    for entry in entries:
        if entry.domain == domain:
            return entry.balance
    return Decimal(0)


def wait_for_vault_balance(
    chain: SupportedChain,
    depositor: HexAddress | str,
    threshold: Decimal,
    poll_interval: datetime.timedelta = datetime.timedelta(seconds=30),
    timeout: datetime.timedelta = datetime.timedelta(minutes=25),
    observer: PollObserver | None = None,
    cancel_event: threading.Event | None = None,
    session: requests.Session | None = None,
    config: GatewayConfig | None = None,
    sleep: Callable[[float], None] | None = None,
    clock: Callable[[], float] | None = None,
) -> Decimal:
    """Wait until Gateway has credited a deposit.

    Polls the vault balance until it is at least ``threshold``.
    API errors during polling are not retried here, they propagate.

    :param threshold:
        Minimum human USDC balance

    :param observer:
        Progress reporting. Defaults to logging.

    :param cancel_event:
        Set to abort the wait, see :py:func:`eth_bridge.polling.poll_until`

    :return:
        The first balance at or above the threshold

    :raise BalanceWaitTimeout:
        Balance did not reach the threshold in time
    """
    if session is None:
        session = create_gateway_session()

    if observer is None:
        observer = LoggingPollObserver(f"Vault balance on {chain.key}, waiting for {threshold} USDC", logger)

    kwargs = {}
    if sleep is not None:
        kwargs["sleep"] = sleep
    if clock is not None:
        kwargs["clock"] = clock

    logger.info("Waiting for vault balance on %s to reach %s USDC, timeout %s", chain.key, threshold, timeout)

    try:
        return poll_until(
            fetch=lambda: fetch_vault_balance(chain, depositor, session=session, config=config),
            predicate=lambda balance: balance >= threshold,
            interval=poll_interval,
            timeout=timeout,
            observer=observer,
            cancel_event=cancel_event,
            **kwargs,
        )
    except PollTimeout as e:
        raise BalanceWaitTimeout(
            f"Vault balance on {chain.key} did not reach {threshold} USDC in {timeout}, last balance {e.last_value}",
            chain=chain.key,
            last_balance=e.last_value,
            threshold=threshold,
        ) from e


def format_vault_balances(entries: list[VaultBalanceEntry]) -> str:
    """Human readable balance table with a total line."""
    if not entries:
        return "No Gateway balances"

    width = max(len(e.chain) for e in entries)
    width = max(width, len("Total"))
    lines = [f"{e.chain:<{width}}  {e.balance:>14.6f} USDC" for e in entries]
    total = sum((e.balance for e in entries), Decimal(0))
    lines.append(f"{'Total':<{width}}  {total:>14.6f} USDC")
    return "\n".join(lines)
