"""Wallet balances for transfer reports.

Shows the gas token and USDC held by the wallet itself, as opposed to the vault balance.
On Arc, USDC is the gas token, so only USDC is shown.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

from eth_typing import HexAddress
from web3 import Web3

from eth_bridge.chain import SupportedChain, create_chain_web3
from eth_bridge.token import convert_raw_to_usdc, fetch_usdc_balance

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class WalletBalance:
    """Balances of an address on one chain."""

    chain: SupportedChain

    native_symbol: str

    #: ``None`` on Arc
    native_balance: Decimal | None

    usdc_balance: Decimal

    @property
    def is_arc(self) -> bool:
        return self.chain.is_arc

    def __str__(self):
        if self.native_balance is None:
            return f"{self.chain.descriptor.name}: {self.usdc_balance} USDC"
        return f"{self.chain.descriptor.name}: {self.native_balance} {self.native_symbol}, {self.usdc_balance} USDC"


def fetch_wallet_balance(chain: SupportedChain, address: HexAddress | str, web3: Web3) -> WalletBalance:
    """Read native and USDC balance of an address."""
    descriptor = chain.descriptor
    usdc_balance = convert_raw_to_usdc(fetch_usdc_balance(web3, descriptor.usdc_address, address))

    if chain.is_arc:
        native_balance = None
    else:
        raw = web3.eth.get_balance(Web3.to_checksum_address(address))
        native_balance = Decimal(raw) / Decimal(10**descriptor.native_currency.decimals)

    return WalletBalance(
        chain=chain,
        native_symbol=descriptor.native_currency.symbol,
        native_balance=native_balance,
        usdc_balance=usdc_balance,
    )


def log_wallet_balances(
    source: SupportedChain,
    destination: SupportedChain,
    address: HexAddress | str,
    title: str = "Wallet balances",
    web3_factory: Callable[[SupportedChain], Web3] = create_chain_web3,
) -> list[WalletBalance]:
    """Read wallet balances on both ends of a transfer concurrently and log them.

    :return:
        Source and destination balances, in this order
    """
    chains = [source, destination]
    with ThreadPoolExecutor(max_workers=len(chains)) as executor:
        balances = list(executor.map(lambda c: fetch_wallet_balance(c, address, web3_factory(c)), chains))

    logger.info("%s for %s:\n%s", title, address, "\n".join(f"  {b}" for b in balances))
    return balances
