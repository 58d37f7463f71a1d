"""Top up the Gateway vault balance.

USDC is moved from the wallet into ``GatewayWallet`` with ``approve()`` + ``deposit()``.
The vault balance becomes spendable only after Gateway has seen the deposit as final,
use :py:func:`eth_bridge.gateway.balances.wait_for_vault_balance` after depositing.

Example::

    from eth_bridge.gateway.deposit import prepare_approve_for_deposit, prepare_deposit

    approve_fn = prepare_approve_for_deposit(web3, SupportedChain.base_sepolia, 1_000_000)
    wallet.transact_and_broadcast_with_contract(approve_fn)

    deposit_fn = prepare_deposit(web3, SupportedChain.base_sepolia, 1_000_000)
    wallet.transact_and_broadcast_with_contract(deposit_fn)
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction

from eth_bridge.abi import GATEWAY_WALLET_ABI, get_deployed_contract
from eth_bridge.chain import SupportedChain, create_chain_web3
from eth_bridge.confirmation import wait_transaction_success
from eth_bridge.gateway.constants import GATEWAY_WALLET_ADDRESS
from eth_bridge.gateway.errors import InsufficientWalletBalance
from eth_bridge.hotwallet import HotWallet
from eth_bridge.token import convert_raw_to_usdc, fetch_usdc_balance, get_usdc_contract

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DepositResult:
    """A completed deposit into the Gateway vault."""

    chain: SupportedChain

    #: Raw USDC units deposited
    amount: int

    approve_tx_hash: HexBytes

    deposit_tx_hash: HexBytes


def prepare_approve_for_deposit(
    web3: Web3,
    chain: SupportedChain,
    amount: int,
) -> ContractFunction:
    """Build a USDC ``approve()`` call allowing ``GatewayWallet`` to pull ``amount``.

    :param amount:
        Raw USDC units
    """
    usdc = get_usdc_contract(web3, chain.descriptor.usdc_address)
    return usdc.functions.approve(Web3.to_checksum_address(GATEWAY_WALLET_ADDRESS), amount)


def prepare_deposit(
    web3: Web3,
    chain: SupportedChain,
    amount: int,
) -> ContractFunction:
    """Build a ``GatewayWallet.deposit(token, value)`` call.

    USDC must be approved to ``GatewayWallet`` first.

    :param amount:
        Raw USDC units
    """
    gateway_wallet = get_deployed_contract(web3, GATEWAY_WALLET_ABI, GATEWAY_WALLET_ADDRESS)
    logger.info("Preparing Gateway deposit: chain=%s, amount=%d", chain.key, amount)
    return gateway_wallet.functions.deposit(
        Web3.to_checksum_address(chain.descriptor.usdc_address),
        amount,
    )


def deposit_to_gateway(
    chains: Iterable[SupportedChain],
    amount: int,
    wallet: HotWallet,
    web3_factory: Callable[[SupportedChain], Web3] = create_chain_web3,
    confirmation_timeout: datetime.timedelta = datetime.timedelta(minutes=5),
) -> list[DepositResult]:
    """Deposit the same amount of USDC into the vault on each chain.

    Chains are processed one at a time. The first failure aborts the rest,
    deposits already confirmed stay in the vault.

    :param amount:
        Raw USDC units per chain

    :param web3_factory:
        Creates a web3 connection for a chain

    :return:
        One result per chain, in order

    :raise InsufficientWalletBalance:
        Wallet holds less USDC than ``amount``.
        Checked before sending anything on that chain.

    :raise eth_bridge.confirmation.Reverted:
        Approve or deposit reverted
    """
    assert amount > 0, f"Deposit amount must be positive: {amount}"

    results = []
    for chain in chains:
        web3 = web3_factory(chain)

        balance = fetch_usdc_balance(web3, chain.descriptor.usdc_address, wallet.address)
        if balance < amount:
            raise InsufficientWalletBalance(
                f"Insufficient USDC on {chain.key}: wallet has {convert_raw_to_usdc(balance)}, deposit needs {convert_raw_to_usdc(amount)}",
                chain=chain.key,
                balance=balance,
                required=amount,
            )

        logger.info("Depositing %s USDC to Gateway on %s", convert_raw_to_usdc(amount), chain.key)

        approve_tx_hash = wallet.transact_and_broadcast_with_contract(prepare_approve_for_deposit(web3, chain, amount))
        wait_transaction_success(web3, approve_tx_hash, max_timeout=confirmation_timeout)

        deposit_tx_hash = wallet.transact_and_broadcast_with_contract(prepare_deposit(web3, chain, amount))
        wait_transaction_success(web3, deposit_tx_hash, max_timeout=confirmation_timeout)

        logger.info("Deposit on %s done, tx %s", chain.key, Web3.to_hex(deposit_tx_hash))

        results.append(
            DepositResult(
                chain=chain,
                amount=amount,
                approve_tx_hash=approve_tx_hash,
                deposit_tx_hash=deposit_tx_hash,
            )
        )

    return results
