"""Transaction confirmation and broadcast failure classification."""

import datetime
import logging

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted
from web3.types import TxReceipt

logger = logging.getLogger(__name__)


class ConfirmationTimedOut(Exception):
    """We exceeded the transaction confirmation timeout."""


class Reverted(Exception):
    """Transaction reverted on-chain."""

    def __init__(self, message: str, receipt: TxReceipt | None = None):
        super().__init__(message)
        self.receipt = receipt


def is_out_of_gas(eth_rpc_error_message: str) -> bool:
    """Node refused the transaction because the sender cannot pay for gas.

    Geth and most other nodes say ``insufficient funds for gas * price + value``,
    both in ``eth_estimateGas`` and ``eth_sendRawTransaction``.
    """
    return "insufficient funds" in eth_rpc_error_message.lower()


def wait_transaction_success(
    web3: Web3,
    tx_hash: HexBytes,
    max_timeout=datetime.timedelta(minutes=5),
    poll_delay=datetime.timedelta(seconds=1),
) -> TxReceipt:
    """Wait for a transaction to be mined and check it did not revert.

    :param max_timeout:
        How long we wait for the receipt

    :raise ConfirmationTimedOut:
        Transaction was not mined in time

    :raise Reverted:
        Transaction was mined, but reverted

    :return:
        Transaction receipt
    """
    try:
        receipt = web3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=max_timeout.total_seconds(),
            poll_latency=poll_delay.total_seconds(),
        )
    except TimeExhausted as e:
        raise ConfirmationTimedOut(f"Transaction {Web3.to_hex(tx_hash)} not confirmed in {max_timeout}") from e

    if receipt["status"] == 0:
        raise Reverted(f"Transaction reverted: {Web3.to_hex(tx_hash)}", receipt=receipt)

    logger.info("Transaction %s confirmed in block %s", Web3.to_hex(tx_hash), receipt["blockNumber"])
    return receipt
