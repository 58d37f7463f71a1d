"""Transaction confirmation."""

import datetime
from unittest.mock import Mock

import pytest
from hexbytes import HexBytes
from web3.exceptions import TimeExhausted

from eth_bridge.confirmation import ConfirmationTimedOut, Reverted, is_out_of_gas, wait_transaction_success

TX_HASH = HexBytes("0x" + "11" * 32)


def test_wait_transaction_success():
    web3 = Mock()
    web3.eth.wait_for_transaction_receipt.return_value = {"status": 1, "blockNumber": 100}
    receipt = wait_transaction_success(web3, TX_HASH, max_timeout=datetime.timedelta(seconds=10))
    assert receipt["blockNumber"] == 100
    assert web3.eth.wait_for_transaction_receipt.call_args.kwargs["timeout"] == 10


def test_wait_transaction_reverted():
    web3 = Mock()
    web3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 100}
    with pytest.raises(Reverted) as exc_info:
        wait_transaction_success(web3, TX_HASH)
    assert exc_info.value.receipt["status"] == 0


def test_wait_transaction_timeout():
    web3 = Mock()
    web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("Not mined")
    with pytest.raises(ConfirmationTimedOut):
        wait_transaction_success(web3, TX_HASH)


@pytest.mark.parametrize(
    "message, expected",
    [
        ("insufficient funds for gas * price + value", True),
        ("{'code': -32000, 'message': 'Insufficient funds for transfer'}", True),
        ("execution reverted", False),
    ],
)
def test_is_out_of_gas(message, expected):
    assert is_out_of_gas(message) == expected
