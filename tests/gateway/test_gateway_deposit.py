"""Vault deposits."""

from unittest.mock import Mock, patch

import pytest
from hexbytes import HexBytes
from web3 import Web3

from eth_bridge.abi import ERC20_ABI
from eth_bridge.chain import SupportedChain
from eth_bridge.confirmation import Reverted
from eth_bridge.gateway.deposit import deposit_to_gateway, prepare_approve_for_deposit, prepare_deposit
from eth_bridge.gateway.errors import InsufficientWalletBalance


def test_prepare_approve_for_deposit():
    approve_fn = prepare_approve_for_deposit(Web3(), SupportedChain.base_sepolia, 1_000_000)
    assert approve_fn.fn_name == "approve"
    assert approve_fn.address == "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
    assert tuple(approve_fn.args) == ("0x0077777d7EBA4688BDeF3E311b846F25870A19B9", 1_000_000)


def test_prepare_deposit():
    deposit_fn = prepare_deposit(Web3(), SupportedChain.base_sepolia, 1_000_000)
    assert deposit_fn.fn_name == "deposit"
    assert deposit_fn.address == "0x0077777d7EBA4688BDeF3E311b846F25870A19B9"
    assert tuple(deposit_fn.args) == ("0x036CbD53842c5426634e7929541eC2318f3dCF7e", 1_000_000)


@patch("eth_bridge.gateway.deposit.wait_transaction_success")
@patch("eth_bridge.gateway.deposit.prepare_deposit")
@patch("eth_bridge.gateway.deposit.prepare_approve_for_deposit")
@patch("eth_bridge.gateway.deposit.fetch_usdc_balance", return_value=5_000_000)
def test_deposit_to_gateway(mock_balance, mock_approve, mock_deposit, mock_wait):
    """Approve, then deposit, each confirmed before moving on."""
    wallet = Mock()
    wallet.address = "0x1234567890123456789012345678901234567890"
    wallet.transact_and_broadcast_with_contract.side_effect = [HexBytes("0x01"), HexBytes("0x02")]
    web3 = Mock()
    web3_factory = Mock(return_value=web3)

    results = deposit_to_gateway([SupportedChain.sepolia], 1_010_000, wallet, web3_factory=web3_factory)

    assert len(results) == 1
    result = results[0]
    assert result.chain == SupportedChain.sepolia
    assert result.amount == 1_010_000
    assert result.approve_tx_hash == HexBytes("0x01")
    assert result.deposit_tx_hash == HexBytes("0x02")

    web3_factory.assert_called_once_with(SupportedChain.sepolia)
    mock_approve.assert_called_once_with(web3, SupportedChain.sepolia, 1_010_000)
    mock_deposit.assert_called_once_with(web3, SupportedChain.sepolia, 1_010_000)
    assert [c.args[1] for c in mock_wait.call_args_list] == [HexBytes("0x01"), HexBytes("0x02")]


@patch("eth_bridge.gateway.deposit.wait_transaction_success")
@patch("eth_bridge.gateway.deposit.fetch_usdc_balance", return_value=500_000)
def test_deposit_to_gateway_insufficient_wallet_balance(mock_balance, mock_wait):
    """Nothing is sent when the wallet cannot cover the deposit."""
    wallet = Mock()
    wallet.address = "0x1234567890123456789012345678901234567890"

    with pytest.raises(InsufficientWalletBalance) as exc_info:
        deposit_to_gateway([SupportedChain.sepolia], 1_010_000, wallet, web3_factory=Mock())

    assert exc_info.value.balance == 500_000
    assert exc_info.value.required == 1_010_000
    wallet.transact_and_broadcast_with_contract.assert_not_called()


@patch("eth_bridge.gateway.deposit.wait_transaction_success")
@patch("eth_bridge.gateway.deposit.fetch_usdc_balance", return_value=500_000)
def test_deposit_to_gateway_short_balance_stops_other_chains(mock_balance, mock_wait):
    """A short wallet on the first chain leaves later chains untouched."""
    wallet = Mock()
    wallet.address = "0x1234567890123456789012345678901234567890"
    web3_factory = Mock()

    with pytest.raises(InsufficientWalletBalance) as exc_info:
        deposit_to_gateway([SupportedChain.sepolia, SupportedChain.base_sepolia], 1_010_000, wallet, web3_factory=web3_factory)

    assert exc_info.value.chain == "sepolia"
    web3_factory.assert_called_once_with(SupportedChain.sepolia)
    mock_balance.assert_called_once()
    wallet.transact_and_broadcast_with_contract.assert_not_called()


@patch("eth_bridge.gateway.deposit.wait_transaction_success")
@patch("eth_bridge.gateway.deposit.prepare_deposit")
@patch("eth_bridge.gateway.deposit.prepare_approve_for_deposit")
@patch("eth_bridge.gateway.deposit.fetch_usdc_balance", return_value=5_000_000)
def test_deposit_to_gateway_reverted_approve_stops_other_chains(mock_balance, mock_approve, mock_deposit, mock_wait):
    """A reverted approve aborts before the deposit and before the next chain."""
    wallet = Mock()
    wallet.address = "0x1234567890123456789012345678901234567890"
    wallet.transact_and_broadcast_with_contract.return_value = HexBytes("0x01")
    mock_wait.side_effect = Reverted("Transaction reverted: 0x01")
    web3_factory = Mock()

    with pytest.raises(Reverted):
        deposit_to_gateway([SupportedChain.sepolia, SupportedChain.base_sepolia], 1_010_000, wallet, web3_factory=web3_factory)

    web3_factory.assert_called_once_with(SupportedChain.sepolia)
    mock_deposit.assert_not_called()
    mock_approve.assert_called_once()
    assert mock_approve.call_args.args[1] == SupportedChain.sepolia
    wallet.transact_and_broadcast_with_contract.assert_called_once_with(mock_approve.return_value)


def test_erc20_abi_only_has_called_functions():
    assert [f["name"] for f in ERC20_ABI] == ["balanceOf", "approve"]
