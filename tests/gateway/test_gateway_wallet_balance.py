"""Wallet balance reports."""

from decimal import Decimal
from unittest.mock import Mock, patch

from eth_bridge.chain import SupportedChain
from eth_bridge.gateway.wallet_balance import fetch_wallet_balance, log_wallet_balances

ADDRESS = "0x1234567890123456789012345678901234567890"


def make_web3(native_raw: int) -> Mock:
    web3 = Mock()
    web3.eth.get_balance.return_value = native_raw
    return web3


@patch("eth_bridge.gateway.wallet_balance.fetch_usdc_balance", return_value=2_500_000)
def test_fetch_wallet_balance_evm(mock_usdc):
    balance = fetch_wallet_balance(SupportedChain.avalanche_fuji, ADDRESS, make_web3(10**17))
    assert balance.native_symbol == "AVAX"
    assert balance.native_balance == Decimal("0.1")
    assert balance.usdc_balance == Decimal("2.5")
    assert not balance.is_arc
    assert str(balance) == "Avalanche Fuji: 0.1 AVAX, 2.5 USDC"


@patch("eth_bridge.gateway.wallet_balance.fetch_usdc_balance", return_value=1_000_000)
def test_fetch_wallet_balance_arc(mock_usdc):
    """On Arc USDC is the gas token, so native balance is not shown separately."""
    web3 = make_web3(10**18)
    balance = fetch_wallet_balance(SupportedChain.arc_testnet, ADDRESS, web3)
    assert balance.is_arc
    assert balance.native_balance is None
    assert balance.usdc_balance == Decimal("1")
    assert str(balance) == "Arc Testnet: 1 USDC"
    web3.eth.get_balance.assert_not_called()


@patch("eth_bridge.gateway.wallet_balance.fetch_usdc_balance", return_value=0)
def test_log_wallet_balances(mock_usdc):
    web3_factory = Mock(side_effect=lambda chain: make_web3(0))
    balances = log_wallet_balances(SupportedChain.sepolia, SupportedChain.arc_testnet, ADDRESS, web3_factory=web3_factory)
    assert [b.chain for b in balances] == [SupportedChain.sepolia, SupportedChain.arc_testnet]
    assert web3_factory.call_count == 2
