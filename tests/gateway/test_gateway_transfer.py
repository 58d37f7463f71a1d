"""Transfer orchestration.

All network boundaries are patched in :py:mod:`eth_bridge.gateway.transfer`,
burn intents are built and signed for real.
"""

from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from hexbytes import HexBytes

from eth_bridge.chain import SupportedChain
from eth_bridge.gateway.config import GatewayConfig
from eth_bridge.gateway.deposit import DepositResult
from eth_bridge.gateway.errors import (
    BalanceWaitTimeout,
    DepositFailed,
    GatewayAPIError,
    InsufficientGasForMint,
    InsufficientWalletBalance,
    TransferValidationError,
)
from eth_bridge.gateway.intent import sign_burn_intent
from eth_bridge.gateway.transfer import GatewayTransfer, TransferDirection, TransferRequest, transfer

MINT_TX_HASH = HexBytes("0x" + "ab" * 32)


@pytest.fixture()
def flow(attestation):
    """Patch every network boundary of the orchestrator.

    ``flow.mock_calls`` records the order of the steps.
    """
    manager = Mock()
    with (
        patch("eth_bridge.gateway.transfer.fetch_vault_balance", return_value=Decimal("10")) as fetch_balance,
        patch("eth_bridge.gateway.transfer.deposit_to_gateway") as deposit,
        patch("eth_bridge.gateway.transfer.wait_for_vault_balance", return_value=Decimal("1.01")) as wait,
        patch("eth_bridge.gateway.transfer.sign_burn_intent", wraps=sign_burn_intent) as sign,
        patch("eth_bridge.gateway.transfer.request_attestation", return_value=attestation) as attest,
        patch("eth_bridge.gateway.transfer.execute_gateway_mint", return_value=MINT_TX_HASH) as mint,
    ):
        manager.attach_mock(fetch_balance, "fetch_balance")
        manager.attach_mock(deposit, "deposit")
        manager.attach_mock(wait, "wait")
        manager.attach_mock(sign, "sign")
        manager.attach_mock(attest, "attest")
        manager.attach_mock(mint, "mint")
        yield manager


def call_order(manager: Mock) -> list[str]:
    return [c[0] for c in manager.mock_calls]


@pytest.fixture()
def gateway_transfer(wallet, session) -> GatewayTransfer:
    return GatewayTransfer(wallet, session=session, web3_factory=Mock())


def test_transfer_request_evm_to_arc():
    request = TransferRequest.create(True, "baseSepolia", "1")
    assert request.direction == TransferDirection.evm_to_arc
    assert request.source == SupportedChain.base_sepolia
    assert request.destination == SupportedChain.arc_testnet
    assert request.amount == Decimal("1")
    assert request.value == 1_000_000
    assert request.evm_chain == SupportedChain.base_sepolia


def test_transfer_request_arc_to_evm():
    request = TransferRequest.create(False, SupportedChain.sepolia, Decimal("0.5"))
    assert request.direction == TransferDirection.arc_to_evm
    assert request.source == SupportedChain.arc_testnet
    assert request.destination == SupportedChain.sepolia
    assert request.value == 500_000
    assert request.evm_chain == SupportedChain.sepolia


def test_transfer_request_float_amount():
    """Floats do not leak binary representation errors."""
    assert TransferRequest.create(True, "sepolia", 0.1).value == 100_000
    assert TransferRequest.create(True, "sepolia", "1.0000005").value == 1_000_001


@pytest.mark.parametrize("is_evm_to_arc", [True, False])
def test_transfer_request_rejects_arc(is_evm_to_arc):
    """Arc is always the other end, it cannot be the chain to transfer."""
    with pytest.raises(TransferValidationError):
        TransferRequest.create(is_evm_to_arc, "arcTestnet", "1")


def test_transfer_request_unknown_chain():
    with pytest.raises(TransferValidationError, match="Valid chains") as exc_info:
        TransferRequest.create(True, "mainnet", "1")
    assert isinstance(exc_info.value, ValueError)


@pytest.mark.parametrize("amount", ["0", "-1", "abc", "NaN", "Infinity", "0.0000001", "1e30", None, True])
def test_transfer_request_bad_amount(amount):
    with pytest.raises(TransferValidationError):
        TransferRequest.create(True, "sepolia", amount)


def test_transfer_request_bad_direction():
    with pytest.raises(TransferValidationError):
        TransferRequest.create("yes", "sepolia", "1")


def test_transfer_sufficient_balance(flow, gateway_transfer, wallet, attestation):
    """No deposit, then exactly one signature, one attestation request and one mint, in order."""
    request = TransferRequest.create(True, "baseSepolia", "1")

    result = gateway_transfer.run(request)

    assert call_order(flow) == ["fetch_balance", "sign", "attest", "mint"]
    assert result.mint_tx_hash == MINT_TX_HASH
    assert result.attestation is attestation
    assert result.deposits == []

    intent = result.signed_intent.intent
    assert intent.spec.value == 1_000_000
    assert intent.spec.source_domain == 6
    assert intent.spec.destination_domain == 26

    # Intent passed to the API is the one we signed
    assert flow.attest.call_args.args[0] == [result.signed_intent]

    mint_args = flow.mint.call_args
    assert mint_args.args[1] is wallet
    assert mint_args.args[2] is attestation
    assert mint_args.kwargs["chain"] == "arcTestnet"


def test_transfer_insufficient_balance_deposits_first(flow, gateway_transfer, wallet):
    """Deposit the amount plus fee buffer and wait before signing."""
    flow.fetch_balance.return_value = Decimal("0.5")
    flow.deposit.return_value = [DepositResult(SupportedChain.base_sepolia, 1_010_000, HexBytes("0x01"), HexBytes("0x02"))]

    result = gateway_transfer.run(TransferRequest.create(True, "baseSepolia", "1"))

    assert call_order(flow) == ["fetch_balance", "deposit", "wait", "sign", "attest", "mint"]

    deposit_args = flow.deposit.call_args
    assert deposit_args.args[0] == [SupportedChain.base_sepolia]
    assert deposit_args.args[1] == 1_010_000
    assert deposit_args.args[2] is wallet

    wait_args = flow.wait.call_args
    assert wait_args.args[0] == SupportedChain.base_sepolia
    assert wait_args.args[2] == Decimal("1.01")

    assert len(result.deposits) == 1


def test_transfer_fee_buffer_configurable(flow, wallet, session):
    flow.fetch_balance.return_value = Decimal("1.01")
    config = GatewayConfig(fee_buffer=Decimal("0.5"))
    GatewayTransfer(wallet, config=config, session=session, web3_factory=Mock()).run(TransferRequest.create(True, "sepolia", "1"))
    assert flow.deposit.call_args.args[1] == 1_500_000


@pytest.mark.parametrize(
    "failure",
    [
        InsufficientWalletBalance("Not enough USDC", chain="baseSepolia", balance=0, required=1_010_000),
        BalanceWaitTimeout("Not credited", chain="baseSepolia", last_balance=Decimal("0.5"), threshold=Decimal("1.01")),
    ],
)
def test_transfer_deposit_failure(flow, gateway_transfer, failure):
    """Deposit failures abort before anything is signed."""
    flow.fetch_balance.return_value = Decimal(0)
    if isinstance(failure, BalanceWaitTimeout):
        flow.wait.side_effect = failure
    else:
        flow.deposit.side_effect = failure

    with pytest.raises(DepositFailed) as exc_info:
        gateway_transfer.run(TransferRequest.create(True, "baseSepolia", "1"))

    assert exc_info.value.__cause__ is failure
    flow.sign.assert_not_called()
    flow.attest.assert_not_called()
    flow.mint.assert_not_called()


def test_transfer_attestation_failure(flow, gateway_transfer):
    """Rejected attestation means no mint."""
    flow.attest.side_effect = GatewayAPIError("Gateway API error: 400 Bad Request", status_code=400, body="Bad Request")

    with pytest.raises(GatewayAPIError, match="400"):
        gateway_transfer.run(TransferRequest.create(False, "sepolia", "1"))

    flow.mint.assert_not_called()


def test_transfer_mint_out_of_gas_then_complete(flow, gateway_transfer, attestation):
    """After a gas failure the attestation can be reused to retry the mint alone."""
    flow.mint.side_effect = InsufficientGasForMint("No gas", attestation=attestation, chain="sepolia")

    with pytest.raises(InsufficientGasForMint) as exc_info:
        gateway_transfer.run(TransferRequest.create(False, "sepolia", "1"))

    flow.mint.side_effect = None
    tx_hash = gateway_transfer.complete_mint(SupportedChain.sepolia, exc_info.value.attestation)

    assert tx_hash == MINT_TX_HASH
    assert flow.attest.call_count == 1
    assert flow.mint.call_count == 2


def test_transfer_reuses_web3_connection(flow, wallet, session):
    web3_factory = Mock()
    gateway_transfer = GatewayTransfer(wallet, session=session, web3_factory=web3_factory)
    gateway_transfer.run(TransferRequest.create(True, "sepolia", "1"))
    gateway_transfer.complete_mint(SupportedChain.arc_testnet, flow.attest.return_value)
    web3_factory.assert_called_once_with(SupportedChain.arc_testnet)


def test_transfer_entry_point_validates_before_reading_key(monkeypatch):
    """Bad input fails even without a private key configured."""
    monkeypatch.delenv("EVM_PRIVATE_KEY", raising=False)
    with pytest.raises(TransferValidationError):
        transfer(True, "arcTestnet", 1)


def test_transfer_entry_point(flow, monkeypatch, wallet):
    monkeypatch.setenv("EVM_PRIVATE_KEY", wallet.account.key.hex())
    with patch("eth_bridge.gateway.transfer.create_gateway_session"):
        result = transfer(True, "avalancheFuji", "2.5", config=GatewayConfig())
    assert result.request.source == SupportedChain.avalanche_fuji
    assert result.signed_intent.intent.spec.source_depositor[12:] == bytes.fromhex(wallet.address[2:])


def test_transfer_report_balances(flow, wallet, session):
    """Balances are reported before and after when enabled."""
    config = GatewayConfig(report_balances=True)
    gateway_transfer = GatewayTransfer(wallet, config=config, session=session, web3_factory=Mock())
    with (
        patch("eth_bridge.gateway.transfer.fetch_vault_balances", return_value=[]) as vault_balances,
        patch("eth_bridge.gateway.transfer.log_wallet_balances") as wallet_balances,
    ):
        gateway_transfer.run(TransferRequest.create(True, "sepolia", "1"))

    assert vault_balances.call_count == 2
    assert [c.kwargs["title"] for c in wallet_balances.call_args_list] == ["Balances before transfer", "Balances after transfer"]
