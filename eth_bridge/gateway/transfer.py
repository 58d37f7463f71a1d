"""Transfer USDC between an EVM chain and Arc with Circle Gateway.

Runs the whole burn-and-mint flow:

1. Check the vault balance on the source chain, deposit and wait if it is too low
2. Sign a burn intent
3. Get an attestation from the Gateway API
4. Mint on the destination chain

Example:

.. code-block:: python

    from eth_bridge.gateway.transfer import transfer

    # EVM_PRIVATE_KEY is read from the environment
    result = transfer(is_evm_to_arc=True, chain_to_transfer="baseSepolia", amount="1.5")
    print(result.mint_tx_hash.hex())

Failure handling:

- Nothing happens on-chain before the inputs are validated
- If the deposit fails, no burn intent is signed
- If the attestation request fails, nothing is minted and the vault balance is intact
- If the mint fails after attestation, the burn is final. The raised
  :py:class:`~eth_bridge.gateway.errors.MintFailed` carries the attestation,
  pass it to :py:meth:`GatewayTransfer.complete_mint` to retry only the mint.
"""

import enum
import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Callable

import requests
from hexbytes import HexBytes
from web3 import Web3

from eth_bridge.chain import ARC_CHAIN, SupportedChain, UnknownChain, create_chain_web3, parse_chain_key
from eth_bridge.gateway.attestation import GatewayAttestation, request_attestation
from eth_bridge.gateway.balances import fetch_vault_balance, fetch_vault_balances, format_vault_balances, wait_for_vault_balance
from eth_bridge.gateway.config import GatewayConfig
from eth_bridge.gateway.deposit import DepositResult, deposit_to_gateway
from eth_bridge.gateway.errors import DepositFailed, TransferValidationError
from eth_bridge.gateway.intent import SignedBurnIntent, create_burn_intent, sign_burn_intent
from eth_bridge.gateway.mint import execute_gateway_mint
from eth_bridge.gateway.session import create_gateway_session
from eth_bridge.gateway.wallet_balance import log_wallet_balances
from eth_bridge.hotwallet import HotWallet
from eth_bridge.polling import PollObserver
from eth_bridge.token import convert_usdc_to_raw, convert_usdc_to_raw_ceil
from eth_bridge.utils import parse_decimal

logger = logging.getLogger(__name__)


class TransferDirection(enum.Enum):
    """Which way the USDC moves relative to Arc."""

    evm_to_arc = "evm_to_arc"

    arc_to_evm = "arc_to_evm"


@dataclass(slots=True, frozen=True)
class TransferRequest:
    """A validated transfer.

    Create with :py:meth:`create`.
    """

    direction: TransferDirection

    source: SupportedChain

    destination: SupportedChain

    #: Human USDC
    amount: Decimal

    #: Raw USDC units, ``amount`` rounded half up
    value: int

    @property
    def evm_chain(self) -> SupportedChain:
        return self.source if self.direction == TransferDirection.evm_to_arc else self.destination

    @staticmethod
    def create(
        is_evm_to_arc: bool,
        chain_to_transfer: SupportedChain | str,
        amount: Decimal | int | float | str,
    ) -> "TransferRequest":
        """Validate user input.

        :param is_evm_to_arc:
            ``True`` to move USDC from ``chain_to_transfer`` to Arc,
            ``False`` to move it from Arc to ``chain_to_transfer``

        :param chain_to_transfer:
            The EVM end of the transfer, chain key like ``baseSepolia``.
            Cannot be Arc itself.

        :param amount:
            Human USDC. Floats are converted through their string form.

        :raise TransferValidationError:
            Any input is invalid
        """
        if not isinstance(is_evm_to_arc, bool):
            raise TransferValidationError(f"is_evm_to_arc must be a bool, got {is_evm_to_arc!r}")

        if isinstance(chain_to_transfer, SupportedChain):
            chain = chain_to_transfer
        else:
            try:
                chain = parse_chain_key(chain_to_transfer)
            except UnknownChain as e:
                raise TransferValidationError(str(e)) from e

        if chain is ARC_CHAIN:
            raise TransferValidationError(f"{ARC_CHAIN.key} is always one end of the transfer, pass the EVM chain to transfer to or from")

        try:
            amount = parse_decimal(amount)
        except ValueError as e:
            raise TransferValidationError(f"Invalid amount: {amount!r}") from e

        if not amount.is_finite() or amount <= 0:
            raise TransferValidationError(f"Amount must be a positive number, got {amount}")

        try:
            value = convert_usdc_to_raw(amount)
        except InvalidOperation as e:
            raise TransferValidationError(f"Amount {amount} is too large") from e

        if value <= 0:
            raise TransferValidationError(f"Amount {amount} is below the smallest USDC unit")

        if is_evm_to_arc:
            direction = TransferDirection.evm_to_arc
            source, destination = chain, ARC_CHAIN
        else:
            direction = TransferDirection.arc_to_evm
            source, destination = ARC_CHAIN, chain

        return TransferRequest(
            direction=direction,
            source=source,
            destination=destination,
            amount=amount,
            value=value,
        )

    def __str__(self):
        return f"{self.amount} USDC {self.source.descriptor.name} -> {self.destination.descriptor.name}"


@dataclass(slots=True)
class TransferResult:
    """A completed transfer."""

    request: TransferRequest

    signed_intent: SignedBurnIntent

    attestation: GatewayAttestation

    mint_tx_hash: HexBytes

    #: Vault top-ups made before signing, empty if the balance was sufficient
    deposits: list[DepositResult] = field(default_factory=list)


class GatewayTransfer:
    """Run Gateway transfers for one wallet.

    The wallet is both the depositor on the source chain and the recipient on the destination chain.

    .. note ::

        Not thread safe. Run transfers of the same wallet one at a time,
        or nonces and vault balance checks race.
    """

    def __init__(
        self,
        wallet: HotWallet,
        config: GatewayConfig | None = None,
        session: requests.Session | None = None,
        web3_factory: Callable[[SupportedChain], Web3] = create_chain_web3,
        poll_observer: PollObserver | None = None,
        cancel_event: threading.Event | None = None,
    ):
        """
        :param web3_factory:
            Creates web3 connection for a chain. Called once per chain.

        :param poll_observer:
            Progress of the vault balance wait. Defaults to logging.

        :param cancel_event:
            Set from another thread to abort the vault balance wait
        """
        assert isinstance(wallet, HotWallet), f"Got {type(wallet)}"
        self.wallet = wallet
        self.config = config or GatewayConfig()
        self.session = session or create_gateway_session()
        self.web3_factory = web3_factory
        self.poll_observer = poll_observer
        self.cancel_event = cancel_event
        self.web3_connections: dict[SupportedChain, Web3] = {}

    def get_web3(self, chain: SupportedChain) -> Web3:
        web3 = self.web3_connections.get(chain)
        if web3 is None:
            web3 = self.web3_connections[chain] = self.web3_factory(chain)
        return web3

    def run(self, request: TransferRequest) -> TransferResult:
        """Execute a transfer.

        :raise DepositFailed:
            Vault balance could not be topped up. Nothing was signed.

        :raise GatewayAPIError:
            Attestation was refused. Nothing was minted.

        :raise InsufficientGasForMint:
            Burn is final, mint needs gas on the destination chain

        :raise MintFailed:
            Burn is final, mint failed otherwise
        """
        logger.info("Starting Gateway transfer: %s, wallet %s", request, self.wallet.address)

        if self.config.report_balances:
            self.report_balances(request, "Balances before transfer")

        deposits = self.ensure_vault_balance(request)

        intent = create_burn_intent(
            source=request.source,
            destination=request.destination,
            value=request.value,
            depositor=self.wallet.address,
            max_fee=self.config.max_fee,
        )
        signed_intent = sign_burn_intent(intent, self.wallet)

        attestation = request_attestation([signed_intent], session=self.session, config=self.config)

        mint_tx_hash = self.complete_mint(request.destination, attestation)

        if self.config.report_balances:
            self.report_balances(request, "Balances after transfer")

        logger.info("Gateway transfer complete: %s, mint tx %s", request, Web3.to_hex(mint_tx_hash))

        return TransferResult(
            request=request,
            signed_intent=signed_intent,
            attestation=attestation,
            mint_tx_hash=mint_tx_hash,
            deposits=deposits,
        )

    def ensure_vault_balance(self, request: TransferRequest) -> list[DepositResult]:
        """Make sure the source vault holds the amount plus the fee buffer.

        Deposits the full required amount when the balance is short, then waits until Gateway credits it.

        :return:
            Deposits made, empty if none were needed

        :raise DepositFailed:
            Deposit or the wait failed. The cause is chained.
        """
        source = request.source
        required = request.amount + self.config.fee_buffer

        available = fetch_vault_balance(source, self.wallet.address, session=self.session, config=self.config)
        logger.info("Vault balance on %s: %s USDC, required %s USDC", source.key, available, required)

        if available >= required:
            return []

        deposit_amount = convert_usdc_to_raw_ceil(required)

        try:
            deposits = deposit_to_gateway(
                [source],
                deposit_amount,
                self.wallet,
                web3_factory=self.get_web3,
                confirmation_timeout=self.config.confirmation_timeout,
            )
            wait_for_vault_balance(
                source,
                self.wallet.address,
                required,
                poll_interval=self.config.poll_interval,
                timeout=self.config.balance_timeout,
                observer=self.poll_observer,
                cancel_event=self.cancel_event,
                session=self.session,
                config=self.config,
            )
        except Exception as e:
            raise DepositFailed(f"Could not top up the Gateway vault on {source.key} to {required} USDC: {e}") from e

        return deposits

    def complete_mint(self, destination: SupportedChain, attestation: GatewayAttestation) -> HexBytes:
        """Mint on the destination chain.

        Use this to retry a mint after :py:class:`~eth_bridge.gateway.errors.MintFailed`
        with the attestation carried by the error.

        :return:
            Mint transaction hash
        """
        web3 = self.get_web3(destination)
        return execute_gateway_mint(
            web3,
            self.wallet,
            attestation,
            confirmation_timeout=self.config.confirmation_timeout,
            chain=destination.key,
        )

    def report_balances(self, request: TransferRequest, title: str):
        """Log vault balances on all chains and wallet balances on both ends."""
        entries = fetch_vault_balances(list(SupportedChain), self.wallet.address, session=self.session, config=self.config)
        logger.info("%s, Gateway vault:\n%s", title, format_vault_balances(entries))
        log_wallet_balances(request.source, request.destination, self.wallet.address, title=title, web3_factory=self.get_web3)


def transfer(
    is_evm_to_arc: bool,
    chain_to_transfer: SupportedChain | str,
    amount: Decimal | int | float | str,
    wallet: HotWallet | None = None,
    config: GatewayConfig | None = None,
) -> TransferResult:
    """Transfer USDC between an EVM chain and Arc.

    :param is_evm_to_arc:
        Direction. ``True`` moves USDC from ``chain_to_transfer`` to Arc.

    :param chain_to_transfer:
        EVM chain key, e.g. ``baseSepolia``

    :param amount:
        Human USDC

    :param wallet:
        Signing wallet. Read from ``EVM_PRIVATE_KEY`` if not given.

    :param config:
        Read from ``GATEWAY_*`` environment variables if not given

    :raise TransferValidationError:
        Bad input, raised before any network access
    """
    request = TransferRequest.create(is_evm_to_arc, chain_to_transfer, amount)

    if wallet is None:
        wallet = HotWallet.from_env()

    if config is None:
        config = GatewayConfig.from_env()

    return GatewayTransfer(wallet, config=config).run(request)
