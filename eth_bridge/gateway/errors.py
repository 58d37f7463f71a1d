"""Gateway transfer errors.

What is safe to do after each error:

- :py:class:`TransferValidationError`: nothing happened, fix the input and retry

- :py:class:`DepositFailed`: no burn intent was signed. A deposit may have landed
  in the vault, so the next attempt may not need to deposit again.

- :py:class:`GatewayAPIError`: the burn intent was only submitted off-chain,
  retry the whole transfer. A new salt is used.

- :py:class:`InsufficientGasForMint`: **the burn is final**. Do not retry the transfer,
  top up gas on the destination chain and retry only the mint with
  :py:meth:`eth_bridge.gateway.transfer.GatewayTransfer.complete_mint`.
"""

from decimal import Decimal


class GatewayError(Exception):
    """Base class for Gateway transfer failures."""


class TransferValidationError(GatewayError, ValueError):
    """Bad transfer parameters. Raised before any network access."""


class InsufficientWalletBalance(GatewayError):
    """Wallet does not hold enough USDC to deposit into the Gateway vault."""

    def __init__(self, message: str, chain: str, balance: int, required: int):
        super().__init__(message)
        self.chain = chain
        #: Raw USDC
        self.balance = balance
        #: Raw USDC
        self.required = required


class BalanceWaitTimeout(GatewayError, TimeoutError):
    """Gateway did not credit the vault balance in time."""

    def __init__(self, message: str, chain: str, last_balance: Decimal, threshold: Decimal):
        super().__init__(message)
        self.chain = chain
        self.last_balance = last_balance
        self.threshold = threshold


class DepositFailed(GatewayError):
    """Topping up the vault balance failed. The cause is chained."""


class GatewayAPIError(GatewayError):
    """Gateway API returned an error response."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedAttestationResponse(GatewayAPIError):
    """Gateway API response was a success, but lacked the data we need."""


class MintFailed(GatewayError):
    """``gatewayMint()`` on the destination chain failed.

    The attestation is retained, so the mint can be retried.
    """

    def __init__(self, message: str, attestation=None, chain: str | None = None):
        super().__init__(message)
        #: :py:class:`eth_bridge.gateway.attestation.GatewayAttestation`
        self.attestation = attestation
        self.chain = chain


class InsufficientGasForMint(MintFailed):
    """Destination wallet cannot pay gas for ``gatewayMint()``.

    The burn intent was already attested and will be burned on the source chain.
    Retry only the mint.
    """
