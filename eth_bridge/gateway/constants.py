"""Circle Gateway constants.

Gateway contracts share the same address across all EVM chains (deployed via CREATE2).

- `Gateway contract addresses <https://developers.circle.com/gateway/references/contract-addresses>`__
"""

from decimal import Decimal

from eth_typing import HexAddress

#: GatewayWallet - the vault contract holding deposited USDC.
#: Burn intents are debited from here.
GATEWAY_WALLET_ADDRESS: HexAddress = HexAddress("0x0077777d7EBA4688BDeF3E311b846F25870A19B9")

#: GatewayMinter - mints USDC on the destination chain against an attestation.
GATEWAY_MINTER_ADDRESS: HexAddress = HexAddress("0x0022222ABE238Cc2C7Bb1f21003F0a260052475B")

#: Gateway API base URL (testnet).
GATEWAY_API_TESTNET_URL = "https://gateway-api-testnet.circle.com"

#: Token name used in Gateway API requests.
GATEWAY_TOKEN = "USDC"

#: EIP-712 domain of burn intents.
#:
#: No ``chainId`` or ``verifyingContract``, the same signature is valid on every chain.
BURN_INTENT_DOMAIN = {"name": "GatewayWallet", "version": "1"}

#: TransferSpec version we sign.
TRANSFER_SPEC_VERSION = 1

#: Maximum fee the Gateway operator may deduct from a transfer, raw USDC units (2.01 USDC).
DEFAULT_MAX_FEE = 2_010000

#: Burn intent never expires.
MAX_BLOCK_HEIGHT = 2**256 - 1

#: Added on the top of the transfer amount when checking whether the vault balance is sufficient.
DEFAULT_FEE_BUFFER = Decimal("0.01")
