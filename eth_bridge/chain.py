"""Chains supported by Circle Gateway transfers.

- Static network parameters for every chain we can move USDC on:
  EVM chain id, default JSON-RPC endpoint, Gateway domain id and USDC token address

- The set of chains is closed: :py:class:`SupportedChain` enumerates all of them
  and every member carries its :py:class:`ChainDescriptor`,
  so there is no "unknown chain" case once a string has been parsed with :py:func:`parse_chain_key`

- Arc Testnet is the fixed other endpoint of every transfer, see :py:data:`ARC_CHAIN`

Gateway uses its own *domain* identifiers, not EVM chain ids.
Domains are shared with Circle CCTP.

Example:

.. code-block:: python

    from eth_bridge.chain import parse_chain_key, create_chain_web3

    chain = parse_chain_key("baseSepolia")
    web3 = create_chain_web3(chain)
    assert web3.eth.chain_id == chain.descriptor.chain_id
"""

import enum
import logging
import os
import re
from dataclasses import dataclass

from eth_typing import HexAddress
from web3 import HTTPProvider, Web3

logger = logging.getLogger(__name__)


class UnknownChain(ValueError):
    """The chain key does not match any :py:class:`SupportedChain`."""


@dataclass(slots=True, frozen=True)
class NativeCurrency:
    """Gas token of a chain."""

    name: str

    symbol: str

    decimals: int


@dataclass(slots=True, frozen=True)
class ChainDescriptor:
    """Network parameters of a Gateway-enabled chain."""

    #: Our chain key, e.g. ``baseSepolia``
    key: str

    #: Human readable name, e.g. ``Base Sepolia``
    name: str

    #: EVM chain id
    chain_id: int

    #: Public JSON-RPC endpoint used when no ``JSON_RPC_*`` environment variable is set
    rpc_url: str

    #: Gateway (CCTP) domain id, uint32
    domain: int

    #: USDC ERC-20 token contract on this chain
    usdc_address: HexAddress

    #: Gas token metadata
    native_currency: NativeCurrency


ETHER = NativeCurrency(name="Ether", symbol="ETH", decimals=18)

#: On Arc, USDC is the gas token
ARC_NATIVE_USDC = NativeCurrency(name="USD Coin", symbol="USDC", decimals=18)


class SupportedChain(enum.Enum):
    """All chains we can transfer USDC to and from.

    The enum value is the chain key used in the public API.
    """

    sepolia = "sepolia"
    base_sepolia = "baseSepolia"
    avalanche_fuji = "avalancheFuji"
    arc_testnet = "arcTestnet"
    hyperliquid_evm_testnet = "hyperliquidEvmTestnet"
    sei_testnet = "seiTestnet"
    sonic_testnet = "sonicTestnet"
    worldchain_sepolia = "worldchainSepolia"

    @property
    def descriptor(self) -> ChainDescriptor:
        return CHAIN_DESCRIPTORS[self]

    @property
    def key(self) -> str:
        return self.value

    @property
    def is_arc(self) -> bool:
        return self is ARC_CHAIN

    def __str__(self):
        return self.value


#: Network parameters of every supported chain.
#:
#: - `USDC addresses <https://developers.circle.com/stablecoins/usdc-contract-addresses>`__
#: - `Gateway domains <https://developers.circle.com/gateway/references/supported-blockchains>`__
CHAIN_DESCRIPTORS: dict[SupportedChain, ChainDescriptor] = {
    SupportedChain.sepolia: ChainDescriptor(
        key="sepolia",
        name="Sepolia",
        chain_id=11155111,
        rpc_url="https://rpc.sepolia.org",
        domain=0,
        usdc_address=HexAddress("0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"),
        native_currency=ETHER,
    ),
    SupportedChain.base_sepolia: ChainDescriptor(
        key="baseSepolia",
        name="Base Sepolia",
        chain_id=84532,
        rpc_url="https://sepolia.base.org",
        domain=6,
        usdc_address=HexAddress("0x036CbD53842c5426634e7929541eC2318f3dCF7e"),
        native_currency=ETHER,
    ),
    SupportedChain.avalanche_fuji: ChainDescriptor(
        key="avalancheFuji",
        name="Avalanche Fuji",
        chain_id=43113,
        rpc_url="https://api.avax-test.network/ext/bc/C/rpc",
        domain=1,
        usdc_address=HexAddress("0x5425890298aed601595a70ab815c96711a31bc65"),
        native_currency=NativeCurrency(name="Avalanche", symbol="AVAX", decimals=18),
    ),
    SupportedChain.arc_testnet: ChainDescriptor(
        key="arcTestnet",
        name="Arc Testnet",
        chain_id=5042002,
        rpc_url="https://rpc.testnet.arc.network",
        domain=26,
        usdc_address=HexAddress("0x3600000000000000000000000000000000000000"),
        native_currency=ARC_NATIVE_USDC,
    ),
    SupportedChain.hyperliquid_evm_testnet: ChainDescriptor(
        key="hyperliquidEvmTestnet",
        name="Hyperliquid EVM Testnet",
        chain_id=998,
        rpc_url="https://api.hyperliquid-testnet.xyz/evm",
        domain=19,
        usdc_address=HexAddress("0x2B3370eE501B4a559b57D449569354196457D8Ab"),
        native_currency=NativeCurrency(name="Hype", symbol="HYPE", decimals=18),
    ),
    SupportedChain.sei_testnet: ChainDescriptor(
        key="seiTestnet",
        name="Sei Testnet",
        chain_id=713715,
        rpc_url="https://evm-rpc-testnet.sei-apis.com",
        domain=16,
        usdc_address=HexAddress("0x4fCF1784B31630811181f670Aea7A7bEF803eaED"),
        native_currency=NativeCurrency(name="Sei", symbol="SEI", decimals=18),
    ),
    SupportedChain.sonic_testnet: ChainDescriptor(
        key="sonicTestnet",
        name="Sonic Testnet",
        chain_id=64165,
        rpc_url="https://rpc.testnet.soniclabs.com",
        domain=13,
        usdc_address=HexAddress("0x0BA304580ee7c9a980CF72e55f5Ed2E9fd30Bc51"),
        native_currency=NativeCurrency(name="Sonic", symbol="S", decimals=18),
    ),
    SupportedChain.worldchain_sepolia: ChainDescriptor(
        key="worldchainSepolia",
        name="Worldchain Sepolia",
        chain_id=4801,
        rpc_url="https://worldchain-sepolia.g.alchemy.com/public",
        domain=14,
        usdc_address=HexAddress("0x66145f38cBAC35Ca6F1Dfb4914dF98F1614aeA88"),
        native_currency=ETHER,
    ),
}

#: Arc is always one of the two endpoints of a transfer
ARC_CHAIN = SupportedChain.arc_testnet

#: Reverse mapping from Gateway domain to chain
DOMAIN_TO_CHAIN: dict[int, SupportedChain] = {d.domain: chain for chain, d in CHAIN_DESCRIPTORS.items()}


def get_evm_chains() -> list[SupportedChain]:
    """Chains that can be passed as the EVM endpoint of a transfer (everything except Arc)."""
    return [c for c in SupportedChain if c is not ARC_CHAIN]


def parse_chain_key(key: str) -> SupportedChain:
    """Resolve a user-given chain key like ``baseSepolia``.

    :raise UnknownChain:
        If the key is not one of the supported chains
    """
    try:
        return SupportedChain(key)
    except ValueError as e:
        valid = ", ".join(c.value for c in SupportedChain)
        raise UnknownChain(f"Unsupported chain: {key}. Valid chains: {valid}") from e


def get_chain_by_domain(domain: int) -> SupportedChain | None:
    """Map a Gateway domain id back to our chain, if we know it."""
    return DOMAIN_TO_CHAIN.get(domain)


def get_json_rpc_env(chain: SupportedChain) -> str:
    """Environment variable name for overriding the chain JSON-RPC URL.

    ``baseSepolia`` -> ``JSON_RPC_BASE_SEPOLIA``
    """
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", chain.key)
    return f"JSON_RPC_{snake.upper()}"


def read_json_rpc_url(chain: SupportedChain) -> str:
    """Read JSON-RPC URL for a chain.

    Environment variable, see :py:func:`get_json_rpc_env`, wins over the public default endpoint.
    """
    env_var = get_json_rpc_env(chain)
    json_rpc_url = os.environ.get(env_var)
    if json_rpc_url:
        return json_rpc_url.strip()
    return chain.descriptor.rpc_url


def create_chain_web3(chain: SupportedChain, request_timeout: float = 30.0) -> Web3:
    """Create a web3 connection for a supported chain.

    :param request_timeout:
        HTTP timeout for a single JSON-RPC request, seconds
    """
    json_rpc_url = read_json_rpc_url(chain)
    logger.debug("Connecting %s at %s", chain.key, json_rpc_url)
    return Web3(HTTPProvider(json_rpc_url, request_kwargs={"timeout": request_timeout}))
