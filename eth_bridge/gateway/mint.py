"""Mint USDC on the destination chain.

Relay a Gateway attestation to ``GatewayMinter.gatewayMint()``.
Anyone can relay, as burn intents are created with a zero destination caller,
but the wallet relaying pays the gas.
"""

import datetime
import logging

from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction

from eth_bridge.abi import GATEWAY_MINTER_ABI, get_deployed_contract
from eth_bridge.confirmation import is_out_of_gas, wait_transaction_success
from eth_bridge.gateway.attestation import GatewayAttestation
from eth_bridge.gateway.constants import GATEWAY_MINTER_ADDRESS
from eth_bridge.gateway.errors import InsufficientGasForMint, MintFailed
from eth_bridge.hotwallet import HotWallet

logger = logging.getLogger(__name__)


def prepare_gateway_mint(
    web3: Web3,
    attestation: GatewayAttestation,
) -> ContractFunction:
    """Build a bound ``gatewayMint()`` call on GatewayMinter.

    :param web3:
        Web3 connection to the **destination** chain

    :return:
        Bound contract function ready to be transacted
    """
    minter = get_deployed_contract(web3, GATEWAY_MINTER_ABI, GATEWAY_MINTER_ADDRESS)

    logger.info(
        "Preparing gatewayMint: attestation_len=%d, signature_len=%d",
        len(attestation.attestation),
        len(attestation.signature),
    )

    return minter.functions.gatewayMint(
        attestation.attestation,
        attestation.signature,
    )


def execute_gateway_mint(
    web3: Web3,
    wallet: HotWallet,
    attestation: GatewayAttestation,
    confirmation_timeout: datetime.timedelta = datetime.timedelta(minutes=5),
    chain: str | None = None,
) -> HexBytes:
    """Send ``gatewayMint()`` and wait until it is mined.

    :param chain:
        Destination chain key for error messages

    :return:
        Mint transaction hash

    :raise InsufficientGasForMint:
        Wallet has no native gas on the destination chain.
        The burn is already final, retry with the same attestation after topping up gas.

    :raise MintFailed:
        Any other failure, including a reverted mint
    """
    chain_label = chain or f"chain {web3.eth.chain_id}"

    try:
        tx_hash = wallet.transact_and_broadcast_with_contract(prepare_gateway_mint(web3, attestation))
        wait_transaction_success(web3, tx_hash, max_timeout=confirmation_timeout)
    except Exception as e:
        if is_out_of_gas(str(e)):
            raise InsufficientGasForMint(
                f"Mint failed on {chain_label}: insufficient native gas. "
                f"The burn was attested and will complete on the source chain. "
                f"Add gas to {wallet.address} on {chain_label} and retry only the mint.",
                attestation=attestation,
                chain=chain,
            ) from e
        raise MintFailed(f"Mint failed on {chain_label}: {e}", attestation=attestation, chain=chain) from e

    logger.info("Minted on %s, tx %s", chain_label, Web3.to_hex(tx_hash))
    return tx_hash
