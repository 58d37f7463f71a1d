"""Gateway burn intents.

A burn intent authorises Gateway to debit ``value`` USDC from the depositor's
vault balance on the source chain, so that the same amount minus fees
can be minted on the destination chain.

The intent is EIP-712 signed by the depositor. The domain has no ``chainId``,
the same signature is checked by Gateway off-chain and by ``GatewayMinter`` on-chain.

Example:

.. code-block:: python

    intent = create_burn_intent(
        source=SupportedChain.base_sepolia,
        destination=SupportedChain.arc_testnet,
        value=1_000_000,
        depositor=wallet.address,
    )
    signed = sign_burn_intent(intent, wallet)
    attestation = request_attestation([signed])

All address-shaped fields are ``bytes32``: EVM addresses are lower-cased and left-padded with zeros.
"""

import logging
import secrets
from dataclasses import dataclass

from eth_typing import HexAddress, HexStr
from hexbytes import HexBytes
from web3 import Web3

from eth_bridge.abi import ZERO_ADDRESS
from eth_bridge.chain import SupportedChain
from eth_bridge.eip_712 import eip712_encode_hash, sign_typed_data
from eth_bridge.gateway.constants import (
    BURN_INTENT_DOMAIN,
    DEFAULT_MAX_FEE,
    GATEWAY_MINTER_ADDRESS,
    GATEWAY_WALLET_ADDRESS,
    MAX_BLOCK_HEIGHT,
    TRANSFER_SPEC_VERSION,
)
from eth_bridge.hotwallet import HotWallet

logger = logging.getLogger(__name__)


#: EIP-712 type definitions of a burn intent.
#:
#: Field order is part of the type hash and must not change.
BURN_INTENT_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
    ],
    "TransferSpec": [
        {"name": "version", "type": "uint32"},
        {"name": "sourceDomain", "type": "uint32"},
        {"name": "destinationDomain", "type": "uint32"},
        {"name": "sourceContract", "type": "bytes32"},
        {"name": "destinationContract", "type": "bytes32"},
        {"name": "sourceToken", "type": "bytes32"},
        {"name": "destinationToken", "type": "bytes32"},
        {"name": "sourceDepositor", "type": "bytes32"},
        {"name": "destinationRecipient", "type": "bytes32"},
        {"name": "sourceSigner", "type": "bytes32"},
        {"name": "destinationCaller", "type": "bytes32"},
        {"name": "value", "type": "uint256"},
        {"name": "salt", "type": "bytes32"},
        {"name": "hookData", "type": "bytes"},
    ],
    "BurnIntent": [
        {"name": "maxBlockHeight", "type": "uint256"},
        {"name": "maxFee", "type": "uint256"},
        {"name": "spec", "type": "TransferSpec"},
    ],
}

_PADDING = b"\x00" * 12


def address_to_bytes32(address: HexAddress | str | bytes) -> bytes:
    """Convert an EVM address to its ``bytes32`` form.

    Already converted values pass through unchanged, so this can be applied twice.

    :param address:
        20 byte address, or 32 byte value with 12 leading zero bytes.
        Hex strings, with or without checksum, or raw bytes.

    :return:
        32 bytes, the address left-padded with zeros

    :raise ValueError:
        If the input is neither an address nor a padded address
    """
    if isinstance(address, str):
        raw = bytes(HexBytes(address))
    else:
        raw = bytes(address)

    if len(raw) == 20:
        return _PADDING + raw

    if len(raw) == 32:
        if not raw.startswith(_PADDING):
            raise ValueError(f"Not a zero-padded address: {Web3.to_hex(raw)}")
        return raw

    raise ValueError(f"Not an address: {address!r}, length {len(raw)} bytes")


def address_to_bytes32_hex(address: HexAddress | str | bytes) -> HexStr:
    """Same as :py:func:`address_to_bytes32`, as lower-case 0x hex."""
    return HexStr(Web3.to_hex(address_to_bytes32(address)))


@dataclass(slots=True, frozen=True)
class TransferSpec:
    """What is moved, from where, to where.

    Address-shaped fields are ``bytes32``, see :py:func:`address_to_bytes32`.
    """

    version: int
    source_domain: int
    destination_domain: int
    source_contract: bytes
    destination_contract: bytes
    source_token: bytes
    destination_token: bytes
    source_depositor: bytes
    destination_recipient: bytes
    source_signer: bytes
    destination_caller: bytes

    #: Raw USDC units
    value: int

    #: Random 32 bytes, makes every intent unique
    salt: bytes

    hook_data: bytes = b""

    def as_message(self) -> dict:
        """EIP-712 message struct, camelCase as in the type definition."""
        return {
            "version": self.version,
            "sourceDomain": self.source_domain,
            "destinationDomain": self.destination_domain,
            "sourceContract": self.source_contract,
            "destinationContract": self.destination_contract,
            "sourceToken": self.source_token,
            "destinationToken": self.destination_token,
            "sourceDepositor": self.source_depositor,
            "destinationRecipient": self.destination_recipient,
            "sourceSigner": self.source_signer,
            "destinationCaller": self.destination_caller,
            "value": self.value,
            "salt": self.salt,
            "hookData": self.hook_data,
        }


@dataclass(slots=True, frozen=True)
class BurnIntent:
    """A transfer spec with the limits the depositor accepts."""

    #: Intent is valid until this source chain block
    max_block_height: int

    #: Maximum fee Gateway may take, raw USDC units
    max_fee: int

    spec: TransferSpec

    def as_message(self) -> dict:
        return {
            "maxBlockHeight": self.max_block_height,
            "maxFee": self.max_fee,
            "spec": self.spec.as_message(),
        }


def _to_json_value(value):
    # Gateway API takes bytes as hex and uint256 as decimal strings, uint32 as numbers
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    if isinstance(value, dict):
        return {k: _to_json_value(v) for k, v in value.items()}
    return value


@dataclass(slots=True, frozen=True)
class SignedBurnIntent:
    """Burn intent with the depositor signature."""

    intent: BurnIntent

    #: 65 bytes signature as 0x hex
    signature: HexStr

    def to_request_payload(self) -> dict:
        """JSON payload for ``POST /v1/transfer``.

        .. code-block:: json

            {"burnIntent": {"maxBlockHeight": "115792...", "maxFee": "2010000", "spec": {...}}, "signature": "0x..."}
        """
        message = self.intent.as_message()
        message["maxBlockHeight"] = str(message["maxBlockHeight"])
        message["maxFee"] = str(message["maxFee"])
        message["spec"]["value"] = str(message["spec"]["value"])
        return {
            "burnIntent": _to_json_value(message),
            "signature": self.signature,
        }


def create_burn_intent(
    source: SupportedChain,
    destination: SupportedChain,
    value: int,
    depositor: HexAddress | str,
    recipient: HexAddress | str | None = None,
    max_fee: int = DEFAULT_MAX_FEE,
    salt: bytes | None = None,
) -> BurnIntent:
    """Build an unsigned burn intent.

    - Source contract is ``GatewayWallet``, destination contract is ``GatewayMinter``
    - Tokens are the USDC of each chain
    - The depositor is also the signer
    - Anyone may relay the mint, destination caller is zero
    - No expiry and no hook data

    :param value:
        Raw USDC units to transfer

    :param depositor:
        Whose vault balance is burned

    :param recipient:
        Who receives the minted USDC. Defaults to the depositor.

    :param salt:
        32 random bytes. A fresh salt is generated if not given.

    :raise ValueError:
        Source and destination are the same domain, or value is not positive
    """
    assert isinstance(source, SupportedChain), f"Got {source}"
    assert isinstance(destination, SupportedChain), f"Got {destination}"

    src = source.descriptor
    dst = destination.descriptor

    if src.domain == dst.domain:
        raise ValueError(f"Source and destination are the same domain {src.domain}: {source}")

    if type(value) != int or value <= 0:
        raise ValueError(f"Transfer value must be a positive integer, got {value!r}")

    if salt is None:
        salt = secrets.token_bytes(32)

    assert len(salt) == 32, f"Salt must be 32 bytes, got {len(salt)}"

    if recipient is None:
        recipient = depositor

    spec = TransferSpec(
        version=TRANSFER_SPEC_VERSION,
        source_domain=src.domain,
        destination_domain=dst.domain,
        source_contract=address_to_bytes32(GATEWAY_WALLET_ADDRESS),
        destination_contract=address_to_bytes32(GATEWAY_MINTER_ADDRESS),
        source_token=address_to_bytes32(src.usdc_address),
        destination_token=address_to_bytes32(dst.usdc_address),
        source_depositor=address_to_bytes32(depositor),
        destination_recipient=address_to_bytes32(recipient),
        source_signer=address_to_bytes32(depositor),
        destination_caller=address_to_bytes32(ZERO_ADDRESS),
        value=value,
        salt=bytes(salt),
    )

    return BurnIntent(
        max_block_height=MAX_BLOCK_HEIGHT,
        max_fee=max_fee,
        spec=spec,
    )


def burn_intent_typed_data(intent: BurnIntent) -> dict:
    """EIP-712 typed data of a burn intent, as passed to ``eth_signTypedData_v4``."""
    return {
        "types": BURN_INTENT_TYPES,
        "domain": dict(BURN_INTENT_DOMAIN),
        "primaryType": "BurnIntent",
        "message": intent.as_message(),
    }


def hash_burn_intent(intent: BurnIntent) -> bytes:
    """EIP-712 digest the depositor signs."""
    return eip712_encode_hash(burn_intent_typed_data(intent))


def sign_burn_intent(intent: BurnIntent, wallet: HotWallet) -> SignedBurnIntent:
    """Sign a burn intent with the depositor's key.

    The wallet must be the source signer of the intent, otherwise Gateway rejects the signature.
    """
    assert intent.spec.source_signer == address_to_bytes32(wallet.address), f"Intent signer does not match {wallet}"
    signature = sign_typed_data(burn_intent_typed_data(intent), wallet.account)
    logger.info(
        "Signed burn intent of %d raw USDC from domain %d to domain %d, salt %s",
        intent.spec.value,
        intent.spec.source_domain,
        intent.spec.destination_domain,
        Web3.to_hex(intent.spec.salt),
    )
    return SignedBurnIntent(intent=intent, signature=signature)
