"""EIP-712 typed structured data hashing and signing.

- Hash ``eth_signTypedData_v4`` style payloads and sign them with a local key

- Supports atomic types, ``string``, ``bytes`` and nested structs.
  Arrays are not needed by any message we sign and are rejected.

- Used in :py:mod:`eth_bridge.gateway.intent` for signing Gateway burn intents

- Follows the structure of `Gnosis EIP-712 utilities <https://github.com/safe-global/safe-eth-py/blob/main/safe_eth/eth/eip712/__init__.py>`__
  and the `EIP-712 specification <https://eips.ethereum.org/EIPS/eip-712>`__

The typed data is given as the same dict structure ``eth_signTypedData_v4`` takes:

.. code-block:: python

    data = {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
            ],
            "Mail": [
                {"name": "to", "type": "address"},
                {"name": "contents", "type": "string"},
            ],
        },
        "domain": {"name": "Ether Mail", "version": "1"},
        "primaryType": "Mail",
        "message": {"to": "0x...", "contents": "Hello"},
    }

    digest = eip712_encode_hash(data)
    signature = sign_typed_data(data, account)

Field order inside a type is part of the type hash.
Reordering fields produces a different, silently wrong, hash.

Past copyright:

.. code-block:: text

    Copyright (C) 2022 Judd Vinet <jvinet@zeroflux.org>
                       Uxío Fuentefría <uxio@safe.global>

    Permission is hereby granted, free of charge, to any person obtaining a copy of
    this software and associated documentation files (the "Software"), to deal in
    the Software without restriction, including without limitation the rights to
    use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies
    of the Software, and to permit persons to whom the Software is furnished to do
    so, subject to the following conditions:

    The above copyright notice and this permission notice shall be included in all
    copies or substantial portions of the Software.

    THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
    IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
    FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
    AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
    LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
    OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
    SOFTWARE.
"""

from typing import Any

from eth_abi import encode as encode_abi
from eth_account.signers.local import LocalAccount
from eth_typing import Hash32, HexStr
from hexbytes import HexBytes
from web3 import Web3

from eth_bridge.compat import sign_hash_compat

#: Prefix of every EIP-712 signable message
EIP712_PREFIX = b"\x19\x01"


class EIP712EncodingError(ValueError):
    """Typed data does not match its declared types."""


def fast_keccak(value: bytes) -> bytes:
    return Web3.keccak(value)


def find_type_dependencies(primary_type: str, types: dict) -> set[str]:
    """All struct types referenced by ``primary_type``, directly or transitively, including itself."""
    found = set()
    pending = [primary_type]
    while pending:
        name = pending.pop()
        if name in found:
            continue
        found.add(name)
        for field in types[name]:
            if field["type"] in types:
                pending.append(field["type"])
    return found


def encode_type(primary_type: str, types: dict) -> str:
    """Type string of a struct, referenced structs appended in alphabetical order.

    E.g. ``BurnIntent(uint256 maxBlockHeight,uint256 maxFee,TransferSpec spec)TransferSpec(...)``.
    """
    if not types.get(primary_type):
        raise EIP712EncodingError(f"No type definition specified: {primary_type}")

    referenced = sorted(find_type_dependencies(primary_type, types) - {primary_type})
    parts = []
    for name in [primary_type] + referenced:
        members = ",".join(f"{f['type']} {f['name']}" for f in types[name])
        parts.append(f"{name}({members})")
    return "".join(parts)


def hash_type(primary_type: str, types: dict) -> Hash32:
    return fast_keccak(encode_type(primary_type, types).encode())


def _encode_value(field_name: str, typ: str, value: Any, types: dict) -> tuple[str, Any]:
    """ABI type and value of one struct member, dynamic types replaced by their hash."""
    if value is None:
        raise EIP712EncodingError(f"Missing value for field {field_name} of type {typ}")

    if typ in types:
        return "bytes32", hash_struct(typ, value, types)

    if typ.endswith("]"):
        raise EIP712EncodingError(f"Array types are not supported: {field_name} {typ}")

    if typ == "string":
        if not isinstance(value, str):
            raise EIP712EncodingError(f"Expected str for {field_name}, got {value!r}")
        return "bytes32", fast_keccak(value.encode("utf-8"))

    if typ.startswith("bytes"):
        # Hex strings are accepted for bytes and bytesN
        if isinstance(value, str):
            value = HexBytes(value)
        if typ == "bytes":
            return "bytes32", fast_keccak(bytes(value))
        return typ, bytes(value)

    if "int" in typ and isinstance(value, str):
        # uint256 values travel as decimal strings in JSON
        value = int(value)

    return typ, value


def encode_data(primary_type: str, data: dict, types: dict) -> bytes:
    """ABI encoded ``typeHash || encodeData(s)`` of a struct."""
    abi_types = ["bytes32"]
    abi_values = [hash_type(primary_type, types)]

    for field in types[primary_type]:
        name = field["name"]
        if name not in data:
            raise EIP712EncodingError(f"{primary_type} is missing field {name}")
        abi_type, abi_value = _encode_value(name, field["type"], data[name], types)
        abi_types.append(abi_type)
        abi_values.append(abi_value)

    return encode_abi(abi_types, abi_values)


def hash_struct(primary_type: str, data: dict, types: dict) -> Hash32:
    return fast_keccak(encode_data(primary_type, data, types))


def eip712_encode(typed_data: dict[str, Any]) -> list[bytes]:
    """Split typed data into the parts that are concatenated and hashed for signing.

    :return:
        ``[b"\\x19\\x01", domain separator, message struct hash]``.
        The message hash is omitted when the primary type is ``EIP712Domain`` itself.
    """
    try:
        types = typed_data["types"]
        primary_type = typed_data["primaryType"]
        parts = [EIP712_PREFIX, hash_struct("EIP712Domain", typed_data["domain"], types)]
        if primary_type != "EIP712Domain":
            parts.append(hash_struct(primary_type, typed_data["message"], types))
        return parts
    except (KeyError, AttributeError, TypeError) as e:
        raise EIP712EncodingError(f"Not valid typed data: {typed_data}") from e


def eip712_encode_hash(typed_data: dict[str, Any]) -> Hash32:
    """Keccak256 digest of the signable data.

    This is the digest the verifying contract recovers the signer from.
    """
    return fast_keccak(b"".join(eip712_encode(typed_data)))


def sign_typed_data(typed_data: dict[str, Any], account: LocalAccount) -> HexStr:
    """Sign EIP-712 typed data with a local private key.

    :return:
        65 bytes ``r + s + v`` signature as 0x-prefixed hex
    """
    message_hash = eip712_encode_hash(typed_data)
    signed_message = sign_hash_compat(account, message_hash)
    return HexStr(Web3.to_hex(signed_message.signature))
