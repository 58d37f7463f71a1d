"""web3.py v6/v7 compatibility.

- Detect the installed web3.py major version

- Paper over renamed account signing methods
"""

from importlib.metadata import version

from eth_account.datastructures import SignedMessage
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from packaging.version import Version

pkg_version = version("web3")
WEB3_PY_V7 = Version(pkg_version) >= Version("7.0.0")


def sign_hash_compat(account: LocalAccount, message_hash: bytes) -> SignedMessage:
    """Sign a raw 32-byte hash with a local account.

    ``signHash()`` was renamed to ``unsafe_sign_hash()`` in the eth_account release
    that ships with web3.py v7.
    """
    if WEB3_PY_V7:
        return account.unsafe_sign_hash(message_hash)
    else:
        return account.signHash(message_hash)


def get_tx_broadcast_data(signed_tx) -> HexBytes:
    """Get raw transaction bytes with compatibility for attribute name changes.

    eth_account changed ``rawTransaction`` to ``raw_transaction`` in newer versions.

    :param signed_tx:
        ``SignedTransaction`` or :py:class:`eth_bridge.hotwallet.SignedTransactionWithNonce`

    :return:
        Raw transaction bytes ready for ``eth_sendRawTransaction``
    """
    if hasattr(signed_tx, "raw_transaction"):
        return signed_tx.raw_transaction
    elif hasattr(signed_tx, "rawTransaction"):
        return signed_tx.rawTransaction
    else:
        raise AttributeError(f"SignedTransaction object has neither 'raw_transaction' nor 'rawTransaction' attribute: {signed_tx}")
