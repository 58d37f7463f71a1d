"""Signing wallet for Gateway transfers.

A transfer signs on two chains with one key:
the burn intent and the deposit on the source chain, the mint on the destination chain.
:py:class:`HotWallet` is that key, passed explicitly to every step that signs.
There is no process-wide account.
"""

import logging
import os
from dataclasses import dataclass
from pprint import pformat

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction

from eth_bridge.compat import get_tx_broadcast_data

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SignedTransactionWithNonce:
    """Signed transaction, ready for ``eth_sendRawTransaction``.

    Keeps the unsigned dict for diagnosing broadcast failures.
    """

    raw_transaction: HexBytes

    hash: HexBytes

    nonce: int

    #: Chain the nonce belongs to
    chain_id: int

    #: Sender
    address: HexAddress

    #: Unsigned transaction fields
    source: dict | None = None

    def __repr__(self):
        return f"<Signed tx {Web3.to_hex(self.hash)} on chain {self.chain_id}, nonce {self.nonce}>"


class HotWallet:
    """Private key held in process memory, with nonce bookkeeping per chain.

    The same address sends transactions on both ends of a transfer,
    so the next nonce is tracked separately for every chain id.
    A chain is synced from the node on its first transaction.

    Example:

    .. code-block:: python

        wallet = HotWallet.from_env()
        approve_fn = prepare_approve_for_deposit(web3, SupportedChain.base_sepolia, 1_000_000)
        tx_hash = wallet.transact_and_broadcast_with_contract(approve_fn)

    .. note ::

        Not thread safe. Two threads sending on the same chain at once can reuse a nonce.
    """

    def __init__(self, account: LocalAccount):
        self.account = account
        #: Chain id -> next unused nonce
        self.nonces: dict[int, int] = {}

    def __repr__(self):
        return f"<HotWallet {self.address}>"

    @property
    def address(self) -> HexAddress:
        return self.account.address

    def sync_nonce(self, web3: Web3):
        """Read the next nonce for the chain of ``web3`` from the node.

        A node value behind our own counter means our transactions are still pending,
        so the counter is kept.
        """
        chain_id = web3.eth.chain_id
        onchain_nonce = web3.eth.get_transaction_count(self.address)
        known_nonce = self.nonces.get(chain_id)

        if known_nonce is not None and onchain_nonce < known_nonce:
            logger.warning("Chain %d reports nonce %d for %s, we are already at %d, keeping ours", chain_id, onchain_nonce, self.address, known_nonce)
            return

        self.nonces[chain_id] = onchain_nonce
        logger.info("Nonce of %s on chain %d is %d", self.address, chain_id, onchain_nonce)

    def allocate_nonce(self, chain_id: int) -> int:
        """Take the next nonce on a chain."""
        assert chain_id in self.nonces, f"{self}: nonce for chain {chain_id} not synced"
        nonce = self.nonces[chain_id]
        self.nonces[chain_id] = nonce + 1
        return nonce

    def sign_transaction_with_new_nonce(self, tx: dict) -> SignedTransactionWithNonce:
        """Fill in the nonce and sign.

        :param tx:
            Unsigned transaction with ``chainId`` and without ``nonce``.
            The nonce is written into this dict.
        """
        assert isinstance(tx, dict), f"Got {type(tx)}"
        assert "nonce" not in tx, f"Nonce already set: {tx}"
        assert "chainId" in tx, f"No chainId: {tx}"

        chain_id = tx["chainId"]
        tx["nonce"] = self.allocate_nonce(chain_id)
        signed = self.account.sign_transaction(tx)

        return SignedTransactionWithNonce(
            raw_transaction=get_tx_broadcast_data(signed),
            hash=HexBytes(signed.hash),
            nonce=tx["nonce"],
            chain_id=chain_id,
            address=self.address,
            source=tx,
        )

    def transact_and_broadcast_with_contract(
        self,
        func: ContractFunction,
        gas_limit: int | None = None,
    ) -> HexBytes:
        """Sign and send a contract call. Does not wait for the receipt.

        Gas limit and fees are filled in by web3.py, which estimates gas against the node.
        A node refusing the estimate, e.g. for lack of gas funds, raises here.
        When the node refuses the signed transaction itself, its nonce is released
        so the next call on the chain reuses it.

        :param func:
            Bound contract call, like ``usdc.functions.approve(spender, amount)``

        :param gas_limit:
            Skip the gas estimate result and use this limit

        :return:
            Transaction hash
        """
        assert isinstance(func, ContractFunction), f"Expected ContractFunction, got {type(func)}"
        web3 = func.w3
        chain_id = web3.eth.chain_id

        if chain_id not in self.nonces:
            self.sync_nonce(web3)

        tx = func.build_transaction({"from": self.address, "chainId": chain_id})

        if gas_limit is not None:
            tx["gas"] = gas_limit

        # EIP-1559 and legacy fee fields are mutually exclusive
        if "maxFeePerGas" in tx:
            tx.pop("gasPrice", None)

        try:
            signed = self.sign_transaction_with_new_nonce(tx)
        except Exception as e:
            raise RuntimeError(f"Signing failed on chain {chain_id}:\n{pformat(tx)}") from e

        try:
            tx_hash = web3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            # Refused transactions never reach the mempool, the nonce is still free
            logger.warning("Broadcast of %s on chain %d refused, releasing nonce %d: %s", func.fn_name, chain_id, signed.nonce, e)
            self.nonces[chain_id] = signed.nonce
            raise

        logger.info("Sent %s to %s on chain %d, nonce %d", func.fn_name, func.address, chain_id, signed.nonce)
        return tx_hash

    @classmethod
    def from_private_key(cls, key: str) -> "HotWallet":
        """Load a 0x-prefixed hex private key."""
        assert isinstance(key, str), f"Private key must be str, got {type(key)}"
        assert key.startswith("0x"), f"Private key must be 0x prefixed, got {key[0:4]}..."
        return cls(Account.from_key(key))

    @classmethod
    def from_env(cls, env_var: str = "EVM_PRIVATE_KEY") -> "HotWallet":
        """Load the private key from an environment variable.

        Surrounding whitespace is stripped and a missing ``0x`` prefix is added.

        :raise ValueError:
            The environment variable is not set
        """
        key = os.environ.get(env_var, "").strip()
        if not key:
            raise ValueError(f"{env_var} not set in environment")
        if not key.startswith("0x"):
            key = "0x" + key
        return cls.from_private_key(key)
