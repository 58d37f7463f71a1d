"""USDC token helpers.

- Decimal <-> raw ``uint256`` conversion for USDC

- Minimal ERC-20 bindings for balance reads and approvals

Raw token amounts are always Python ``int`` in the smallest unit.
Human amounts are always :py:class:`Decimal`.
Conversion from human to raw happens exactly once, in :py:func:`convert_usdc_to_raw`,
and rounds half up.
"""

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal

from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract

from eth_bridge.abi import ERC20_ABI, get_deployed_contract

#: USDC has 6 decimals on every chain
USDC_DECIMALS = 6

_USDC_UNIT = Decimal(10) ** USDC_DECIMALS


def convert_usdc_to_raw(amount: Decimal) -> int:
    """Convert a human USDC amount to raw token units.

    Rounds half up to the nearest raw unit.

    .. code-block:: python

        assert convert_usdc_to_raw(Decimal("1")) == 1_000_000
        assert convert_usdc_to_raw(Decimal("0.0000005")) == 1
    """
    assert isinstance(amount, Decimal), f"Expected Decimal, got {type(amount)}"
    return int((amount * _USDC_UNIT).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def convert_usdc_to_raw_ceil(amount: Decimal) -> int:
    """Convert a human USDC amount to raw token units, rounding up.

    Used when we must have *at least* the amount, e.g. deposits.
    """
    assert isinstance(amount, Decimal), f"Expected Decimal, got {type(amount)}"
    return int((amount * _USDC_UNIT).quantize(Decimal(1), rounding=ROUND_CEILING))


def convert_raw_to_usdc(raw_amount: int) -> Decimal:
    """Convert raw token units to a human USDC amount."""
    assert type(raw_amount) == int, f"Got {type(raw_amount)}, expected int: {raw_amount}"
    return Decimal(raw_amount) / _USDC_UNIT


def get_usdc_contract(web3: Web3, address: HexAddress | str) -> Contract:
    """Bind the USDC ERC-20 contract on a chain."""
    return get_deployed_contract(web3, ERC20_ABI, address)


def fetch_usdc_balance(web3: Web3, token_address: HexAddress | str, holder: HexAddress | str) -> int:
    """Read ``balanceOf()`` in raw units."""
    usdc = get_usdc_contract(web3, token_address)
    return usdc.functions.balanceOf(Web3.to_checksum_address(holder)).call()
