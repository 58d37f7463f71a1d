"""Contract ABIs we interact with.

Only the functions we call are included.
Full ABIs are available in `Circle's evm-gateway-contracts <https://github.com/circlefin/evm-gateway-contracts>`__.
"""

from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract

#: Ethereum 0x0000000000000000000000000000000000000000 address
ZERO_ADDRESS = HexAddress("0x0000000000000000000000000000000000000000")

#: ERC-20 subset: balance reads and approvals
ERC20_ABI = [
    {
        "inputs": [{"internalType": "address", "name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "spender", "type": "address"},
            {"internalType": "uint256", "name": "value", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

#: GatewayWallet: the custodial vault holding deposited USDC
GATEWAY_WALLET_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "token", "type": "address"},
            {"internalType": "uint256", "name": "value", "type": "uint256"},
        ],
        "name": "deposit",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

#: GatewayMinter: mints USDC on the destination chain against an attestation
GATEWAY_MINTER_ABI = [
    {
        "inputs": [
            {"internalType": "bytes", "name": "attestationPayload", "type": "bytes"},
            {"internalType": "bytes", "name": "signature", "type": "bytes"},
        ],
        "name": "gatewayMint",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def get_deployed_contract(
    web3: Web3,
    abi: list[dict],
    address: HexAddress | str,
) -> Contract:
    """Get a Contract proxy object for a contract deployed at a specific address.

    :param abi:
        One of ABI lists in this module

    :param address:
        Address of the deployed contract, checksummed or not
    """
    assert address, "get_deployed_contract() address was None"
    return web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
