"""Circle Gateway burn-and-mint USDC transfers.

A Gateway transfer goes through these steps:

1. USDC is deposited into the ``GatewayWallet`` vault contract on the source chain,
   see :py:mod:`eth_bridge.gateway.deposit` and :py:mod:`eth_bridge.gateway.balances`
2. The depositor signs an EIP-712 burn intent, see :py:mod:`eth_bridge.gateway.intent`
3. The Gateway API checks the intent against the vault balance and returns an attestation,
   see :py:mod:`eth_bridge.gateway.attestation`
4. ``gatewayMint()`` on the destination chain ``GatewayMinter`` mints USDC,
   see :py:mod:`eth_bridge.gateway.mint`

:py:mod:`eth_bridge.gateway.transfer` runs all of the above.

- `Gateway documentation <https://developers.circle.com/gateway>`__
"""
