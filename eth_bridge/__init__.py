"""Move USDC between EVM chains and Arc with Circle Gateway.

- :py:mod:`eth_bridge.gateway.transfer` for the end-to-end transfer

- :py:mod:`eth_bridge.chain` for supported chains
"""
