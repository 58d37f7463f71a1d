"""Shared fixtures for Gateway tests.

The Gateway API is mocked at ``requests.Session.post``
and chains at the web3 / contract function boundary.
"""

import json
from unittest.mock import Mock

import pytest
from eth_account import Account

from eth_bridge.gateway.attestation import GatewayAttestation
from eth_bridge.hotwallet import HotWallet


@pytest.fixture()
def wallet() -> HotWallet:
    """A throwaway signing wallet."""
    return HotWallet(Account.create())


@pytest.fixture()
def attestation() -> GatewayAttestation:
    return GatewayAttestation(attestation=b"\x01" * 96, signature=b"\x02" * 65)


@pytest.fixture()
def make_response():
    """Factory for mocked ``requests.Response``."""

    def _make(status_code: int = 200, json_data=None, text: str | None = None) -> Mock:
        response = Mock()
        response.status_code = status_code
        response.ok = status_code < 400
        if text is None:
            text = json.dumps(json_data)
        response.text = text
        if json_data is None:
            response.json.side_effect = ValueError("Expecting value")
        else:
            response.json.return_value = json_data
        return response

    return _make


@pytest.fixture()
def session() -> Mock:
    """Mocked Gateway API session, set ``session.post.return_value`` or ``side_effect`` in the test."""
    return Mock()
