"""Gateway attestation API client.

Exchange signed burn intents for an attestation the destination ``GatewayMinter`` accepts.

Gateway checks the intents against the vault balances, reserves the funds
and co-signs the attestation. From this point on the burn will happen
on the source chain regardless of whether the mint is ever executed.

Example::

    attestation = request_attestation([sign_burn_intent(intent, wallet)])
    mint_fn = prepare_gateway_mint(web3_destination, attestation)
"""

import logging
from dataclasses import dataclass

import requests
from hexbytes import HexBytes
from web3 import Web3

from eth_bridge.gateway.config import GatewayConfig
from eth_bridge.gateway.errors import MalformedAttestationResponse
from eth_bridge.gateway.intent import SignedBurnIntent
from eth_bridge.gateway.session import create_gateway_session, post_gateway_api

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GatewayAttestation:
    """Attestation and operator signature for ``gatewayMint()``."""

    #: Encoded attestation payload
    attestation: bytes

    #: Gateway operator signature over the payload
    signature: bytes

    def __repr__(self):
        return f"<GatewayAttestation {len(self.attestation)} bytes, signature {Web3.to_hex(self.signature)[0:12]}...>"


def request_attestation(
    signed_intents: list[SignedBurnIntent],
    session: requests.Session | None = None,
    config: GatewayConfig | None = None,
) -> GatewayAttestation:
    """Submit signed burn intents to ``POST /v1/transfer``.

    Several intents, e.g. from different source chains, can be combined into one mint.

    :param signed_intents:
        At least one signed intent

    :raise GatewayAPIError:
        Gateway rejected the request. The message includes the HTTP status and body.

    :raise MalformedAttestationResponse:
        Response lacks the attestation or the signature
    """
    assert len(signed_intents) > 0, "No burn intents"

    if session is None:
        session = create_gateway_session()

    if config is None:
        config = GatewayConfig()

    payload = [s.to_request_payload() for s in signed_intents]
    url = config.get_api_url("/v1/transfer")

    logger.info("Requesting Gateway attestation for %d burn intent(s)", len(payload))

    response = post_gateway_api(session, url, payload, timeout=config.api_timeout.total_seconds())

    try:
        data = response.json()
    except ValueError as e:
        raise MalformedAttestationResponse(f"Gateway /v1/transfer response is not JSON: {response.text}", status_code=response.status_code, body=response.text) from e

    attestation = data.get("attestation") if isinstance(data, dict) else None
    signature = data.get("signature") if isinstance(data, dict) else None

    if not attestation or not signature:
        raise MalformedAttestationResponse(
            "Missing attestation or signature in response",
            status_code=response.status_code,
            body=response.text,
        )

    result = GatewayAttestation(
        attestation=bytes(HexBytes(attestation)),
        signature=bytes(HexBytes(signature)),
    )
    logger.info("Received %s", result)
    return result
