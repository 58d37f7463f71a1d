"""HTTP session for the Gateway API.

- Retries on rate limiting and gateway errors, verbose about it

- The Gateway API is POST only, so POST must be whitelisted for retries
"""

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3 import Retry

from eth_bridge.gateway.errors import GatewayAPIError

logger = logging.getLogger(__name__)

#: Default number of retries for API requests
DEFAULT_RETRIES = 5

#: Default backoff factor for retries (seconds)
DEFAULT_BACKOFF_FACTOR = 0.5


class LoggingRetry(Retry):
    """``Retry()`` policy that logs every retry.

    Used instead of silently retrying, so we see when the Gateway API is throttling us.
    """

    def __init__(self, *args, **kwargs):
        self.logger = kwargs.pop("logger", logger)
        super().__init__(*args, **kwargs)

    def new(self, **kw):
        new_retry = super().new(**kw)
        new_retry.logger = self.logger
        return new_retry

    def increment(self, method=None, url=None, response=None, error=None, _pool=None, _stacktrace=None):
        if response:
            status = response.status
            reason = response.reason
        else:
            status = None
            reason = str(error)

        url_shortened = (url or "")[0:96]

        self.logger.warning("Retrying: %s %s (status: %s, reason: %s)", method, url_shortened, status, reason)
        return super().increment(method, url, response, error, _pool, _stacktrace)


def create_gateway_session(
    retries: int = DEFAULT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> requests.Session:
    """Create a requests Session configured for the Gateway API.

    Retries 429 and 502-504 responses with exponential backoff.
    After the retries are exhausted the last response is returned, not raised,
    so callers can report its status and body.

    Example::

        session = create_gateway_session()
        balances = fetch_vault_balances([SupportedChain.base_sepolia], depositor, session=session)
    """
    session = requests.Session()
    retry_policy = LoggingRetry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 502, 503, 504],
        respect_retry_after_header=True,
        raise_on_status=False,
        allowed_methods=Retry.DEFAULT_ALLOWED_METHODS | frozenset(["POST"]),
        logger=logger,
    )
    adapter = HTTPAdapter(max_retries=retry_policy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Content-Type": "application/json"})
    return session


def post_gateway_api(
    session: requests.Session,
    url: str,
    payload: dict | list,
    timeout: float,
) -> requests.Response:
    """POST JSON to the Gateway API.

    :return:
        Successful response, body not yet parsed

    :raise GatewayAPIError:
        Non-2xx response, or the request did not complete
    """
    try:
        response = session.post(url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        raise GatewayAPIError(f"Gateway API request failed: {url}: {e}") from e

    if not response.ok:
        raise GatewayAPIError(
            f"Gateway API error: {response.status_code} {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    return response
