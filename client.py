# Gateway clients used by the Session Coordinator.
#
# GatewayClient talks to a deployed gateway over HTTP; LocalGateway runs the
# same lookup in-process when no GATEWAY_URL is configured. Both return the
# backend's JSON object and raise InvalidInputError / BackendError.

import logging
from typing import Any, Dict, Optional, Protocol

import requests

import ai
import constants
from config import get_config
from errors import BackendError, InvalidInputError

logger = logging.getLogger(__name__)


class Gateway(Protocol):
    def generate(self, term: str) -> Dict[str, Any]:
        ...


class GatewayClient:
    """POST {"word": term} to the gateway endpoint."""

    def __init__(self, url: str, session: Optional[requests.Session] = None) -> None:
        self.url = url
        self.session = session or requests.Session()

    def generate(self, term: str) -> Dict[str, Any]:
        word = ai.clean_term(term)
        try:
            response = self.session.post(
                self.url,
                json={"word": word},
                timeout=constants.GATEWAY_REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.error("Gateway request failed for %r: %s", word, e)
            raise BackendError(constants.ERROR_GENERATION_FAILED, details=str(e)) from e

        try:
            body = response.json()
        except ValueError as e:
            raise BackendError(
                constants.ERROR_GENERATION_FAILED,
                details=f"HTTP {response.status_code}: {response.text[:200]}",
            ) from e

        if not isinstance(body, dict):
            raise BackendError(constants.ERROR_GENERATION_FAILED, details=f"HTTP {response.status_code}: non-object body")
        if response.status_code == 400:
            raise InvalidInputError(body.get("error", constants.ERROR_WORD_REQUIRED))
        if response.status_code != 200 or "error" in body:
            error = body.get("error", constants.ERROR_GENERATION_FAILED)
            raise BackendError(error, details=body.get("details", f"HTTP {response.status_code}"))
        return body


class LocalGateway:
    """In-process gateway: same contract, no HTTP hop."""

    def __init__(self, openai_client: Optional[Any] = None) -> None:
        self.openai_client = openai_client

    def generate(self, term: str) -> Dict[str, Any]:
        return ai.generate_content(term, client=self.openai_client)


def get_gateway() -> Gateway:
    url = get_config()["gateway_url"]
    if url:
        return GatewayClient(url)
    return LocalGateway()
