import logging
from abc import ABC, abstractmethod

import requests

logger = logging.getLogger(__name__)


class AuthorizationGate(ABC):
    """Yes/no access decision for an identity"""

    @abstractmethod
    def is_authorized(self, identity: str) -> bool:
        pass


class HttpAuthorizationGate(AuthorizationGate):
    """
    Asks the authorization service whether an email is registered.

    Fails closed: an unreachable service, an error status or an unexpected
    body all count as "not authorized".
    """

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def is_authorized(self, identity: str) -> bool:
        endpoint = f"{self.base_url}/is-authorized"

        try:
            response = requests.get(endpoint, params={"email": identity}, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Authorization service unreachable at {endpoint}: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"Authorization service returned HTTP {response.status_code} for {identity}")
            return False

        try:
            decision = response.json()
        except ValueError as e:
            logger.warning(f"Authorization service returned a non-JSON body: {e}")
            return False

        if not isinstance(decision, bool):
            logger.warning(f"Authorization service returned a non-boolean decision: {decision!r}")
            return False

        return decision
