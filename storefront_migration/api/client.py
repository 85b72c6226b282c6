"""REST client for the destination platforms."""
import logging
from typing import Any, Dict, Optional

import requests

from config import DestinationApiConfig

logger = logging.getLogger(__name__)


class DestinationClient:
    """Client for a Medusa or Strapi REST API."""

    def __init__(self, config: DestinationApiConfig, system: str = "medusa"):
        """Initialize client."""
        self.config = config
        self.system = system
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

        if config.api_token:
            self.session.headers.update({"Authorization": f"Bearer {config.api_token}"})

    def url(self, endpoint: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def post(self, endpoint: str, payload: Dict[str, Any]) -> Any:
        """
        POST a JSON body.

        Raises:
            requests.HTTPError: non-2xx response
            requests.RequestException: transport failure
        """
        response = self.session.post(self.url(endpoint), json=payload, timeout=self.config.timeout)
        response.raise_for_status()
        return self._body(response)

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document."""
        response = self.session.get(self.url(endpoint), params=params, timeout=self.config.timeout)
        response.raise_for_status()
        return self._body(response)

    @staticmethod
    def _body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


def describe_error(error: requests.RequestException) -> str:
    """Error text for a failed request: "<status>: <body>" when a response exists."""
    response = getattr(error, "response", None)
    if response is not None:
        return f"{response.status_code}: {response.text}"
    return str(error)
