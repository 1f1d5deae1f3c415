import logging
from typing import Optional

import requests

RENDER_API_URL = 'https://api.render.com/v1'


class RenderFleet:
    """
    Client for the instance count of a Render service.

    Args:
        service_id: Render service id, e.g. ``srv-abc123``
        api_key: Render API key, sent as a bearer token
        api_url: Base URL of the Render REST API
        timeout: Per-request timeout in seconds
        session: Optional preconfigured requests session
    """

    def __init__(self, service_id: str, api_key: str, api_url: str = RENDER_API_URL,
                 timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.service_id = service_id
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {api_key}',
        })

    def get_instance_count(self) -> Optional[int]:
        """
        Get the current number of instances of the service.

        Returns:
            Optional[int]: The instance count, or None if it could not be read
        """
        url = f"{self.api_url}/services/{self.service_id}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logging.error(f"Unable to retrieve current instance count: {e}")
            return None

        if response.status_code != requests.codes.ok:
            logging.error(f"Unable to retrieve current instance count: HTTP {response.status_code}")
            return None

        try:
            count = response.json()['serviceDetails']['numInstances']
        except (ValueError, KeyError, TypeError):
            logging.error("Unable to retrieve current instance count: unexpected response body")
            return None

        return int(count) if count is not None else None

    def scale(self, instances: int) -> bool:
        """
        Ask Render to run ``instances`` instances of the service.

        Returns:
            bool: Whether Render accepted the request
        """
        url = f"{self.api_url}/services/{self.service_id}/scale"
        try:
            response = self.session.post(url, json={'numInstances': instances}, timeout=self.timeout)
        except requests.RequestException as e:
            logging.error(f"Failed to scale to {instances} instances: {e}")
            return False

        if response.status_code != requests.codes.accepted:
            logging.error(f"Failed to scale to {instances} instances: HTTP {response.status_code}")
            return False

        return True
