"""
Client for the Vencode video encoding service.
"""

import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import __version__
from .builder import JobBuilder
from .config import ClientConfig
from .exceptions import ConnectionFailedError, SubscriptionError, error_for_status
from .models import Job
from .registry import Subscription
from .subscriptions import CloseCallback, EventCallback, SubscriptionManager

logger = logging.getLogger(__name__)


class VencodeClient:
    """Client for submitting encoding jobs and following their progress."""

    def __init__(self, config: ClientConfig):
        """
        Initialize the Vencode client.

        Args:
            config: Client configuration (credentials, base URL, retry settings)
        """
        self.config = config
        self.base_url = config.base_url
        self.timeout = config.timeout

        self.session = requests.Session()

        # Configure retries
        retry_strategy = Retry(
            total=config.max_retries,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS", "POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        # Set headers
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': f'vencode-client/{__version__}',
            'x-api-key': config.access.api_key,
            'x-user-id': config.access.user_id,
        })
        self.session.headers.update(config.headers)

        self._subscriptions: Optional[SubscriptionManager] = None
        self._closed = False

    def __enter__(self) -> "VencodeClient":
        return self

    def __exit__(self, *args: Any):
        self.close()

    @property
    def subscriptions(self) -> SubscriptionManager:
        if self._closed:
            raise SubscriptionError("Client is closed")
        if self._subscriptions is None:
            self._subscriptions = SubscriptionManager(self.config)
        return self._subscriptions

    def close(self):
        """Stop all event subscriptions and release the HTTP session."""
        self._closed = True
        if self._subscriptions is not None:
            self._subscriptions.close()
        self.session.close()

    def request(self, method: str, path: str, **kwargs) -> Any:
        """
        Issue an authenticated request against the API.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            **kwargs: Passed through to requests (json, params, ...)

        Returns:
            Parsed JSON body, or None for an empty body

        Raises:
            APIError: The service answered with an error status
            ConnectionFailedError: No response was received
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ConnectionFailedError(str(e)) from e

        body = self._parse_body(response)
        if not response.ok:
            message = response.reason or "Request failed"
            if isinstance(body, dict):
                message = body.get('message') or body.get('error') or body.get('detail') or message
            error = error_for_status(response.status_code, str(message), body)
            logger.error(f"{method} {path} failed: {error}")
            raise error

        return body

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def job(self) -> JobBuilder:
        """Start building a job bound to this client."""
        return JobBuilder(self)

    def encode(self, job_spec: Dict[str, Any]) -> Job:
        """
        Submit an encoding job.

        A notification target configured on the client replaces the one in
        the job; storage credentials are attached when configured.

        Args:
            job_spec: Job specification, e.g. from JobBuilder.to_json()

        Returns:
            Job object
        """
        payload = dict(job_spec)
        if self.config.notify:
            payload['notify'] = self.config.notify
        if self.config.storage and 'storage' not in payload:
            payload['storage'] = self.config.storage.to_dict()

        data = self.request('POST', '/jobs', json=payload)
        job = Job.from_dict(data if isinstance(data, dict) else {})
        logger.info(f"Submitted job {job.id}")
        return job

    def stop_job(self, job_id: str) -> Any:
        """
        Cancel an active encoding job.

        Args:
            job_id: ID of the job to cancel

        Returns:
            Parsed response body
        """
        return self.request('POST', f'/jobs/{job_id}/cancel')

    def get_job_metadata(self, job_id: str) -> Job:
        """
        Retrieve the metadata of a job.

        Args:
            job_id: ID of the job

        Returns:
            Job object
        """
        data = self.request('GET', f'/jobs/{job_id}')
        return Job.from_dict(data if isinstance(data, dict) else {'id': job_id})

    def listen(self, job_id: str, callback: EventCallback, on_close: Optional[CloseCallback] = None) -> Subscription:
        """Receive progress events for one job. See SubscriptionManager.listen."""
        return self.subscriptions.listen(job_id, callback, on_close=on_close)

    def listen_all(self, callback: EventCallback, on_close: Optional[CloseCallback] = None) -> Subscription:
        """Receive progress events for every job. See SubscriptionManager.listen_all."""
        return self.subscriptions.listen_all(callback, on_close=on_close)

    def stop_listening(self, topic: str) -> bool:
        """Stop a subscription by job ID, or "all" for the all-jobs feed."""
        if self._subscriptions is None:
            return False
        return self._subscriptions.stop_listening(topic)
