"""
HTTP Unsubscribe Executor

Handles unsubscribe execution against List-Unsubscribe HTTP endpoints:
- RFC 8058 one-click POST when the sender advertises it
- Plain GET otherwise
- Any 2xx response counts as success
"""

import urllib.parse
from typing import Any, Optional

import requests

from ..config.settings import Config
from ..email_processor.unsubscribe.constants import HTTP_SCHEMES, ONE_CLICK_POST_BODY
from ..email_processor.unsubscribe.types import ExecutionResult
from .base_executor import BaseUnsubscribeExecutor


class HttpUnsubscribeExecutor(BaseUnsubscribeExecutor):
    """Execute unsubscribe requests over HTTP."""

    def __init__(
        self,
        timeout: Optional[int] = None,
        user_agent: Optional[str] = None,
        rate_limit_delay: Optional[float] = None
    ):
        """
        Initialize HTTP executor.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header for requests
            rate_limit_delay: Delay in seconds between requests
        """
        super().__init__(timeout, rate_limit_delay)
        self.user_agent = user_agent or Config.USER_AGENT

    @property
    def method_name(self) -> str:
        return 'http'

    def _validate_endpoint(self, endpoint: str) -> Optional[str]:
        error = super()._validate_endpoint(endpoint)
        if error:
            return error

        parsed = urllib.parse.urlparse(endpoint)
        if parsed.scheme.lower() not in HTTP_SCHEMES or not parsed.netloc:
            return f'Not an HTTP endpoint: {endpoint}'
        return None

    def _perform_execution(self, endpoint: str, one_click: bool = False, **options: Any) -> ExecutionResult:
        """
        Request the unsubscribe URL.

        Args:
            endpoint: HTTP(S) unsubscribe URL
            one_click: POST "List-Unsubscribe=One-Click" instead of GET

        Returns:
            ExecutionResult with the HTTP status code
        """
        headers = {
            'User-Agent': self.user_agent
        }

        try:
            if one_click:
                headers['Content-Type'] = 'application/x-www-form-urlencoded'
                response = requests.post(
                    endpoint,
                    data=ONE_CLICK_POST_BODY,
                    headers=headers,
                    timeout=self.timeout,
                    allow_redirects=True
                )
            else:
                response = requests.get(
                    endpoint,
                    headers=headers,
                    timeout=self.timeout,
                    allow_redirects=True
                )

        except requests.exceptions.Timeout:
            return ExecutionResult.failed(f'Request timed out after {self.timeout} seconds')

        except requests.exceptions.ConnectionError as e:
            return ExecutionResult.failed(f'Connection error: {str(e)}')

        except requests.exceptions.RequestException as e:
            return ExecutionResult.failed(f'Request error: {str(e)}')

        method = 'POST' if one_click else 'GET'
        if 200 <= response.status_code < 300:
            return ExecutionResult.ok(
                f'{method} {endpoint} returned HTTP {response.status_code}',
                status_code=response.status_code
            )

        return ExecutionResult.failed(
            f'{method} {endpoint} returned HTTP {response.status_code}',
            status_code=response.status_code
        )
