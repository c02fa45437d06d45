"""
Base Unsubscribe Executor

Provides common functionality for all unsubscribe execution methods:
- Endpoint validation before any network access
- Rate limiting between requests of the same executor
- Conversion of every failure into an ExecutionResult value
- Structured logging of every attempt

Subclasses implement the channel-specific request in _perform_execution.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..config.settings import Config
from ..email_processor.unsubscribe.types import ExecutionResult
from ..logging import AgentLogger


class BaseUnsubscribeExecutor(ABC):
    """
    Abstract base class for unsubscribe executors.

    execute() never raises: validation problems, transport errors and
    unexpected exceptions all come back as ExecutionResult(success=False).
    """

    def __init__(
        self,
        timeout: Optional[int] = None,
        rate_limit_delay: Optional[float] = None
    ):
        """
        Initialize base executor.

        Args:
            timeout: Request timeout in seconds
            rate_limit_delay: Minimum delay in seconds between requests
        """
        self.timeout = timeout if timeout is not None else Config.REQUEST_TIMEOUT
        self.rate_limit_delay = rate_limit_delay if rate_limit_delay is not None else Config.RATE_LIMIT_DELAY
        self._last_request_time: Optional[float] = None
        self.logger = AgentLogger(f"executor.{self.method_name}")

    @property
    @abstractmethod
    def method_name(self) -> str:
        """Return the channel name (http, email)."""
        pass

    def execute(self, endpoint: str, **options: Any) -> ExecutionResult:
        """
        Execute an unsubscribe request (template method).

        Workflow:
        1. Validate the endpoint
        2. Apply rate limiting
        3. Perform the channel-specific request
        4. Log and count the outcome

        Args:
            endpoint: URL or mailto target to act on
            **options: Channel-specific options

        Returns:
            ExecutionResult with success flag and detail
        """
        error = self._validate_endpoint(endpoint)
        if error:
            result = ExecutionResult.failed(error)
            self._log_result(endpoint, result)
            return result

        self._apply_rate_limit()

        try:
            result = self._perform_execution(endpoint, **options)
        except Exception as e:
            self.logger.exception("Unsubscribe request raised", {"endpoint": endpoint})
            result = ExecutionResult.failed(f'Unexpected error: {str(e)}', raised=True)

        self._log_result(endpoint, result)
        return result

    def _validate_endpoint(self, endpoint: str) -> Optional[str]:
        """Return an error message if the endpoint cannot be executed."""
        if not endpoint or not endpoint.strip():
            return 'No unsubscribe endpoint provided'
        return None

    @abstractmethod
    def _perform_execution(self, endpoint: str, **options: Any) -> ExecutionResult:
        """
        Perform the channel-specific request.

        May raise; execute() converts exceptions into failed results.
        """
        pass

    def _apply_rate_limit(self):
        """Apply rate limiting delay between requests."""
        if self._last_request_time is not None:
            elapsed = time.time() - self._last_request_time
            if elapsed < self.rate_limit_delay:
                time.sleep(self.rate_limit_delay - elapsed)

        self._last_request_time = time.time()

    def _log_result(self, endpoint: str, result: ExecutionResult):
        extra = {
            "endpoint": endpoint,
            "success": result.success,
            "detail": result.detail,
            "status_code": result.status_code
        }
        if result.success:
            self.logger.info("Unsubscribe request accepted", extra)
        else:
            self.logger.warning("Unsubscribe request failed", extra)
