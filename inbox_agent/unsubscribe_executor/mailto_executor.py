"""
Mailto Unsubscribe Executor

Handles unsubscribe execution for mailto: List-Unsubscribe entries by
dispatching a request message through the mail transport. Recipients refused
by the transport, and transport exceptions, become failed results.
"""

import smtplib
import socket
from typing import Any, Optional

from ..email_processor.smtp_client import OutgoingMessage
from ..email_processor.unsubscribe.constants import (
    EMAIL_PATTERN, DEFAULT_MAILTO_SUBJECT, DEFAULT_MAILTO_BODY
)
from ..email_processor.unsubscribe.resolver import parse_mailto_target
from ..email_processor.unsubscribe.types import ExecutionResult
from .base_executor import BaseUnsubscribeExecutor


class MailtoUnsubscribeExecutor(BaseUnsubscribeExecutor):
    """Execute unsubscribe requests by email."""

    def __init__(
        self,
        from_address: str,
        rate_limit_delay: Optional[float] = None
    ):
        """
        Initialize mailto executor.

        Args:
            from_address: Address the unsubscribe request is sent from
            rate_limit_delay: Delay in seconds between email sends
        """
        super().__init__(rate_limit_delay=rate_limit_delay)
        self.from_address = from_address

    @property
    def method_name(self) -> str:
        return 'email'

    def _validate_endpoint(self, endpoint: str) -> Optional[str]:
        error = super()._validate_endpoint(endpoint)
        if error:
            return error

        if not EMAIL_PATTERN.match(parse_mailto_target(endpoint).address):
            return f'Not a valid unsubscribe address: {endpoint}'
        return None

    def compose_request(self, endpoint: str) -> OutgoingMessage:
        """Build the unsubscribe message, honouring mailto subject/body fields."""
        target = parse_mailto_target(endpoint)
        return OutgoingMessage(
            from_addr=self.from_address,
            to_addr=target.address,
            subject=target.subject or DEFAULT_MAILTO_SUBJECT,
            body=target.body or DEFAULT_MAILTO_BODY
        )

    def _perform_execution(self, endpoint: str, transport=None, **options: Any) -> ExecutionResult:
        """
        Send the unsubscribe request.

        Args:
            endpoint: mailto target ("address?subject=...")
            transport: Mail transport exposing send(OutgoingMessage)

        Returns:
            ExecutionResult, failed when any recipient was refused
        """
        if transport is None:
            return ExecutionResult.failed('Mail transport not available')

        message = self.compose_request(endpoint)

        try:
            outcome = transport.send(message)

        except smtplib.SMTPAuthenticationError as e:
            return ExecutionResult.failed(f'SMTP authentication error: {str(e)}', raised=True)

        except smtplib.SMTPException as e:
            return ExecutionResult.failed(f'SMTP error: {str(e)}', raised=True)

        except socket.timeout as e:
            return ExecutionResult.failed(f'Connection timeout: {str(e)}', raised=True)

        except OSError as e:
            return ExecutionResult.failed(f'Connection error: {str(e)}', raised=True)

        if outcome.rejected_recipients:
            return ExecutionResult.failed(
                f"Recipient rejected: {', '.join(outcome.rejected_recipients)}"
            )

        return ExecutionResult.ok(f'Unsubscribe request sent to {message.to_addr}')
