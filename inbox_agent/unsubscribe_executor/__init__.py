"""
Unsubscribe Executor Module

Executes resolved unsubscribe channels. Executors never raise; every outcome
is an ExecutionResult.
"""

from .base_executor import BaseUnsubscribeExecutor
from .http_executor import HttpUnsubscribeExecutor
from .mailto_executor import MailtoUnsubscribeExecutor

__all__ = ['BaseUnsubscribeExecutor', 'HttpUnsubscribeExecutor', 'MailtoUnsubscribeExecutor']
