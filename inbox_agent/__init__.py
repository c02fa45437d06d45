"""
Inbox Agent.

Triage unseen mail in one pass: reply to important messages and unsubscribe
from marketing mail.
"""

__version__ = '0.1.0'
