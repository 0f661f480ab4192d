"""
Database models package
"""

from .event import Event
from .transaction import Transaction

__all__ = ["Event", "Transaction"]
