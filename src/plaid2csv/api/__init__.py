"""Provider API clients"""

from .plaid_client import PlaidClient

__all__ = ['PlaidClient']
