"""Parsers for Plaid response bodies"""

from .base import DataTransformer
from .plaid_parser import ResponseParser

__all__ = ['DataTransformer', 'ResponseParser']
