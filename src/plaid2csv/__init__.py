"""Export Plaid transactions and investment activity to CSV."""

__version__ = "0.1.2"
