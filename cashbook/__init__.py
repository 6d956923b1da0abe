"""Cashbook - transaction ledger with monthly limit enforcement."""

__version__ = "0.1.0"
