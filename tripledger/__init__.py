"""Offline trip expense ledger: transactional record store and budget math."""

__version__ = "0.1.0"
