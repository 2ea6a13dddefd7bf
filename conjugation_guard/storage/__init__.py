"""
Storage layer for Conjugation Guard.

A SQLite-backed key-value store and the usage ledger built on it.
"""
