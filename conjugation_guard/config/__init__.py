"""
Configuration for Conjugation Guard.

Application settings from YAML and per-user settings from the durable store.
"""
