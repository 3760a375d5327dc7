"""Shared models, timestamp, normalization and validation helpers."""
