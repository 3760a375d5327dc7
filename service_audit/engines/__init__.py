"""Reconciliation engines."""
