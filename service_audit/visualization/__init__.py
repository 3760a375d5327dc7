"""Summaries and charts for audit results."""
