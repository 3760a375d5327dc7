"""Ingestion pipelines for raw service files."""
