"""Excel exports for audit results."""
