"""Ambient infrastructure: errors, configuration and logging."""
