"""Shared helpers for HTTP access and structured logging."""
