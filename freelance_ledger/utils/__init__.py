"""Shared utilities: value converters and logging helpers."""
