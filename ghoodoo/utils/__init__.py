"""Shared utilities: logging setup, retry policy and webhook signatures."""
