"""Utility functions."""

from src.utils.audit import get_client_ip, log_action
from src.utils.password import hash_password, needs_rehash, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "needs_rehash",
    "log_action",
    "get_client_ip",
]
