"""Shared utilities for omresolve."""

from utils.env_utils import env_bool, env_int, env_list, env_value
from utils.hashing import hash_sha256_hex

__all__ = [
    "env_bool",
    "env_int",
    "env_list",
    "env_value",
    "hash_sha256_hex",
]
