"""Utility modules for cockroach_ops."""

from cockroach_ops.utils.serialization import dumps, read_json

__all__ = [
    "dumps",
    "read_json",
]
