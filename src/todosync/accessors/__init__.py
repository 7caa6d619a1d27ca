"""
Replica accessors: the read/write boundary of the reconciler.
"""

from .base import ReplicaAccessor
from .file import JsonFileAccessor
from .graphql import GraphQLAccessor
from .memory import InMemoryAccessor

__all__ = [
    "ReplicaAccessor",
    "InMemoryAccessor",
    "JsonFileAccessor",
    "GraphQLAccessor",
]
