"""Namespace layer for the streaming XML writer.

Key Components:
    Scope: Activation record holding the bindings declared on one element
    NamespaceRegistry: Resolves URIs to prefixes and declares new bindings
"""

from .registry import NamespaceRegistry
from .scope import Scope

__all__ = [
    "NamespaceRegistry",
    "Scope",
]
