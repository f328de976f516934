"""
Parsing modules for synres.

- classifier: Artifact type table and classification rules
- handlers: Priority-ordered handlers for registry content
- scanner: Project tree scanning
"""

from .classifier import TypeClassifier
from .handlers import HandlerChain, RegistryHandler, build_handler_chain
from .scanner import ArtifactScanner, normalize_requests

__all__ = [
    "TypeClassifier",
    "HandlerChain", "RegistryHandler", "build_handler_chain",
    "ArtifactScanner", "normalize_requests",
]
