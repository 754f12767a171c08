"""Model dependency resolution.

This package provides:
- models.py: strategy enum, model document and per-call context
- extractor.py: dependency discovery and expanded-document decomposition
- engine.py: the concurrent breadth-first resolver
"""

from .models import ModelDocument, ResolutionContext, ResolutionStrategy
from .extractor import parse_expanded, parse_model
from .engine import DependencyResolver

__all__ = [
    "ModelDocument",
    "ResolutionContext",
    "ResolutionStrategy",
    "parse_expanded",
    "parse_model",
    "DependencyResolver",
]
