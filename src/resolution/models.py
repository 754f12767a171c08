"""Data models for dependency resolution."""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, Set, Tuple


class ResolutionStrategy(Enum):
    """How transitive dependencies and expanded documents are used."""
    FULL = "full"
    DISABLED = "disabled"
    TRY_FROM_EXPANDED = "try_from_expanded"


@dataclass(frozen=True)
class ModelDocument:
    """A fetched model: its declared root identifier, raw content and dependencies."""
    dtmi: str
    content: str
    dependencies: Tuple[str, ...] = ()


@dataclass
class ResolutionContext:
    """Per-call working state; created by each resolve call and never shared."""
    visited: Set[str] = field(default_factory=set)
    pending: Deque[str] = field(default_factory=deque)
    results: Dict[str, str] = field(default_factory=dict)

    def mark(self, dtmi: str) -> bool:
        """Mark ``dtmi`` visited; return False if it already was."""
        if dtmi in self.visited:
            return False
        self.visited.add(dtmi)
        return True

    def enqueue(self, dtmi: str) -> bool:
        """Queue ``dtmi`` for fetching unless it was already visited."""
        if not self.mark(dtmi):
            return False
        self.pending.append(dtmi)
        return True

    def store(self, dtmi: str, content: str) -> bool:
        """Store content for ``dtmi``; the first writer wins."""
        if dtmi in self.results:
            return False
        self.results[dtmi] = content
        return True
