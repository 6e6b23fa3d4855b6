"""
Literature providers.

Each provider is implemented in its own module for maintainability.
All search methods are async for parallel execution.

To add a new provider:
1. Create a new file (e.g., new_source.py)
2. Implement a LiteratureSource subclass plus a normalize_* function
3. Export it here
4. Wire it into the retrieval pipeline
"""
from .base import LiteratureSource
from .exa import ExaSource, normalize_exa_result
from .crossref import CrossrefSource, normalize_crossref_work

__all__ = [
    "LiteratureSource",
    "ExaSource",
    "CrossrefSource",
    "normalize_exa_result",
    "normalize_crossref_work",
]
