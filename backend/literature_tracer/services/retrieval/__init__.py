"""
Sentence-level Literature Retrieval

This package traces sentences back to literature by:
1. Fetching candidates from a neural search provider and CrossRef in parallel
2. Deduplicating them by canonical key (DOI, else title + first author + year)
3. Enriching neural candidates with CrossRef metadata
4. Merging duplicates field by field and ranking by quality
5. Evaluating the top records with an LLM judge (heuristic fallback)

Package Structure:
- pipeline.py: LiteraturePipeline orchestration
- deduplication.py: Canonical keys, deduplication and merging
- ranking.py: Quality ranking
- placeholders.py: Static records served when neural search is unavailable
"""

# Main pipeline - primary public interface
from .pipeline import LiteraturePipeline

# Individual components for advanced usage
from .deduplication import canonical_key, deduplicate, merge_and_deduplicate, merge_records
from .ranking import sort_by_quality
from .placeholders import placeholder_records

__all__ = [
    # Main pipeline
    "LiteraturePipeline",

    # Components
    "canonical_key",
    "deduplicate",
    "merge_records",
    "merge_and_deduplicate",
    "sort_by_quality",
    "placeholder_records",
]
