"""
Record identity and deduplication.

The same publication routinely comes back from both providers, and from
both CrossRef query styles, with slightly different metadata. Each record
gets a canonical key (DOI when there is one, otherwise normalized
title + first author + year) and records sharing a key are either dropped
(deduplicate) or folded into one richer record (merge_and_deduplicate).
"""
from functools import reduce
from typing import Dict, List, Mapping, Optional, Sequence

from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.literature import (
    CandidateRecord,
    MergedRecord,
    SourceProvider,
    canonical_key,
    normalize_text,
)

logger = get_logger(__name__)

# Optional fields backfilled from a duplicate when the base record lacks them
BACKFILL_FIELDS = ("abstract", "citation_count", "impact_factor", "supporting_pages")

# Lower value merges first and so becomes the structural base on ties
DEFAULT_PRECEDENCE: Mapping[SourceProvider, int] = {
    SourceProvider.BIBLIOGRAPHIC: 0,
    SourceProvider.NEURAL: 1,
}


def normalize_title(title: str) -> str:
    return normalize_text(title)


def deduplicate(records: Sequence[CandidateRecord]) -> List[CandidateRecord]:
    """
    Keep the first record seen for each canonical key, in input order.

    Callers wanting provider priority present higher-priority records first.
    """
    seen = set()
    unique = []
    for record in records:
        key = canonical_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def merge_records(first: CandidateRecord, second: CandidateRecord) -> MergedRecord:
    """
    Merge two observations of the same publication.

    A verified record is always the structural base over an unverified one.
    Otherwise the more complete record is the base, with ties going to
    `first`. Either way, optional fields absent on the base are taken from
    the other record; present values are never replaced.
    """
    if first.verified != second.verified:
        base, other = (first, second) if first.verified else (second, first)
    elif second.completeness_score > first.completeness_score:
        base, other = second, first
    else:
        base, other = first, second

    updates = {
        field: getattr(other, field)
        for field in BACKFILL_FIELDS
        if getattr(base, field) is None and getattr(other, field) is not None
    }
    merged = MergedRecord.from_candidate(base)
    if updates:
        merged = merged.model_copy(update=updates)
    return merged


def merge_and_deduplicate(
    records: Sequence[CandidateRecord],
    precedence: Optional[Mapping[SourceProvider, int]] = None,
) -> List[MergedRecord]:
    """
    Collapse records sharing a canonical key into one MergedRecord each.

    Groups keep the order in which their key was first seen. Within a group,
    members are folded in `precedence` order (stable), so provider priority is
    an explicit choice rather than a side effect of call order.

    Args:
        records: Candidates from any mix of providers
        precedence: Provider -> rank, lower first. Input order when omitted.
    """
    groups: Dict[str, List[CandidateRecord]] = {}
    for record in records:
        groups.setdefault(canonical_key(record), []).append(record)

    merged = []
    for key, members in groups.items():
        if precedence is not None:
            members = sorted(members, key=lambda r: precedence.get(r.source_provider, len(precedence)))
        if len(members) > 1:
            logger.debug(f"Merging {len(members)} observations of {key[:80]}")
            merged.append(reduce(merge_records, members))
        else:
            merged.append(MergedRecord.from_candidate(members[0]))

    return merged
