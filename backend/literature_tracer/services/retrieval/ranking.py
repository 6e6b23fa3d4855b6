"""
Literature ranking.

Orders deduplicated records by a fixed precedence of quality signals.
"""
from typing import List, Sequence, Tuple, TypeVar

from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.literature import CandidateRecord

logger = get_logger(__name__)

R = TypeVar("R", bound=CandidateRecord)


def quality_key(record: CandidateRecord) -> Tuple[bool, int, float, int, int]:
    """
    Sort key, ascending = better.

    Precedence: verified first, then citation count, impact factor,
    publication year (newer first) and completeness score. Missing counts
    and factors rank as 0.
    """
    return (
        not record.verified,
        -(record.citation_count or 0),
        -(record.impact_factor or 0.0),
        -record.year,
        -record.completeness_score,
    )


def sort_by_quality(records: Sequence[R]) -> List[R]:
    """
    Rank records by quality.

    Stable: records equal on every tier keep their input order.
    Returns a new list; the input is not modified.
    """
    ranked = sorted(records, key=quality_key)

    if ranked:
        logger.debug("Top records after ranking:")
        for r in ranked[:5]:
            marker = "[V]" if r.verified else "   "
            logger.debug(f"  {marker} [{r.citation_count or 0} cit, {r.year}] {r.title[:55]}")

    return ranked
