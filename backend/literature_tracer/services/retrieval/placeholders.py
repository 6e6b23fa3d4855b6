"""
Static placeholder literature.

Served for every sentence when the neural provider is unavailable and
PRIMARY_UNAVAILABLE_POLICY is "placeholder". Responses carrying these
records are always flagged degraded.
"""
from typing import List

from literature_tracer.schemas.literature import CandidateRecord, SourceProvider

PLACEHOLDER_NOTICE = (
    "Neural search is unavailable; showing placeholder literature that is not "
    "related to the submitted text."
)

_PLACEHOLDER_DATA = [
    {
        "title": "Machine Learning Applications in Medical Diagnosis: A Comprehensive Review",
        "authors": ["Zhang, L.", "Wang, M.", "Chen, X."],
        "journal": "Nature Medicine",
        "year": 2023,
        "identifier": "10.1038/s41591-023-02156-7",
        "abstract": (
            "This comprehensive review examines the current state and future prospects of "
            "machine learning applications in medical diagnosis, covering imaging, pathology "
            "and clinical decision support."
        ),
        "supporting_pages": 15,
        "impact_factor": 87.241,
        "citation_count": 342,
    },
    {
        "title": "Deep Learning for Automated Medical Image Analysis",
        "authors": ["Liu, Y.", "Brown, J.", "Smith, K."],
        "journal": "The Lancet Digital Health",
        "year": 2023,
        "identifier": "10.1016/S2589-7500(23)00045-2",
        "abstract": (
            "We present a deep learning framework for automated analysis of medical images "
            "and evaluate it across radiology, dermatology and ophthalmology datasets."
        ),
        "supporting_pages": 12,
        "impact_factor": 23.317,
        "citation_count": 189,
    },
    {
        "title": "AI-Assisted Clinical Decision Making: Current Challenges and Future Directions",
        "authors": ["Johnson, R.", "Davis, A.", "Wilson, P."],
        "journal": "JAMA",
        "year": 2022,
        "identifier": "10.1001/jama.2022.15234",
        "abstract": (
            "This article discusses the integration of artificial intelligence into clinical "
            "decision-making processes, highlighting current challenges and future directions."
        ),
        "supporting_pages": 8,
        "impact_factor": 157.335,
        "citation_count": 567,
    },
    {
        "title": "Climate Change Impact on Species Distribution Patterns",
        "authors": ["Anderson, M.", "Thompson, S.", "Garcia, R."],
        "journal": "Science",
        "year": 2023,
        "identifier": "10.1126/science.abcd1234",
        "abstract": (
            "Using long-term observational data, we analyze how climate change shifts the "
            "geographic distribution of terrestrial and marine species."
        ),
        "supporting_pages": 10,
        "impact_factor": 63.714,
        "citation_count": 234,
    },
    {
        "title": "Quantum Computing Applications in Optimization Problems",
        "authors": ["Kumar, A.", "Lee, S.", "Patel, N."],
        "journal": "Nature",
        "year": 2023,
        "identifier": "10.1038/s41586-023-05678-9",
        "abstract": (
            "We demonstrate quantum algorithms for combinatorial optimization problems and "
            "compare their performance against classical heuristics."
        ),
        "supporting_pages": 7,
        "impact_factor": 69.504,
        "citation_count": 156,
    },
]


def placeholder_records() -> List[CandidateRecord]:
    """Fresh copies of the placeholder records (verified, bibliographic)."""
    return [
        CandidateRecord(source_provider=SourceProvider.BIBLIOGRAPHIC, **data)
        for data in _PLACEHOLDER_DATA
    ]
