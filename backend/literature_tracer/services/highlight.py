"""
Relevance highlighting.

Marks the segments of a passage (typically an abstract) that relate to the
query sentence. Keyword overlap is always computed; when an LLM is
configured, segments that already pass the keyword threshold also get a
semantic score from the LLM and the two are blended.
"""
import asyncio
import re
from typing import List, Optional

from literature_tracer.core.config import settings
from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.search import HighlightResponse, HighlightSegment
from literature_tracer.services.cache import EvaluationCache
from literature_tracer.services.llm import get_llm, llm_available

logger = get_logger(__name__)

KEYWORD_THRESHOLD = 0.1
SEMANTIC_WEIGHT = 0.8

CJK_RUN = re.compile(r"[\u4e00-\u9fff]+")
LATIN_WORD = re.compile(r"[a-zA-Z]+")
SEGMENT_PATTERN = re.compile(r"[^.!?。！？；;\n\r]+[.!?。！？；;]*")
SCORE_PATTERN = re.compile(r"(\d*\.?\d+)")

CHINESE_STOPWORDS = frozenset({
    "的", "了", "在", "是", "我", "有", "和", "就", "不", "人", "都", "一", "一个", "上", "也", "很",
    "到", "说", "要", "去", "你", "会", "着", "没有", "看", "好", "自己", "这", "那", "什么", "可以",
    "他", "她", "它", "我们", "你们", "他们", "这个", "那个", "这些", "那些", "这样", "那样", "如何",
    "为什么", "怎么", "哪里", "什么时候", "多少", "哪个", "哪些",
})

ENGLISH_STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by", "is",
    "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "can", "this", "that", "these", "those", "i", "you",
    "he", "she", "it", "we", "they", "me", "him", "her", "us", "them", "my", "your", "his", "its",
    "our", "their",
})

SIMILARITY_PROMPT = """Evaluate the semantic relevance between the query and target text. Return only a decimal number between 0 and 1, where:
- 1.0 = highly relevant/semantically similar
- 0.5 = moderately relevant
- 0.0 = not relevant at all

Query: "{query}"
Target: "{target}"

Score:"""


def extract_keywords(text: str) -> List[str]:
    """
    Keywords of a mixed Chinese/English text, deduplicated in order.

    Chinese runs contribute every bigram and trigram (bigram stopwords
    dropped); English contributes lowercased words of 3+ letters that are
    not stopwords.
    """
    keywords = []
    for run in CJK_RUN.findall(text or ""):
        for i in range(len(run) - 1):
            bigram = run[i:i + 2]
            if bigram not in CHINESE_STOPWORDS:
                keywords.append(bigram)
        for i in range(len(run) - 2):
            trigram = run[i:i + 3]
            if trigram not in CHINESE_STOPWORDS:
                keywords.append(trigram)

    for word in LATIN_WORD.findall(text or ""):
        word = word.lower()
        if len(word) >= 3 and word not in ENGLISH_STOPWORDS:
            keywords.append(word)

    return list(dict.fromkeys(keywords))


def keyword_similarity(query: str, text: str) -> float:
    """Share of query keywords contained in, or containing, some text keyword (0-1)."""
    query_keywords = extract_keywords((query or "").lower())
    if not query_keywords:
        return 0.0
    text_keywords = extract_keywords((text or "").lower())

    matches = sum(
        1 for kw in query_keywords
        if any(kw in tk or tk in kw for tk in text_keywords)
    )
    return matches / len(query_keywords)


def split_segments(text: str) -> List[str]:
    """Sentence-level segments, punctuation kept with the preceding text."""
    return [s.strip() for s in SEGMENT_PATTERN.findall(text or "") if s.strip()]


def parse_score(content: str) -> float:
    match = SCORE_PATTERN.search(content or "")
    if not match:
        return 0.0
    return max(0.0, min(1.0, float(match.group(1))))


class HighlightService:
    """Keyword highlighting with optional LLM semantic blending."""

    def __init__(
        self,
        cache: Optional[EvaluationCache] = None,
        llm=None,
        enable_ai: Optional[bool] = None,
        threshold: float = KEYWORD_THRESHOLD,
        timeout: Optional[float] = None,
    ):
        self._cache = cache
        self._llm = llm
        self._enable_ai = (llm is not None or llm_available()) if enable_ai is None else enable_ai
        self._threshold = threshold
        self._timeout = timeout or settings.evaluation_timeout_seconds

    @property
    def ai_available(self) -> bool:
        return self._enable_ai

    async def semantic_similarity(self, query: str, text: str) -> float:
        """
        LLM-judged relevance of text to query (0-1), memoized in the cache.

        Raises:
            Exception: whatever the LLM client raised; callers degrade to keywords
        """
        if self._cache is not None:
            cached = self._cache.get_similarity(query, text)
            if cached is not None:
                return cached

        if self._llm is None:
            self._llm = get_llm(timeout=self._timeout)

        prompt = SIMILARITY_PROMPT.format(query=query, target=text[:500])
        response = await asyncio.wait_for(self._llm.ainvoke(prompt), timeout=self._timeout)
        content = getattr(response, "content", response)
        score = parse_score(content if isinstance(content, str) else str(content))

        if self._cache is not None:
            self._cache.set_similarity(query, text, score)
        return score

    async def _score_segment(self, query: str, segment: str) -> HighlightSegment:
        keyword_score = keyword_similarity(query, segment)
        score = keyword_score
        method = "keyword"

        if self._enable_ai and keyword_score > self._threshold:
            try:
                semantic = await self.semantic_similarity(query, segment)
                score = max(keyword_score, semantic * SEMANTIC_WEIGHT)
                method = "hybrid"
            except Exception as e:
                logger.warning(f"Semantic analysis failed, using keyword only: {e}")

        return HighlightSegment(
            text=segment,
            is_highlighted=score > self._threshold,
            score=min(1.0, max(0.0, score)),
            method=method,
        )

    async def highlight(self, query: str, text: str) -> HighlightResponse:
        if not (query or "").strip() or not (text or "").strip():
            return HighlightResponse(segments=[], ai_available=self._enable_ai)

        segments = await asyncio.gather(*(self._score_segment(query, s) for s in split_segments(text)))
        highlighted = sum(1 for s in segments if s.is_highlighted)
        logger.debug(f"Highlighted {highlighted}/{len(segments)} segments")
        return HighlightResponse(segments=list(segments), ai_available=self._enable_ai)
