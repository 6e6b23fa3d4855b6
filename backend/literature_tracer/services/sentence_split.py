"""
Sentence segmentation.

The LLM splitter handles abbreviations, decimals and quotations better than
a regex, but it is optional: without a key, on timeout or on an empty
answer the regex splitter is used.
"""
import asyncio
import re
from typing import List, Optional

from literature_tracer.core.config import settings
from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.retrieval import SentenceList
from literature_tracer.services.llm import get_structured_llm, llm_available

logger = get_logger(__name__)

MIN_SENTENCE_LENGTH = 5

SENTENCE_PATTERN = re.compile(r"[^。.!?！？]+[。.!?！？]?")
TRAILING_SEPARATORS = re.compile(r"[;；\n]+$")

SPLIT_SYSTEM_PROMPT = """You are a text processing assistant specialized in sentence segmentation. Split the given text into individual sentences.

Rules:
1. Split text into complete, meaningful sentences
2. Handle Chinese and English punctuation correctly (。！？.!?)
3. Preserve sentence boundaries even with abbreviations, numbers, or special formatting
4. Do not split at semicolons (;；) unless they clearly separate independent sentences
5. Handle quotations and parentheses appropriately
6. Return only complete sentences, dropping fragments shorter than 5 characters
7. Keep each sentence's original wording"""


def split_sentences(text: str, min_length: int = MIN_SENTENCE_LENGTH) -> List[str]:
    """
    Regex sentence splitter for mixed Chinese/English text.

    Splits after 。.!?！？, strips trailing semicolons and drops fragments
    shorter than `min_length` characters.
    """
    normalized = re.sub(r"\s+", " ", (text or "").replace("\r\n", "\n")).strip()
    if not normalized:
        return []

    sentences = []
    for match in SENTENCE_PATTERN.findall(normalized):
        sentence = match.strip()
        if not sentence:
            continue
        sentence = TRAILING_SEPARATORS.sub("", sentence).strip() or sentence
        if len(sentence) >= min_length:
            sentences.append(sentence)
    return sentences


class SentenceSplitter:
    """LLM sentence splitter with the regex splitter as fallback."""

    def __init__(self, llm=None, timeout: Optional[float] = None, use_llm: Optional[bool] = None):
        self._llm = llm
        self._timeout = timeout or settings.split_timeout_seconds
        self._use_llm = (llm is not None or llm_available()) if use_llm is None else use_llm

    async def split(self, text: str) -> List[str]:
        if not text or not text.strip():
            return []

        if not self._use_llm:
            return split_sentences(text)

        try:
            if self._llm is None:
                self._llm = get_structured_llm(SentenceList, timeout=self._timeout)
            result = await asyncio.wait_for(
                self._llm.ainvoke([
                    ("system", SPLIT_SYSTEM_PROMPT),
                    ("human", f"Please split the following text into sentences:\n\n{text}"),
                ]),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"LLM sentence splitting timed out after {self._timeout}s, using fallback")
            return split_sentences(text)
        except Exception as e:
            logger.warning(f"LLM sentence splitting failed, using fallback: {e}")
            return split_sentences(text)

        if isinstance(result, SentenceList):
            raw = result.sentences
        elif isinstance(result, dict):
            raw = result.get("sentences") or []
        else:
            raw = []
        sentences = [
            s.strip() for s in raw
            if isinstance(s, str) and len(s.strip()) >= MIN_SENTENCE_LENGTH
        ]
        if not sentences:
            logger.warning("LLM sentence splitting returned no valid sentences, using fallback")
            return split_sentences(text)

        logger.info(f"LLM sentence splitting produced {len(sentences)} sentences")
        return sentences
