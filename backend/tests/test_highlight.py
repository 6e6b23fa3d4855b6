"""Tests for services/highlight.py - Keyword and semantic highlighting."""
import pytest

from fakes import StubChatMessage, StubStructuredLLM


class TestKeywords:
    """Test keyword extraction and similarity."""

    def test_english_keywords_skip_stopwords_and_short_words(self):
        from literature_tracer.services.highlight import extract_keywords

        assert extract_keywords("Deep learning for the AI diagnosis") == ["deep", "learning", "diagnosis"]

    def test_chinese_bigrams_and_trigrams(self):
        from literature_tracer.services.highlight import extract_keywords

        assert extract_keywords("深度学习") == ["深度", "度学", "学习", "深度学", "度学习"]

    def test_chinese_stopwords_dropped(self):
        from literature_tracer.services.highlight import extract_keywords

        assert "我们" not in extract_keywords("我们研究")

    def test_keywords_are_unique(self):
        from literature_tracer.services.highlight import extract_keywords

        assert extract_keywords("cancer cancer Cancer") == ["cancer"]

    def test_similarity(self):
        from literature_tracer.services.highlight import keyword_similarity

        assert keyword_similarity("deep learning", "Deep learning models") == 1.0
        assert keyword_similarity("deep learning", "deep sea") == 0.5
        assert keyword_similarity("quantum", "protein folding") == 0.0
        assert keyword_similarity("the a", "anything") == 0.0

    def test_similarity_matches_substrings(self):
        from literature_tracer.services.highlight import keyword_similarity

        assert keyword_similarity("learn", "learning rates") == 1.0


class TestSegmentsAndScores:
    """Test segmenting and LLM score parsing."""

    def test_split_segments_keeps_punctuation(self):
        from literature_tracer.services.highlight import split_segments

        assert split_segments("First part. Second part! 第三部分。") == ["First part.", "Second part!", "第三部分。"]

    @pytest.mark.parametrize("content,expected", [
        ("0.85", 0.85),
        ("Score: 1.7", 1.0),
        ("Score: .5", 0.5),
        ("not relevant", 0.0),
        ("", 0.0),
    ])
    def test_parse_score(self, content, expected):
        from literature_tracer.services.highlight import parse_score

        assert parse_score(content) == pytest.approx(expected)


class TestHighlightService:
    """Test HighlightService."""

    @pytest.mark.asyncio
    async def test_keyword_only(self):
        from literature_tracer.services.highlight import HighlightService

        service = HighlightService(enable_ai=False)
        response = await service.highlight("deep learning", "Deep learning helps. Weather is nice today.")

        assert response.ai_available is False
        assert [s.is_highlighted for s in response.segments] == [True, False]
        assert all(s.method == "keyword" for s in response.segments)
        assert response.segments[0].score == 1.0

    @pytest.mark.asyncio
    async def test_blank_inputs(self):
        from literature_tracer.services.highlight import HighlightService

        service = HighlightService(enable_ai=False)
        assert (await service.highlight("", "Some text.")).segments == []
        assert (await service.highlight("query", "   ")).segments == []

    @pytest.mark.asyncio
    async def test_hybrid_blends_semantic_score(self, memory_cache):
        from literature_tracer.services.highlight import HighlightService

        stub = StubStructuredLLM(result=StubChatMessage("0.9"))
        service = HighlightService(cache=memory_cache, llm=stub)
        response = await service.highlight("deep learning diagnosis", "Deep learning works. Weather is nice today.")

        first, second = response.segments
        assert response.ai_available is True
        assert first.method == "hybrid"
        assert first.score == pytest.approx(0.72)
        assert second.method == "keyword"
        assert stub.calls == 1

    @pytest.mark.asyncio
    async def test_semantic_score_is_cached(self, memory_cache):
        from literature_tracer.services.highlight import HighlightService

        stub = StubStructuredLLM(result=StubChatMessage("0.4"))
        service = HighlightService(cache=memory_cache, llm=stub)

        assert await service.semantic_similarity("q", "text") == pytest.approx(0.4)
        assert await service.semantic_similarity("q", "text") == pytest.approx(0.4)
        assert stub.calls == 1

    @pytest.mark.asyncio
    async def test_llm_failure_degrades_to_keywords(self):
        from literature_tracer.services.highlight import HighlightService

        stub = StubStructuredLLM(error=RuntimeError("model offline"))
        service = HighlightService(llm=stub)
        response = await service.highlight("deep learning", "Deep learning helps.")

        (segment,) = response.segments
        assert segment.method == "keyword"
        assert segment.is_highlighted is True
