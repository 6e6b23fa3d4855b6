"""Tests for services/sentence_split.py - Regex and LLM sentence splitting."""
import pytest

from fakes import StubStructuredLLM


class TestSplitSentences:
    """Test the regex splitter."""

    def test_english(self):
        from literature_tracer.services.sentence_split import split_sentences

        text = "Deep learning improves diagnosis. Quantum computing aids optimization."
        assert split_sentences(text) == [
            "Deep learning improves diagnosis.",
            "Quantum computing aids optimization.",
        ]

    def test_chinese_punctuation(self):
        from literature_tracer.services.sentence_split import split_sentences

        text = "深度学习提高了诊断准确率。量子计算有助于优化！"
        assert split_sentences(text) == ["深度学习提高了诊断准确率。", "量子计算有助于优化！"]

    def test_mixed_language(self):
        from literature_tracer.services.sentence_split import split_sentences

        text = "机器学习正在改变医学影像。Does it generalize across hospitals?"
        assert len(split_sentences(text)) == 2

    def test_short_fragments_are_dropped(self):
        from literature_tracer.services.sentence_split import split_sentences

        assert split_sentences("Hi. This one is long enough.") == ["This one is long enough."]

    def test_trailing_semicolons_are_stripped(self):
        from literature_tracer.services.sentence_split import split_sentences

        assert split_sentences("Results were mixed;") == ["Results were mixed"]

    def test_unterminated_text_is_one_sentence(self):
        from literature_tracer.services.sentence_split import split_sentences

        assert split_sentences("  a claim without\nterminal punctuation  ") == [
            "a claim without terminal punctuation"
        ]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", "...", "!?"])
    def test_blank_or_punctuation_only(self, text):
        from literature_tracer.services.sentence_split import split_sentences

        assert split_sentences(text) == []

    def test_min_length_is_configurable(self):
        from literature_tracer.services.sentence_split import split_sentences

        assert split_sentences("Hi. Yo.", min_length=2) == ["Hi.", "Yo."]


class TestSentenceSplitter:
    """Test the LLM splitter and its fallbacks."""

    @pytest.mark.asyncio
    async def test_blank_input_makes_no_llm_call(self):
        from literature_tracer.services.sentence_split import SentenceSplitter

        stub = StubStructuredLLM()
        assert await SentenceSplitter(llm=stub).split("   ") == []
        assert stub.calls == 0

    @pytest.mark.asyncio
    async def test_without_llm_uses_regex(self):
        from literature_tracer.services.sentence_split import SentenceSplitter

        splitter = SentenceSplitter()
        assert await splitter.split("First sentence here. Second sentence here.") == [
            "First sentence here.",
            "Second sentence here.",
        ]

    @pytest.mark.asyncio
    async def test_llm_sentences_are_filtered(self):
        from literature_tracer.schemas.retrieval import SentenceList
        from literature_tracer.services.sentence_split import SentenceSplitter

        stub = StubStructuredLLM(result=SentenceList(sentences=[" Dr. Smith et al. agree. ", "ok", "They disagree."]))
        sentences = await SentenceSplitter(llm=stub).split("Dr. Smith et al. agree. ok They disagree.")

        assert sentences == ["Dr. Smith et al. agree.", "They disagree."]
        assert stub.calls == 1

    @pytest.mark.asyncio
    async def test_dict_output_is_accepted(self):
        from literature_tracer.services.sentence_split import SentenceSplitter

        stub = StubStructuredLLM(result={"sentences": ["A full sentence."]})
        assert await SentenceSplitter(llm=stub).split("A full sentence.") == ["A full sentence."]

    @pytest.mark.asyncio
    async def test_empty_llm_output_falls_back(self):
        from literature_tracer.schemas.retrieval import SentenceList
        from literature_tracer.services.sentence_split import SentenceSplitter

        stub = StubStructuredLLM(result=SentenceList(sentences=[]))
        assert await SentenceSplitter(llm=stub).split("Fallback sentence one. Two.") == ["Fallback sentence one."]

    @pytest.mark.asyncio
    async def test_llm_error_falls_back(self):
        from literature_tracer.services.sentence_split import SentenceSplitter

        stub = StubStructuredLLM(error=RuntimeError("gateway error"))
        assert await SentenceSplitter(llm=stub).split("Regex takes over here.") == ["Regex takes over here."]

    @pytest.mark.asyncio
    async def test_llm_timeout_falls_back(self):
        from literature_tracer.services.sentence_split import SentenceSplitter

        stub = StubStructuredLLM(result={"sentences": ["never returned"]}, delay=1.0)
        splitter = SentenceSplitter(llm=stub, timeout=0.01)
        assert await splitter.split("Slow model, fast fallback.") == ["Slow model, fast fallback."]

    @pytest.mark.asyncio
    async def test_use_llm_false_skips_llm(self):
        from literature_tracer.services.sentence_split import SentenceSplitter

        stub = StubStructuredLLM(error=AssertionError("should not be called"))
        await SentenceSplitter(llm=stub, use_llm=False).split("Plain regex split.")
        assert stub.calls == 0
