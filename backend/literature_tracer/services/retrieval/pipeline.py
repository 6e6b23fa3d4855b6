"""
Main retrieval pipeline.

Traces free text back to literature, sentence by sentence:
1. Split the text into sentences
2. Fan out per sentence: neural search + CrossRef bibliographic and title searches
3. Deduplicate the neural candidates
4. Enrich them from CrossRef (DOI batch lookup, else title search)
5. Merge with the CrossRef candidates and rank
6. Evaluate the top records
7. Assemble results in input sentence order

Fan-out for all sentences settles before any enrichment starts, so a
request whose neural provider turns out to be unreachable everywhere is
caught before evaluation work is spent on it.
"""
import asyncio
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

from literature_tracer.core.config import Settings, settings as default_settings
from literature_tracer.core.exceptions import (
    InvalidRequestError,
    ProviderUnavailableError,
    SourceError,
    SourceParseError,
)
from literature_tracer.core.logging import get_logger, log_duration
from literature_tracer.schemas.literature import (
    UNKNOWN_AUTHOR,
    UNKNOWN_JOURNAL,
    CandidateRecord,
    MergedRecord,
)
from literature_tracer.schemas.retrieval import SearchOptions
from literature_tracer.schemas.search import SearchResponse, SentenceResult
from literature_tracer.services.evaluation import EvaluationService, heuristic_evaluation
from literature_tracer.services.retry import call_with_retry
from literature_tracer.services.sentence_split import SentenceSplitter
from literature_tracer.services.sources.base import LiteratureSource
from literature_tracer.services.sources.crossref import CrossrefSource

from .deduplication import DEFAULT_PRECEDENCE, deduplicate, merge_and_deduplicate, normalize_title
from .placeholders import PLACEHOLDER_NOTICE, placeholder_records
from .ranking import sort_by_quality

logger = get_logger(__name__)

DOI_PATTERN = re.compile(r"^10\.\d{4,}/\S+$")

# Minimum title token overlap for a title-search hit to count as the same work
TITLE_MATCH_THRESHOLD = 0.5


def is_doi(identifier: Optional[str]) -> bool:
    return bool(identifier) and bool(DOI_PATTERN.match(identifier.strip()))


def _venue_is_placeholder(journal: str) -> bool:
    # Hostname-derived venues ("example.org") count as missing
    return not journal or journal == UNKNOWN_JOURNAL or ("." in journal and " " not in journal)


def _authors_missing(authors: Sequence[str]) -> bool:
    return not authors or all(a == UNKNOWN_AUTHOR for a in authors)


def needs_enrichment(record: CandidateRecord) -> bool:
    """A record lacking real authors, venue, DOI or abstract."""
    return (
        _authors_missing(record.authors)
        or _venue_is_placeholder(record.journal)
        or not is_doi(record.identifier)
        or record.abstract is None
    )


def titles_match(a: str, b: str) -> bool:
    tokens_a = set(normalize_title(a).split())
    tokens_b = set(normalize_title(b).split())
    if not tokens_a or not tokens_b:
        return False
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b) >= TITLE_MATCH_THRESHOLD


def backfill(record: CandidateRecord, match: CandidateRecord) -> CandidateRecord:
    """
    Fill the record's missing fields from a bibliographic match.

    Populated fields are never overwritten and the record keeps its
    provider, so enrichment never turns a neural record into a verified one.
    """
    updates = {}
    if _authors_missing(record.authors) and not _authors_missing(match.authors):
        updates["authors"] = list(match.authors)
    if _venue_is_placeholder(record.journal) and match.journal != UNKNOWN_JOURNAL:
        updates["journal"] = match.journal
    if not is_doi(record.identifier) and is_doi(match.identifier):
        updates["identifier"] = match.identifier
    if record.abstract is None and match.abstract is not None:
        updates["abstract"] = match.abstract
    if record.citation_count is None and match.citation_count is not None:
        updates["citation_count"] = match.citation_count

    if not updates:
        return record
    logger.debug(f"Enriched '{record.title[:50]}' with {sorted(updates)}")
    return record.model_copy(update=updates)


@dataclass
class CallOutcome:
    """Result of one guarded provider call."""
    records: List[CandidateRecord] = field(default_factory=list)
    error: Optional[SourceError] = None

    @property
    def unavailable(self) -> bool:
        return isinstance(self.error, ProviderUnavailableError)


@dataclass
class SentenceFanOut:
    sentence: str
    neural: CallOutcome
    bibliographic: CallOutcome
    by_title: CallOutcome


class LiteraturePipeline:
    """
    Per-request orchestrator.

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(
        self,
        neural: LiteratureSource,
        bibliographic: CrossrefSource,
        evaluator: EvaluationService,
        splitter: SentenceSplitter,
        config: Optional[Settings] = None,
    ):
        self._neural = neural
        self._bibliographic = bibliographic
        self._evaluator = evaluator
        self._splitter = splitter
        self._config = config or default_settings

    async def run(self, text) -> SearchResponse:
        """
        Trace every sentence of `text` back to literature.

        Raises:
            InvalidRequestError: text is not a string
            ProviderUnavailableError: the neural provider is unconfigured or
                unreachable for the whole request and the policy is "error"
        """
        if not isinstance(text, str):
            raise InvalidRequestError("text", "must be a string")

        sentences = await self._splitter.split(text)
        if not sentences:
            logger.info("No sentences found in input")
            return SearchResponse(results=[])

        logger.info(f"\n{'='*60}")
        logger.info(f"LITERATURE SEARCH: {len(sentences)} sentences")
        logger.info(f"{'='*60}\n")

        if not self._neural.is_configured:
            return self._primary_unavailable(
                sentences, ProviderUnavailableError(self._neural.name, "EXA_API_KEY is not configured")
            )

        # Bounds concurrent CrossRef searches across all sentences of this request
        crossref_slots = asyncio.Semaphore(self._config.crossref_max_concurrency)

        with log_duration(logger, "fan-out"):
            fan_outs = await asyncio.gather(*(self._fan_out(s, crossref_slots) for s in sentences))

        if all(f.neural.unavailable for f in fan_outs):
            return self._primary_unavailable(sentences, fan_outs[0].neural.error)

        with log_duration(logger, "enrich/rank/evaluate"):
            literature = await asyncio.gather(*(self._process(f, crossref_slots) for f in fan_outs))

        results = [
            SentenceResult(sentence=f.sentence, sentence_index=i, literature=lit)
            for i, (f, lit) in enumerate(zip(fan_outs, literature), start=1)
        ]
        return SearchResponse(results=results)

    # --- stages ---

    async def _guarded(
        self,
        label: str,
        fn: Callable[..., Awaitable[List[CandidateRecord]]],
        *args,
        slots: Optional[asyncio.Semaphore] = None,
    ) -> CallOutcome:
        """Run one provider call with retry; a failure becomes zero candidates."""
        try:
            if slots is None:
                records = await self._with_retry(fn, *args)
            else:
                async with slots:
                    records = await self._with_retry(fn, *args)
        except SourceError as e:
            logger.warning(f"{label} failed: {e}")
            return CallOutcome(error=e)
        except Exception as e:
            # A payload the adapter failed to reject still only costs this call
            logger.exception(f"{label} failed unexpectedly: {e}")
            return CallOutcome(error=SourceParseError(label, str(e)))
        logger.debug(f"{label}: {len(records)} candidates")
        return CallOutcome(records=records)

    async def _with_retry(self, fn, *args):
        return await call_with_retry(
            fn, *args,
            max_retries=self._config.retry_max_attempts,
            base_delay=self._config.retry_base_delay_seconds,
        )

    async def _fan_out(self, sentence: str, slots: asyncio.Semaphore) -> SentenceFanOut:
        neural_options = SearchOptions(max_results=self._config.neural_results_per_query)
        crossref_options = SearchOptions(max_results=self._config.crossref_rows_per_query)

        neural, bibliographic, by_title = await asyncio.gather(
            self._guarded(f"{self._neural.name} search", self._neural.search, sentence, neural_options),
            self._guarded(
                "CrossRef bibliographic search", self._bibliographic.search_bibliographic,
                sentence, crossref_options, slots=slots,
            ),
            self._guarded(
                "CrossRef title search", self._bibliographic.search_by_title,
                sentence, crossref_options, slots=slots,
            ),
        )
        return SentenceFanOut(sentence, neural, bibliographic, by_title)

    async def _process(self, fan_out: SentenceFanOut, slots: asyncio.Semaphore) -> List[MergedRecord]:
        neural = deduplicate(fan_out.neural.records)
        enriched = await self.enrich(neural, slots)

        merged = merge_and_deduplicate(
            fan_out.bibliographic.records + fan_out.by_title.records + enriched,
            precedence=DEFAULT_PRECEDENCE,
        )
        ranked = sort_by_quality(merged)[:self._config.max_results_per_sentence]
        logger.info(
            f"'{fan_out.sentence[:40]}': {len(fan_out.neural.records)} neural, "
            f"{len(fan_out.bibliographic.records) + len(fan_out.by_title.records)} bibliographic "
            f"-> {len(ranked)} kept"
        )
        return await self._evaluate(fan_out.sentence, ranked)

    async def enrich(
        self,
        records: List[CandidateRecord],
        slots: Optional[asyncio.Semaphore] = None,
    ) -> List[CandidateRecord]:
        """
        Backfill missing fields of neural records from CrossRef.

        Records carrying a DOI are looked up in one batch; the rest get a
        title search whose top hit is used when its title matches. Every
        CrossRef call here draws from `slots` when given.
        """
        targets = [i for i, r in enumerate(records) if needs_enrichment(r)]
        if not targets:
            return list(records)

        by_doi = [i for i in targets if is_doi(records[i].identifier)]
        by_title = [i for i in targets if not is_doi(records[i].identifier)]
        top_hit = SearchOptions(max_results=1)

        async def lookup_dois() -> List[Optional[CandidateRecord]]:
            if not by_doi:
                return []
            try:
                return await self._bibliographic.get_by_identifiers(
                    [records[i].identifier for i in by_doi], slots=slots,
                )
            except Exception as e:
                logger.exception(f"CrossRef DOI batch failed: {e}")
                return [None] * len(by_doi)

        doi_matches, *title_outcomes = await asyncio.gather(
            lookup_dois(),
            *(
                self._guarded("CrossRef enrichment lookup", self._bibliographic.search_by_title,
                              records[i].title, top_hit, slots=slots)
                for i in by_title
            ),
        )

        enriched = list(records)
        for i, match in zip(by_doi, doi_matches):
            if match is not None:
                enriched[i] = backfill(records[i], match)
        for i, outcome in zip(by_title, title_outcomes):
            if outcome.records and titles_match(records[i].title, outcome.records[0].title):
                enriched[i] = backfill(records[i], outcome.records[0])

        return enriched

    async def _evaluate(self, sentence: str, ranked: List[MergedRecord]) -> List[MergedRecord]:
        limit = self._config.max_evaluated_per_sentence
        to_evaluate = ranked[:limit]
        if not to_evaluate:
            return ranked

        evaluations = await self._evaluator.evaluate_many(sentence, to_evaluate)
        evaluated = [
            record.model_copy(update={"evaluation": evaluation})
            for record, evaluation in zip(to_evaluate, evaluations)
        ]
        return evaluated + ranked[limit:]

    def _primary_unavailable(self, sentences: List[str], error: ProviderUnavailableError) -> SearchResponse:
        """Apply PRIMARY_UNAVAILABLE_POLICY."""
        if self._config.primary_unavailable_policy == "error":
            logger.error(f"Neural provider unavailable, rejecting request: {error}")
            raise error

        logger.warning(f"Neural provider unavailable, serving placeholder literature: {error}")
        results = []
        for index, sentence in enumerate(sentences, start=1):
            ranked = sort_by_quality(merge_and_deduplicate(placeholder_records()))
            ranked = ranked[:self._config.max_results_per_sentence]
            literature = [
                record.model_copy(update={"evaluation": heuristic_evaluation(sentence, record)})
                for record in ranked
            ]
            results.append(SentenceResult(sentence=sentence, sentence_index=index, literature=literature))
        return SearchResponse(results=results, degraded=True, notice=PLACEHOLDER_NOTICE)
