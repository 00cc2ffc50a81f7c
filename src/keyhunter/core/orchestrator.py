"""
Orchestrator - Central coordinator for the search, detect and validate pipeline.

For every detector and each of its search queries the orchestrator:
1. Expands the query into per-file-type sub-queries (1000 result ceiling)
2. Runs each sub-query through the search provider
3. Deduplicates the merged hits by file URL
4. Acquires content (inline snippets, else a download)
5. Runs the detector and back-fills repository/URL on each key
6. Optionally rate-limits and validates each key
7. Accumulates HuntResults and Statistics

Design Pattern: Pipeline + Observer
"""

import asyncio
from datetime import datetime
from typing import List, Dict, Any, Optional, Callable

import structlog

from ..detectors.base_detector import BaseDetector
from ..providers.base_provider import BaseSearchProvider
from ..validators.base_validator import BaseValidator
from .config import SearchConfig
from .errors import KeyHunterError, NotFoundError
from .models import (
    DetectedKey,
    HuntResults,
    SearchQuery,
    SearchResult,
    ValidatedKey,
)
from .qualifiers import EXTENSION_QUALIFIERS, expand_query


class HuntConfig:
    """Configuration for a hunt run"""

    def __init__(
        self,
        # Search config
        max_results: int = 1000,
        auto_split: bool = True,
        qualifiers: Optional[List[str]] = None,

        # Pacing
        query_delay: float = 5.0,
        subquery_delay: float = 1.0,

        # Validation
        validate: bool = True,
    ):
        self.max_results = max_results
        self.auto_split = auto_split
        self.qualifiers = list(qualifiers) if qualifiers is not None else list(EXTENSION_QUALIFIERS)
        self.query_delay = query_delay
        self.subquery_delay = subquery_delay
        self.validate = validate

    @classmethod
    def from_settings(cls, search: SearchConfig, validate: bool = True, **overrides) -> "HuntConfig":
        options = {
            "max_results": search.max_results,
            "auto_split": search.auto_split,
            "query_delay": search.query_delay,
            "subquery_delay": search.subquery_delay,
            "validate": validate,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**options)


Observer = Callable[[str, Dict[str, Any]], None]


class Orchestrator:
    """
    Central coordinator for the key hunting pipeline.

    One search and at most one validation are in flight at any time.
    Failures are contained at the smallest unit that produced them: a
    sub-query, a file or a key.

    Example:
        >>> orchestrator = Orchestrator(provider, [OpenAIDetector()], all_validators())
        >>> results = await orchestrator.hunt()
        >>> print(results.statistics.keys_valid)
    """

    def __init__(
        self,
        provider: Optional[BaseSearchProvider],
        detectors: List[BaseDetector],
        validators: Optional[Dict[str, BaseValidator]] = None,
        config: Optional[HuntConfig] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            provider: Search provider (may be None for validate-only runs)
            detectors: Detectors to hunt with, in order
            validators: Validators keyed by key type
            config: Hunt configuration
        """
        self.provider = provider
        self.detectors = detectors
        self.validators = validators or {}
        self.config = config or HuntConfig()

        # State tracking
        self.results = HuntResults()
        self.detected_keys: List[DetectedKey] = []
        self.is_running = False
        self.hunt_id = f"hunt_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        # Structured logging
        self.logger = structlog.get_logger(__name__)

        # Observer pattern - callbacks
        self.observers: List[Observer] = []

    def subscribe(self, observer: Observer):
        """
        Subscribe to orchestrator events (Observer pattern).

        Events: query_started, subquery_completed, results_deduplicated,
        result_processed, key_detected, key_validated, hunt_completed.

        Args:
            observer: Callback taking (event, data)
        """
        self.observers.append(observer)
        self.logger.debug("observer_subscribed", observer=getattr(observer, "__name__", repr(observer)))

    def _notify_observers(self, event: str, data: Dict[str, Any]):
        """Notify all observers of an event"""
        for observer in self.observers:
            try:
                observer(event, data)
            except Exception as e:
                self.logger.error(
                    "observer_error",
                    observer=getattr(observer, "__name__", repr(observer)),
                    error=str(e),
                )

    async def hunt(self, custom_query: Optional[str] = None) -> HuntResults:
        """
        Run the complete hunting pipeline.

        Args:
            custom_query: Replaces every detector's own query list

        Returns:
            Accumulated HuntResults
        """
        if self.provider is None:
            raise ValueError("A search provider is required to hunt")

        self.is_running = True
        self.logger.info(
            "hunt_started",
            hunt_id=self.hunt_id,
            detectors=[d.name for d in self.detectors],
            validate=self.config.validate,
            auto_split=self.config.auto_split,
        )

        for detector in self.detectors:
            queries = [custom_query] if custom_query else detector.search_queries()

            for index, query in enumerate(queries):
                self._notify_observers("query_started", {
                    "detector": detector.name,
                    "query": query,
                    "index": index + 1,
                    "total": len(queries),
                })

                search_results = await self._run_query(detector, query)
                await self._process_results(detector, search_results)

                if index < len(queries) - 1 and self.config.query_delay > 0:
                    self.logger.debug("query_delay", delay=self.config.query_delay)
                    await asyncio.sleep(self.config.query_delay)

        self.results.finalize()
        self.is_running = False

        self.logger.info(
            "hunt_completed",
            hunt_id=self.hunt_id,
            **self.results.statistics.to_dict(),
        )
        self._notify_observers("hunt_completed", {"statistics": self.results.statistics.to_dict()})

        return self.results

    async def _run_query(self, detector: BaseDetector, query: str) -> List[SearchResult]:
        """Run one logical query (split into sub-queries) and deduplicate the hits"""
        if self.config.auto_split and self.config.qualifiers:
            sub_queries = expand_query(query, self.config.qualifiers)
        else:
            sub_queries = [query]

        collected: List[SearchResult] = []

        for index, sub_query in enumerate(sub_queries):
            search_query = SearchQuery(
                query=sub_query,
                max_results=self.config.max_results,
                file_extensions=detector.file_extensions,
            )

            found = 0
            try:
                results = await self.provider.search(search_query)
                found = len(results)
                collected.extend(results)
            except KeyHunterError as e:
                self.logger.warning("subquery_failed", query=sub_query, error=str(e))

            self._notify_observers("subquery_completed", {
                "query": sub_query,
                "index": index + 1,
                "total": len(sub_queries),
                "found": found,
                "collected": len(collected),
            })

            if index < len(sub_queries) - 1 and self.config.subquery_delay > 0:
                await asyncio.sleep(self.config.subquery_delay)

        unique = self.deduplicate(collected)

        self.logger.info(
            "results_deduplicated",
            query=query,
            total=len(collected),
            unique=len(unique),
        )
        self._notify_observers("results_deduplicated", {
            "query": query,
            "unique": len(unique),
            "duplicates": len(collected) - len(unique),
        })

        return unique

    @staticmethod
    def deduplicate(results: List[SearchResult]) -> List[SearchResult]:
        """Drop repeated file URLs, keeping the first occurrence"""
        seen = set()
        unique = []
        for result in results:
            if result.file_url in seen:
                continue
            seen.add(result.file_url)
            unique.append(result)
        return unique

    async def _process_results(self, detector: BaseDetector, search_results: List[SearchResult]):
        statistics = self.results.statistics

        for position, result in enumerate(search_results, start=1):
            statistics.increment("files_attempted")

            content = await self._acquire_content(result)
            if content is not None:
                await self._scan_content(detector, result, content)

            self._notify_observers("result_processed", {
                "file_path": result.file_path,
                "index": position,
                "total": len(search_results),
                "keys_valid": statistics.keys_valid,
            })

    async def _acquire_content(self, result: SearchResult) -> Optional[str]:
        """
        Snippets when the search returned any, otherwise a download.

        Returns:
            Content, or None if the download failed (counted by failure kind)
        """
        statistics = self.results.statistics

        if result.has_snippets:
            statistics.increment("files_from_snippets")
            return "\n".join(result.text_matches)

        try:
            content = await self.provider.get_file_content(result)
        except NotFoundError:
            statistics.increment("files_404")
            self.logger.debug("file_not_found", file_path=result.file_path)
            return None
        except KeyHunterError as e:
            statistics.increment("files_other_error")
            self.logger.warning("file_download_failed", file_path=result.file_path, error=str(e))
            return None

        statistics.increment("files_downloaded")
        return content

    async def _scan_content(self, detector: BaseDetector, result: SearchResult, content: str):
        statistics = self.results.statistics

        try:
            detected_keys = detector.detect(content, result.file_path)
        except Exception as e:
            statistics.increment("files_other_error")
            self.logger.error(
                "detection_failed",
                detector=detector.name,
                file_path=result.file_path,
                error=str(e),
                exc_info=True,
            )
            return

        for detected in detected_keys:
            detected.repository = result.repository
            detected.file_url = result.file_url

            statistics.increment("keys_found")
            self.detected_keys.append(detected)

            self.logger.info(
                "key_detected",
                key_type=detected.key_type,
                key=detected.preview,
                repository=detected.repository,
            )
            self._notify_observers("key_detected", {"key": detected})

            if self.config.validate:
                await self._validate_key(detected)

    async def _validate_key(self, detected: DetectedKey) -> Optional[ValidatedKey]:
        """
        Validate one key and file the verdict.

        Returns:
            ValidatedKey, or None if no validator exists or the check was
            inconclusive
        """
        validator = self.validators.get(detected.key_type)
        if validator is None:
            return None

        self.results.statistics.increment("keys_tested")

        await validator.rate_limiter.wait()

        try:
            validation = await validator.validate(detected.key)
        except KeyHunterError as e:
            self.logger.info(
                "validation_inconclusive",
                key_type=detected.key_type,
                key=detected.preview,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        validated = ValidatedKey(detected=detected, validation=validation)
        self.results.record(validated)

        self.logger.info(
            "key_validated",
            key_type=detected.key_type,
            key=detected.preview,
            valid=validation.valid,
        )
        self._notify_observers("key_validated", {"key": validated})

        return validated

    async def validate_keys(self, detected_keys: List[DetectedKey], key_type: str = "all") -> HuntResults:
        """
        Validate previously detected keys (validate-only entry point).

        Args:
            detected_keys: Keys loaded from a detections file
            key_type: Only validate keys of this type ("all" for every type)

        Returns:
            Accumulated HuntResults
        """
        self.is_running = True
        self.logger.info("validation_started", keys=len(detected_keys), key_type=key_type)

        selected = [
            key for key in detected_keys
            if key_type == "all" or key.key_type == key_type
        ]

        for position, detected in enumerate(selected, start=1):
            self.results.statistics.increment("keys_found")
            self.detected_keys.append(detected)
            await self._validate_key(detected)

            self._notify_observers("result_processed", {
                "file_path": detected.file_path,
                "index": position,
                "total": len(selected),
                "keys_valid": self.results.statistics.keys_valid,
            })

        self.results.finalize()
        self.is_running = False

        self._notify_observers("hunt_completed", {"statistics": self.results.statistics.to_dict()})
        return self.results

    def get_status(self) -> Dict[str, Any]:
        """
        Get current orchestrator status.

        Returns:
            Status dictionary
        """
        return {
            "hunt_id": self.hunt_id,
            "is_running": self.is_running,
            "detectors": [d.name for d in self.detectors],
            "validators": sorted(self.validators),
            "detected_keys": len(self.detected_keys),
            "statistics": self.results.statistics.to_dict(),
        }
