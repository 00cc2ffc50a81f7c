"""
Base Detector - Abstract base class for all key detectors.

A detector knows how one family of credentials looks: the regexes that
match it, the code-search queries that surface it, and any extra filtering
needed to drop false positives. Detectors are pure; they never touch the
network or repository state.

Design Pattern: Strategy Pattern
"""

import re
from abc import ABC
from typing import List, Dict

import structlog

from ..core.models import DetectedKey
from .patterns import get_line_context


class BaseDetector(ABC):
    """
    Abstract base class for all key detectors.

    Subclasses declare PATTERNS, SEARCH_QUERIES and FILE_EXTENSIONS and may
    override filter_key() to reject candidates or classify() to refine the
    key type per match.

    Example:
        >>> class StripeDetector(BaseDetector):
        ...     name = "stripe"
        ...     PATTERNS = [r"sk_live_[0-9a-zA-Z]{24}"]

        >>> detector = StripeDetector()
        >>> keys = detector.detect(content, "config/settings.py")
    """

    name: str = "base"
    PATTERNS: List[str] = []
    SEARCH_QUERIES: List[str] = []
    FILE_EXTENSIONS: List[str] = []
    CONTEXT_LINES = 2

    def __init__(self):
        self.patterns: List[re.Pattern] = [re.compile(p) for p in self.PATTERNS]

        # Statistics
        self.scanned_count = 0
        self.detected_count = 0

        self.logger = structlog.get_logger(__name__, detector=self.name)

    @property
    def file_extensions(self) -> List[str]:
        return list(self.FILE_EXTENSIONS)

    def search_queries(self) -> List[str]:
        """Code-search queries that tend to surface this key type"""
        return list(self.SEARCH_QUERIES)

    def filter_key(self, key: str) -> bool:
        """Extra acceptance check on a raw match"""
        return bool(key)

    def classify(self, key: str) -> str:
        """Key type tag for a matched key"""
        return self.name

    def detect(self, content: str, file_path: str) -> List[DetectedKey]:
        """
        Run every pattern over the content.

        Args:
            content: File content or joined search snippets
            file_path: Path of the file inside its repository

        Returns:
            One DetectedKey per accepted match, in pattern order
        """
        detected = []

        for pattern in self.patterns:
            for match in pattern.finditer(content):
                key = match.group(0)
                if not self.filter_key(key):
                    continue

                line_number, context = get_line_context(
                    content, match.start(), self.CONTEXT_LINES
                )
                detected.append(DetectedKey(
                    key=key,
                    key_type=self.classify(key),
                    file_path=file_path,
                    line_number=line_number,
                    context=context,
                ))

        self.scanned_count += 1
        self.detected_count += len(detected)

        if detected:
            self.logger.debug("keys_detected", file_path=file_path, count=len(detected))

        return detected

    def get_statistics(self) -> Dict[str, int]:
        return {
            "scanned": self.scanned_count,
            "detected": self.detected_count,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.name}, "
            f"patterns={len(self.patterns)})"
        )
