"""
Core data model for the search -> detect -> validate pipeline.

These are the structures that flow between the search provider, the
detectors, the validators and the report writer. Every type converts to and
from plain dictionaries so it can be written to (and read back from) the
JSON report artifacts.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return utc_now()
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class SearchQuery:
    """A single code-search request"""
    query: str
    max_results: int = 1000
    file_extensions: List[str] = field(default_factory=list)


@dataclass
class SearchResult:
    """A file hit returned by a search provider"""
    repository: str
    file_path: str
    file_url: str
    download_url: str
    default_branch: Optional[str] = None
    # Inline excerpts around the hit (lets us skip downloading the file)
    text_matches: Optional[List[str]] = None

    @property
    def has_snippets(self) -> bool:
        return bool(self.text_matches)


@dataclass
class DetectedKey:
    """
    A candidate secret found in file content.

    Detectors only know the content and the path; repository and file_url
    are filled in by the orchestrator once the key is tied to a search hit.
    """
    key: str
    key_type: str
    file_path: str
    repository: str = ""
    file_url: str = ""
    line_number: Optional[int] = None
    context: Optional[str] = None

    @property
    def identity(self) -> tuple:
        return (self.key, self.repository, self.file_path)

    @property
    def preview(self) -> str:
        """Truncated key, safe to print or log"""
        if len(self.key) > 20:
            return f"{self.key[:20]}..."
        return self.key

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectedKey":
        return cls(
            key=data["key"],
            key_type=data["key_type"],
            file_path=data.get("file_path", ""),
            repository=data.get("repository", ""),
            file_url=data.get("file_url", ""),
            line_number=data.get("line_number"),
            context=data.get("context"),
        )


@dataclass
class ValidationResult:
    """
    Outcome of a liveness check.

    A valid result never carries an error. An invalid result carries the
    provider's error message and no required metadata.
    """
    valid: bool
    key_type: str
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_valid(cls, key_type: str, metadata: Optional[Dict[str, Any]] = None) -> "ValidationResult":
        return cls(valid=True, key_type=key_type, error=None, metadata=metadata or {})

    @classmethod
    def for_invalid(cls, key_type: str, error: str) -> "ValidationResult":
        return cls(valid=False, key_type=key_type, error=error, metadata={})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "key_type": self.key_type,
            "error": self.error,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidationResult":
        return cls(
            valid=bool(data["valid"]),
            key_type=data["key_type"],
            error=data.get("error"),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class ValidatedKey:
    """A detected key together with its validation verdict"""
    detected: DetectedKey
    validation: ValidationResult
    validated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected": self.detected.to_dict(),
            "validation": self.validation.to_dict(),
            "validated_at": self.validated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidatedKey":
        return cls(
            detected=DetectedKey.from_dict(data["detected"]),
            validation=ValidationResult.from_dict(data["validation"]),
            validated_at=_parse_timestamp(data.get("validated_at")),
        )


@dataclass
class Statistics:
    """Increment-only counters for a hunt run"""
    files_attempted: int = 0
    files_downloaded: int = 0
    files_404: int = 0
    files_other_error: int = 0
    files_from_snippets: int = 0
    keys_found: int = 0
    keys_tested: int = 0
    keys_valid: int = 0
    keys_invalid: int = 0

    def increment(self, counter: str, amount: int = 1):
        if amount < 0:
            raise ValueError("Statistics counters only increase")
        setattr(self, counter, getattr(self, counter) + amount)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Statistics":
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: int(v) for k, v in data.items() if k in known})


@dataclass
class HuntResults:
    """Everything a run produced, written once at the end"""
    timestamp: datetime = field(default_factory=utc_now)
    total_keys_found: int = 0
    valid_keys: List[ValidatedKey] = field(default_factory=list)
    invalid_keys: List[ValidatedKey] = field(default_factory=list)
    by_key_type: Dict[str, int] = field(default_factory=dict)
    statistics: Statistics = field(default_factory=Statistics)

    def record(self, validated: ValidatedKey):
        """File a validated key under valid/invalid and bump the counters"""
        if validated.validation.valid:
            self.valid_keys.append(validated)
            self.statistics.increment("keys_valid")
            key_type = validated.detected.key_type
            self.by_key_type[key_type] = self.by_key_type.get(key_type, 0) + 1
        else:
            self.invalid_keys.append(validated)
            self.statistics.increment("keys_invalid")

    def finalize(self):
        self.timestamp = utc_now()
        self.total_keys_found = self.statistics.keys_found

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "total_keys_found": self.total_keys_found,
            "valid_keys": [k.to_dict() for k in self.valid_keys],
            "invalid_keys": [k.to_dict() for k in self.invalid_keys],
            "by_key_type": dict(self.by_key_type),
            "statistics": self.statistics.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HuntResults":
        return cls(
            timestamp=_parse_timestamp(data.get("timestamp")),
            total_keys_found=int(data.get("total_keys_found", 0)),
            valid_keys=[ValidatedKey.from_dict(k) for k in data.get("valid_keys", [])],
            invalid_keys=[ValidatedKey.from_dict(k) for k in data.get("invalid_keys", [])],
            by_key_type={k: int(v) for k, v in (data.get("by_key_type") or {}).items()},
            statistics=Statistics.from_dict(data.get("statistics") or {}),
        )
