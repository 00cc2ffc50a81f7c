"""
Report persistence.

Three JSON artifacts are produced:
- valid-only report (search with validation):
  results/<key_type>/valid_keys_<YYYYmmdd_HHMMSS>.json
- detections file (search without validation):
  results/<key_type>/detected_keys_<YYYYmmdd_HHMMSS>.json
- full HuntResults (validate-only runs)
"""

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union, Any

import structlog

from ..core.errors import ConfigError
from ..core.models import DetectedKey, HuntResults, ValidatedKey

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


def timestamp_slug(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d_%H%M%S")


def default_output_path(directory: PathLike, key_type: str, prefix: str) -> Path:
    """results/<key_type>/<prefix>_<timestamp>.json (directory is created)"""
    folder = Path(directory) / key_type
    folder.mkdir(parents=True, exist_ok=True)
    return folder / f"{prefix}_{timestamp_slug()}.json"


def _write_json(path: PathLike, payload: Any) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.debug("report_written", path=str(output_path))
    return output_path


def _read_json(path: PathLike) -> Any:
    input_path = Path(path)
    try:
        with open(input_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Input file not found: {input_path}") from e
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to read {input_path}: {e}") from e


def valid_report(results: HuntResults, key_type: str) -> dict:
    return {
        "timestamp": results.timestamp.isoformat(),
        "key_type": key_type,
        "total_valid_keys": len(results.valid_keys),
        "total_keys_scanned": results.total_keys_found,
        "valid_keys": [k.to_dict() for k in results.valid_keys],
    }


def save_valid_report(results: HuntResults, key_type: str, path: PathLike) -> Path:
    """Persist only the confirmed-valid keys of a search run"""
    return _write_json(path, valid_report(results, key_type))


def save_detections(detected_keys: List[DetectedKey], path: PathLike) -> Path:
    """Persist raw detections for a later validate-only run"""
    return _write_json(path, [k.to_dict() for k in detected_keys])


def load_detected_keys(path: PathLike) -> List[DetectedKey]:
    """
    Read a detections file.

    Raises:
        ConfigError: If the file is missing or not a list of detected keys
    """
    data = _read_json(path)
    if not isinstance(data, list):
        raise ConfigError(f"{path} is not a list of detected keys")
    try:
        return [DetectedKey.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as e:
        raise ConfigError(f"Malformed detected key in {path}: {e}") from e


def save_hunt_results(results: HuntResults, path: PathLike) -> Path:
    return _write_json(path, results.to_dict())


def load_hunt_results(path: PathLike) -> HuntResults:
    data = _read_json(path)
    try:
        return HuntResults.from_dict(data)
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise ConfigError(f"Malformed results file {path}: {e}") from e


def collect_valid_keys(results_dir: PathLike, key_type: str = "all") -> List[ValidatedKey]:
    """
    Gather validated keys from every report under results/<key_type>/.

    Files that are not reports (detections, unreadable JSON) are skipped.

    Raises:
        ConfigError: If the results directory does not exist
    """
    root = Path(results_dir)
    if not root.is_dir():
        raise ConfigError(f"Results directory not found: {root}")

    collected: List[ValidatedKey] = []

    for folder in sorted(p for p in root.iterdir() if p.is_dir()):
        for report_path in sorted(folder.glob("*.json")):
            try:
                with open(report_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("report_unreadable", path=str(report_path), error=str(e))
                continue

            if not isinstance(data, dict) or "valid_keys" not in data:
                continue

            file_key_type = data.get("key_type", "all")
            try:
                keys = [ValidatedKey.from_dict(item) for item in data["valid_keys"]]
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                logger.warning("report_malformed", path=str(report_path), error=str(e))
                continue

            if key_type != "all" and file_key_type != key_type:
                keys = [k for k in keys if k.detected.key_type == key_type]

            logger.debug("report_loaded", path=str(report_path), keys=len(keys))
            collected.extend(keys)

    return collected
