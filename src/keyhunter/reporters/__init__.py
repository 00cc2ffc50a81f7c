"""
Reporters module - result files and responsible disclosure.
"""

from .report import (
    save_valid_report,
    save_detections,
    load_detected_keys,
    save_hunt_results,
    load_hunt_results,
    collect_valid_keys,
    default_output_path,
)
from .issues import (
    GitHubIssueClient,
    IssueCreationStats,
    IssueExistsError,
    ServiceConfig,
)


__all__ = [
    # Result files
    "save_valid_report",
    "save_detections",
    "load_detected_keys",
    "save_hunt_results",
    "load_hunt_results",
    "collect_valid_keys",
    "default_output_path",
    # Issues
    "GitHubIssueClient",
    "IssueCreationStats",
    "IssueExistsError",
    "ServiceConfig",
]
