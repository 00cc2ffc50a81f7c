"""
Responsible disclosure via GitHub issues.

Confirmed-valid keys are grouped by repository and one issue is opened per
repository, telling the owner which file leaked which (truncated) key and
where to revoke it.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Optional, Callable

import structlog
from rich.console import Console

from ..core.errors import KeyHunterError, HttpError, NotFoundError, TransportError
from ..core.http import HttpClient
from ..core.log import key_preview
from ..core.models import ValidatedKey

GITHUB_API = "https://api.github.com"
ISSUE_PAUSE_SECONDS = 1.0


class IssueExistsError(KeyHunterError):
    """Raised when the repository already has an issue with the same title"""
    pass


@dataclass
class ServiceConfig:
    """Per-service wording for disclosure issues"""
    service_name: str
    revoke_url: str
    additional_actions: str = ""
    best_practices: str = ""
    resources: str = ""

    @classmethod
    def for_key_type(cls, key_type: str) -> "ServiceConfig":
        if key_type == "shodan":
            return cls(
                service_name="Shodan",
                revoke_url="https://account.shodan.io/",
                resources="- [Shodan Account Settings](https://account.shodan.io/)",
            )
        if key_type == "claude":
            return cls(
                service_name="Anthropic Claude",
                revoke_url="https://console.anthropic.com/settings/keys",
                additional_actions="6. **Review API usage logs** for unauthorized access",
                resources="- [Anthropic API Keys](https://console.anthropic.com/settings/keys)",
            )
        if key_type == "openai":
            return cls(
                service_name="OpenAI",
                revoke_url="https://platform.openai.com/api-keys",
                additional_actions="6. **Review API usage logs** at https://platform.openai.com/usage",
                resources=(
                    "- [OpenAI API Keys](https://platform.openai.com/api-keys)\n"
                    "- [OpenAI Usage Dashboard](https://platform.openai.com/usage)"
                ),
            )
        if key_type in ("google", "gemini"):
            return cls(
                service_name="Google Gemini" if key_type == "gemini" else "Google Cloud",
                revoke_url="https://console.cloud.google.com/apis/credentials",
                additional_actions="6. **Review API usage logs** in Google Cloud Console",
                best_practices=(
                    "- Use service accounts with workload identity instead of API keys when possible\n"
                    "- Implement API key restrictions (referrer, IP and API restrictions)"
                ),
                resources=(
                    "- [Google Cloud API Credentials](https://console.cloud.google.com/apis/credentials)\n"
                    "- [Best practices for API keys](https://cloud.google.com/docs/authentication/api-keys)"
                ),
            )
        return cls(
            service_name=key_type.upper(),
            revoke_url=f"your {key_type} account/dashboard",
        )


@dataclass
class IssueCreationStats:
    """Outcome of a bulk issue run (counts are in keys, not issues)"""
    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    issue_urls: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
            "issue_urls": list(self.issue_urls),
            "errors": list(self.errors),
        }


def format_title(keys: List[ValidatedKey]) -> str:
    service = ServiceConfig.for_key_type(keys[0].detected.key_type)
    if len(keys) == 1:
        return f"[Security] Exposed {service.service_name} API key in {keys[0].detected.file_path}"
    return f"[Security] {len(keys)} Exposed {service.service_name} API keys"


def _metadata_lines(validated: ValidatedKey) -> List[str]:
    lines = []
    for name, value in validated.validation.metadata.items():
        label = " ".join(word.capitalize() for word in name.split("_"))
        lines.append(f"- **{label}**: {value}")
    return lines


def format_body(keys: List[ValidatedKey]) -> str:
    service = ServiceConfig.for_key_type(keys[0].detected.key_type)
    count = len(keys)
    plural = count > 1

    sections = [
        "## Security Alert: Exposed API Key{}".format("s" if plural else ""),
        "",
        "{} valid {} API key{} {} found committed to this repository. "
        "Anyone who can read this repository can use {} on your account.".format(
            count,
            service.service_name,
            "s" if plural else "",
            "were" if plural else "was",
            "these keys" if plural else "this key",
        ),
        "",
        "### Details",
        "",
    ]

    for index, validated in enumerate(keys, start=1):
        detected = validated.detected
        line_number = detected.line_number if detected.line_number is not None else "N/A"
        sections.extend([
            f"**Key {index}:**",
            f"- **File**: `{detected.file_path}`",
            f"- **Line Number**: {line_number}",
            f"- **File URL**: {detected.file_url}",
            f"- **Key Preview**: `{key_preview(detected.key)}` (truncated for security)",
        ])
        metadata = _metadata_lines(validated)
        if metadata:
            sections.append("- **Validation details**:")
            sections.extend(f"  {line}" for line in metadata)
        sections.append("")

    sections.extend([
        "### Recommended Actions",
        "",
        f"1. **Revoke the key{'s' if plural else ''} immediately** at {service.revoke_url}",
        "2. **Generate a new key** and store it outside version control (environment variables, a secret manager)",
        "3. **Remove the key from git history**:",
        "```",
    ])
    for path in dict.fromkeys(k.detected.file_path for k in keys):
        sections.append(f"git filter-repo --path {path} --invert-paths")
    sections.extend([
        "```",
        "4. **Add the file to .gitignore** if it only holds configuration",
        "5. **Enable secret scanning** for this repository",
    ])
    if service.additional_actions:
        sections.append(service.additional_actions)

    if service.best_practices:
        sections.extend(["", "### Best Practices", "", service.best_practices])

    if service.resources:
        sections.extend(["", "### Resources", "", service.resources])

    sections.extend([
        "",
        "---",
        "*This issue was opened by an automated responsible disclosure scan on "
        f"{datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC. "
        "The key was only used for a single read-only validation request.*",
    ])

    return "\n".join(sections)


class GitHubIssueClient:
    """
    Opens disclosure issues on the repositories that leaked keys.

    Example:
        >>> client = GitHubIssueClient(load_issues_token(), dry_run=True)
        >>> stats = await client.create_issues_bulk(valid_keys)
    """

    def __init__(
        self,
        token: str,
        http_client: Optional[HttpClient] = None,
        dry_run: bool = False,
        pause: float = ISSUE_PAUSE_SECONDS,
        base_url: str = GITHUB_API,
        console: Optional[Console] = None,
    ):
        self.token = token
        self.http_client = http_client or HttpClient()
        self._owns_client = http_client is None
        self.dry_run = dry_run
        self.pause = pause
        self.base_url = base_url.rstrip("/")
        self.console = console or Console()

        self.logger = structlog.get_logger(__name__)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github.v3+json",
        }

    async def check_issue_exists(self, repo: str, title: str) -> bool:
        """
        Look for an issue (open or closed) with exactly this title.

        Lookup failures never block issue creation; they count as "no issue".
        """
        try:
            response = await self.http_client.get(
                f"{self.base_url}/repos/{repo}/issues",
                headers=self._headers(),
                params={"state": "all", "per_page": "100"},
            )
        except TransportError as e:
            self.logger.warning("issue_lookup_failed", repo=repo, error=str(e))
            return False

        if response.status_code != 200:
            if response.status_code not in (403, 404):
                self.logger.warning("issue_lookup_failed", repo=repo, status=response.status_code)
            return False

        try:
            issues = response.json()
        except ValueError:
            return False

        if not isinstance(issues, list):
            return False

        return any(
            isinstance(issue, dict) and issue.get("title") == title
            for issue in issues
        )

    async def create_issue(self, repo: str, keys: List[ValidatedKey]) -> str:
        """
        Open one issue for all keys leaked by a repository.

        Returns:
            The issue URL (a "DRY RUN: <repo>" marker in dry-run mode)

        Raises:
            IssueExistsError: An issue with the same title already exists
            NotFoundError: The repository is gone or inaccessible (404)
            HttpError: Issues disabled (410), permission denied (403) or other failure
        """
        if not keys:
            raise ValueError("No keys provided")

        title = format_title(keys)
        body = format_body(keys)

        if self.dry_run:
            self.console.print("\n" + "=" * 80)
            self.console.print(f"[yellow]DRY RUN:[/yellow] Would create issue in [cyan]{repo}[/cyan]")
            self.console.print(f"Title: {title}", markup=False)
            self.console.print("=" * 80)
            self.console.print(body, markup=False)
            self.console.print("=" * 80)
            return f"DRY RUN: {repo}"

        if await self.check_issue_exists(repo, title):
            self.logger.info("issue_exists", repo=repo, title=title)
            raise IssueExistsError(f"Issue already exists in {repo}")

        response = await self.http_client.post(
            f"{self.base_url}/repos/{repo}/issues",
            headers=self._headers(),
            json={"title": title, "body": body},
        )

        if response.status_code == 201:
            try:
                issue_url = response.json().get("html_url", "unknown")
            except (ValueError, AttributeError):
                issue_url = "unknown"
            self.logger.info("issue_created", repo=repo, url=issue_url)
            return issue_url

        if response.status_code == 410:
            raise HttpError(f"Issues disabled for {repo}", status_code=410)
        if response.status_code == 404:
            raise NotFoundError(f"Repository {repo} not found or not accessible")
        if response.status_code == 403:
            raise HttpError(f"Permission denied for {repo}", status_code=403)
        raise HttpError(
            f"Failed to create issue ({response.status_code}): {response.text()[:200]}",
            status_code=response.status_code,
        )

    async def create_issues_bulk(
        self,
        keys: List[ValidatedKey],
        on_progress: Optional[Callable[[str, int], None]] = None,
    ) -> IssueCreationStats:
        """
        Open one issue per repository.

        Args:
            keys: Validated keys from one or more reports
            on_progress: Called with (repository, key count) after each repository

        Returns:
            IssueCreationStats
        """
        stats = IssueCreationStats(total=len(keys))

        by_repo: Dict[str, List[ValidatedKey]] = {}
        for validated in keys:
            by_repo.setdefault(validated.detected.repository, []).append(validated)

        self.logger.info("issues_grouped", keys=len(keys), repositories=len(by_repo))

        for index, (repo, repo_keys) in enumerate(by_repo.items()):
            try:
                url = await self.create_issue(repo, repo_keys)
                stats.success += 1
                stats.issue_urls.append(url)
            except IssueExistsError:
                stats.skipped += len(repo_keys)
            except KeyHunterError as e:
                stats.failed += len(repo_keys)
                stats.errors.append(f"{repo}: {e}")
                self.logger.warning("issue_failed", repo=repo, error=str(e))

            if on_progress:
                on_progress(repo, len(repo_keys))

            if not self.dry_run and index < len(by_repo) - 1 and self.pause > 0:
                await asyncio.sleep(self.pause)

        return stats

    async def close(self):
        if self._owns_client:
            await self.http_client.close()
