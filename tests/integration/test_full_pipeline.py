"""
Integration test for the full hunting pipeline.

Verifies the search -> deduplicate -> acquire -> detect -> validate ->
report -> disclose chain end-to-end, with GitHub, raw downloads and the
OpenAI API replaced by an in-memory HTTP client.
"""

import io
import json

import pytest
from click.testing import CliRunner
from rich.console import Console

from keyhunter import cli as cli_module
from keyhunter.cli import cli
from keyhunter.core.orchestrator import HuntConfig, Orchestrator
from keyhunter.core.rate_limiter import RateLimiter
from keyhunter.detectors import OpenAIDetector
from keyhunter.providers import GitHubProvider
from keyhunter.reporters import (
    GitHubIssueClient,
    collect_valid_keys,
    save_detections,
    save_valid_report,
)
from keyhunter.validators import OpenAIValidator

from conftest import FakeHttpClient, json_response, text_response

KEY_A = "sk-" + "Ab1" * 16
KEY_B = "sk-" + "Zy9" * 16


def search_item(name: str, fragment=None):
    item = {
        "path": f"{name}.env",
        "html_url": f"https://github.com/owner/{name}/blob/main/{name}.env",
        "repository": {"full_name": f"owner/{name}", "default_branch": "main"},
    }
    if fragment is not None:
        item["text_matches"] = [{"fragment": fragment}]
    return item


def raw_url(name: str) -> str:
    return f"https://raw.githubusercontent.com/owner/{name}/main/{name}.env"


def search_page(*items):
    return json_response(200, {"total_count": len(items), "items": list(items)})


@pytest.fixture
def pipeline_http():
    """GitHub search, raw downloads and the OpenAI API behind one fake client"""
    r1 = search_item("one", fragment=f"OPENAI_API_KEY={KEY_A}")
    r2 = search_item("two")
    r3 = search_item("three", fragment="nothing to see")
    r4 = search_item("four")

    http_client = FakeHttpClient()
    http_client.route("/search/code", search_page(r1, r2, r3), search_page(r1, r3, r4))
    http_client.route(raw_url("two"), text_response(200, f"# config\nOPENAI_API_KEY={KEY_B}\n"))
    http_client.route(raw_url("four"), text_response(404))
    http_client.route(
        "api.openai.com",
        json_response(200, {"data": [{"id": "gpt-4"}]}),
        text_response(401),
    )
    return http_client


@pytest.mark.integration
@pytest.mark.asyncio
async def test_full_hunting_pipeline(pipeline_http, tmp_path):
    """
    Test complete pipeline: Search -> Deduplicate -> Detect -> Validate -> Report -> Disclose
    """
    fast = RateLimiter(requests_per_second=1000)
    provider = GitHubProvider(tokens=["t1"], http_client=pipeline_http, rate_limiter=fast)
    validator = OpenAIValidator(http_client=pipeline_http, rate_limiter=RateLimiter(requests_per_second=1000))
    config = HuntConfig(
        qualifiers=["extension:env", "extension:py"],
        query_delay=0,
        subquery_delay=0,
    )
    orchestrator = Orchestrator(provider, [OpenAIDetector()], {"openai": validator}, config)

    events = []
    orchestrator.subscribe(lambda event, data: events.append(event))

    results = await orchestrator.hunt(custom_query="OPENAI_API_KEY")

    # Two sub-queries, six hits, four unique files
    search_requests = [r for r in pipeline_http.requests if "/search/code" in r["url"]]
    assert [r["params"]["q"] for r in search_requests] == [
        "OPENAI_API_KEY extension:env",
        "OPENAI_API_KEY extension:py",
    ]

    stats = results.statistics
    assert stats.files_attempted == 4
    assert stats.files_from_snippets == 2
    assert stats.files_downloaded == 1
    assert stats.files_404 == 1
    assert stats.files_other_error == 0
    assert stats.keys_found == 2
    assert stats.keys_tested == 2
    assert stats.keys_valid == 1
    assert stats.keys_invalid == 1

    valid = results.valid_keys[0]
    assert valid.detected.key == KEY_A
    assert valid.detected.repository == "owner/one"
    assert valid.validation.metadata["model_count"] == 1
    assert results.invalid_keys[0].detected.key == KEY_B
    assert results.invalid_keys[0].detected.line_number == 2

    assert events.count("subquery_completed") == 2
    assert events.count("result_processed") == 4
    assert events[-1] == "hunt_completed"

    # Report and disclose
    save_valid_report(results, "openai", tmp_path / "results" / "openai" / "valid_keys_test.json")
    keys = collect_valid_keys(tmp_path / "results")
    assert [k.detected.key for k in keys] == [KEY_A]

    console = Console(file=io.StringIO(), width=200)
    issues = GitHubIssueClient("t", http_client=FakeHttpClient(), dry_run=True, console=console)
    stats = await issues.create_issues_bulk(keys)

    assert stats.success == 1
    assert stats.issue_urls == ["DRY RUN: owner/one"]
    assert KEY_A not in console.file.getvalue()


@pytest.fixture
def cli_env(monkeypatch, tmp_path, sleeps):
    """Isolated working directory, one search token and fast pacing"""
    for name in ["GITHUB_TOKEN", "ISSUES_GITHUB_TOKEN"] + [f"GITHUB_TOKEN{i}" for i in range(2, 6)]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GITHUB_TOKEN1", "t1")
    monkeypatch.chdir(tmp_path)

    (tmp_path / ".keyhunter.yaml").write_text(
        "search:\n"
        "  query_delay: 0\n"
        "  subquery_delay: 0\n"
        "  auto_split: false\n"
        "github:\n"
        "  rate_limit_delay_ms: 0\n"
        "output:\n"
        f"  directory: {tmp_path / 'results'}\n"
    )
    return tmp_path


def use_http(monkeypatch, http_client):
    monkeypatch.setattr(cli_module, "HttpClient", lambda *args, **kwargs: http_client)


@pytest.mark.integration
class TestCli:
    """Test suite for the command line interface"""

    def test_search_validates_and_saves_report(self, cli_env, monkeypatch):
        """Test search writes only valid keys to the report"""
        http_client = FakeHttpClient()
        http_client.route("/search/code", search_page(
            search_item("one", fragment=f"OPENAI_API_KEY={KEY_A}"),
            search_item("two", fragment=f"OPENAI_API_KEY={KEY_B}"),
        ))
        http_client.route("api.openai.com", json_response(200, {"data": []}), text_response(401))
        use_http(monkeypatch, http_client)
        output = cli_env / "out.json"

        result = CliRunner().invoke(cli, ["search", "-k", "openai", "-q", "OPENAI_API_KEY", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert "ETHICAL USE ONLY" in result.output
        report = json.loads(output.read_text())
        assert report["key_type"] == "openai"
        assert report["total_valid_keys"] == 1
        assert report["total_keys_scanned"] == 2
        assert report["valid_keys"][0]["detected"]["key"] == KEY_A

    def test_search_without_validation_saves_detections(self, cli_env, monkeypatch):
        """Test --no-validate writes every detection under results/<key_type>/"""
        http_client = FakeHttpClient()
        http_client.route("/search/code", search_page(search_item("one", fragment=f"KEY={KEY_A}")))
        use_http(monkeypatch, http_client)

        result = CliRunner().invoke(cli, ["search", "-k", "openai", "-q", "KEY", "--no-validate"])

        assert result.exit_code == 0, result.output
        files = list((cli_env / "results" / "openai").glob("detected_keys_*.json"))
        assert len(files) == 1
        assert json.loads(files[0].read_text())[0]["key"] == KEY_A

    def test_validate_command(self, cli_env, monkeypatch):
        """Test a detections file is validated into a full results file"""
        from keyhunter.core.models import DetectedKey

        detections = cli_env / "detected.json"
        save_detections([DetectedKey(key=KEY_A, key_type="openai", file_path=".env", repository="a/b")], detections)
        use_http(monkeypatch, FakeHttpClient([json_response(200, {"data": []})]))
        output = cli_env / "validated.json"

        result = CliRunner().invoke(cli, ["validate", "-i", str(detections), "-o", str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text())
        assert data["total_keys_found"] == 1
        assert len(data["valid_keys"]) == 1

    def test_validate_missing_input(self, cli_env):
        """Test a missing input file exits with status 1"""
        result = CliRunner().invoke(cli, ["validate", "-i", str(cli_env / "missing.json")])

        assert result.exit_code == 1
        assert "Input file not found" in result.output

    def test_unknown_key_type(self, cli_env):
        """Test an unknown key type exits with status 1"""
        result = CliRunner().invoke(cli, ["search", "-k", "nope"])

        assert result.exit_code == 1
        assert "Unknown key type" in result.output

    def test_list(self, cli_env):
        """Test detectors and validators are listed"""
        result = CliRunner().invoke(cli, ["list"])

        assert result.exit_code == 0
        assert "Available Detectors" in result.output
        assert "Available Validators" in result.output
        assert "openrouter" in result.output

    def test_report_dry_run(self, cli_env, monkeypatch):
        """Test report reads saved results and prints issues without posting"""
        from keyhunter.core.models import DetectedKey, HuntResults, ValidatedKey, ValidationResult

        results = HuntResults()
        results.record(ValidatedKey(
            DetectedKey(key=KEY_A, key_type="openai", file_path=".env", repository="owner/one"),
            ValidationResult.for_valid("openai"),
        ))
        save_valid_report(results, "openai", cli_env / "results" / "openai" / "valid_keys_1.json")
        http_client = FakeHttpClient()
        use_http(monkeypatch, http_client)

        result = CliRunner().invoke(cli, ["report", "--results-dir", str(cli_env / "results"), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "DRY RUN" in result.output
        assert http_client.requests == []

    def test_report_requires_token(self, cli_env):
        """Test creating real issues needs ISSUES_GITHUB_TOKEN"""
        result = CliRunner().invoke(cli, ["report", "--results-dir", str(cli_env)])

        assert result.exit_code == 1
        assert "ISSUES_GITHUB_TOKEN" in result.output

    def test_version(self):
        """Test --version reports the package version"""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output
