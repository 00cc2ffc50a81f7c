"""
KEYHUNTER command line interface.

Usage:
    keyhunter search --key-type openai
    keyhunter search -k shodan --no-validate -o detections.json
    keyhunter validate -i detections.json -k openai
    keyhunter test sk-... -k openai
    keyhunter list detectors
    keyhunter report --dry-run
"""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Dict, Any

import click
from rich.console import Console
from rich.table import Table
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    MofNCompleteColumn,
)

from . import __version__
from .core.config import load_config, load_issues_token
from .core.errors import KeyHunterError, ConfigError
from .core.http import HttpClient
from .core.log import configure_logging, key_preview
from .core.models import HuntResults
from .core.orchestrator import Orchestrator, HuntConfig
from .detectors import DETECTORS, BaseDetector, all_detectors, get_detector
from .providers import get_provider
from .reporters import (
    GitHubIssueClient,
    collect_valid_keys,
    default_output_path,
    load_detected_keys,
    save_detections,
    save_hunt_results,
    save_valid_report,
)
from .validators import VALIDATORS, all_validators, get_validator


console = Console()


def print_banner():
    console.print("=" * 70, style="cyan")
    console.print("  KEYHUNTER - API Key Exposure Scanner", style="bold cyan")
    console.print("=" * 70, style="cyan")
    console.print()


def print_ethical_warning():
    console.print("[bold yellow]ETHICAL USE ONLY[/bold yellow]")
    console.print("This tool is for security research and responsible disclosure only.")
    console.print("By using this tool, you agree to:")
    console.print("  [green]✓[/green] Use findings for research and awareness")
    console.print("  [green]✓[/green] Report all valid keys to owners")
    console.print("  [green]✓[/green] Not use keys for unauthorized purposes")
    console.print()


def print_statistics(results: HuntResults):
    statistics = results.statistics

    table = Table(title="Results Summary")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Count", style="white", justify="right")

    table.add_row("Total keys found", str(results.total_keys_found))
    table.add_row("Keys tested", str(statistics.keys_tested))
    table.add_row("Valid keys", f"[green]{len(results.valid_keys)}[/green]")
    table.add_row("Invalid keys", f"[red]{len(results.invalid_keys)}[/red]")
    table.add_row("Files attempted", str(statistics.files_attempted))
    table.add_row("Files from snippets", str(statistics.files_from_snippets))
    table.add_row("Files downloaded", str(statistics.files_downloaded))
    table.add_row("Files not found (404)", str(statistics.files_404))
    table.add_row("Files failed", str(statistics.files_other_error))

    console.print()
    console.print(table)

    if results.by_key_type:
        console.print("\n[yellow]Valid keys by type:[/yellow]")
        for key_type, count in sorted(results.by_key_type.items()):
            console.print(f"  [cyan]{key_type}[/cyan]: {count}")

    if results.valid_keys:
        console.print("\n[bold yellow]VALID KEYS FOUND - RESPONSIBLE DISCLOSURE REQUIRED[/bold yellow]")
        console.print("Next steps:")
        console.print("  1. Report to repository owners (keyhunter report)")
        console.print("  2. Report to service providers")
        console.print("  3. Document findings")
        console.print("  4. DO NOT use keys for unauthorized purposes")
    console.print()


class HuntProgress:
    """Orchestrator observer that drives a rich progress display"""

    def __init__(self, progress: Progress):
        self.progress = progress
        self.query_task = progress.add_task("[cyan]Preparing...", total=None)
        self.file_task = None

    def __call__(self, event: str, data: Dict[str, Any]):
        if event == "query_started":
            self.progress.update(
                self.query_task,
                description=f"[cyan]{data['detector']}[/cyan] query {data['index']}/{data['total']}: {data['query']}",
                total=data["total"],
                completed=data["index"] - 1,
            )
        elif event == "subquery_completed":
            if data["found"]:
                self.progress.console.print(
                    f"  [dim]{data['query']}[/dim] found {data['found']} "
                    f"(collected {data['collected']})"
                )
        elif event == "results_deduplicated":
            self.progress.console.print(
                f"  Found [white]{data['unique']}[/white] unique files "
                f"({data['duplicates']} duplicates removed)"
            )
            self._reset_file_task(data["unique"])
        elif event == "result_processed":
            if self.file_task is None:
                self._reset_file_task(data["total"])
            self.progress.update(
                self.file_task,
                completed=data["index"],
                description=f"[green]Scanning[/green] ({data['keys_valid']} valid)",
            )
        elif event == "key_detected":
            key = data["key"]
            self.progress.console.print(
                f"  [green]✓[/green] Found [yellow]{key.key_type}[/yellow] key: "
                f"[cyan]{key_preview(key.key, head=10)}[/cyan] in {key.file_path}"
            )
        elif event == "key_validated":
            validated = data["key"]
            if validated.validation.valid:
                metadata = ", ".join(f"{k}: {v}" for k, v in validated.validation.metadata.items())
                self.progress.console.print(f"    [bold green]✓ VALID![/bold green] {metadata}")
            else:
                self.progress.console.print("    [dim]✗ Invalid (likely rotated)[/dim]")
        elif event == "hunt_completed":
            self.progress.update(self.query_task, description="[green]Hunt complete!")

    def _reset_file_task(self, total: int):
        if self.file_task is not None:
            self.progress.remove_task(self.file_task)
        self.file_task = self.progress.add_task("[green]Scanning", total=total)


def make_progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    )


def run_command(coro):
    """Run a command coroutine, turning failures into exit status 1"""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)
    except KeyHunterError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        sys.exit(1)


def select_detectors(key_type: str) -> List[BaseDetector]:
    if key_type.lower() == "all":
        return all_detectors()
    detector = get_detector(key_type)
    if detector is None:
        raise ConfigError(
            f"Unknown key type: {key_type}. Use 'keyhunter list detectors' to see available types"
        )
    return [detector]


@click.group()
@click.version_option(version=__version__, prog_name="KEYHUNTER")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose (debug) logging")
def cli(verbose: bool):
    """
    KEYHUNTER - API Key Exposure Scanner

    Searches public code for leaked credentials, checks whether they are
    live and helps notify the owners.
    """
    configure_logging(verbose)
    print_banner()


@cli.command()
@click.option("--key-type", "-k", default="all", help="Key type to hunt (default: all)")
@click.option("--query", "-q", default=None, help="Custom search query (replaces default queries)")
@click.option("--max-results", "-m", default=None, type=int, help="Maximum results per query (GitHub max is 1000)")
@click.option("--output", "-o", type=click.Path(), default=None, help="Output file (default: results/<key-type>/...)")
@click.option("--validate/--no-validate", default=True, help="Validate keys as they are found (default: enabled)")
@click.option("--auto-split/--no-auto-split", default=None, help="Split queries by file type past the 1000 result ceiling")
@click.option("--config", "config_path", type=click.Path(), default=None, help="YAML configuration file")
def search(
    key_type: str,
    query: Optional[str],
    max_results: Optional[int],
    output: Optional[str],
    validate: bool,
    auto_split: Optional[bool],
    config_path: Optional[str],
):
    """
    Search GitHub for exposed keys.

    Example:
        keyhunter search -k openai
        keyhunter search -k shodan -q "SHODAN_API_KEY" --no-auto-split
    """
    print_ethical_warning()

    run_command(run_search(
        key_type=key_type,
        query=query,
        max_results=max_results,
        output=output,
        validate=validate,
        auto_split=auto_split,
        config_path=config_path,
    ))


async def run_search(
    key_type: str,
    query: Optional[str],
    max_results: Optional[int],
    output: Optional[str],
    validate: bool,
    auto_split: Optional[bool],
    config_path: Optional[str],
) -> HuntResults:
    config = load_config(config_path)
    detectors = select_detectors(key_type)

    if not config.github.tokens:
        console.print("[yellow]No GitHub token found (GITHUB_TOKEN1..5 or GITHUB_TOKEN); "
                      "code search requires authentication[/yellow]")

    hunt_config = HuntConfig.from_settings(
        config.search,
        validate=validate,
        max_results=max_results,
        auto_split=auto_split,
    )

    console.print(f"[green]Key type:[/green] {key_type}")
    console.print(f"[green]Detectors:[/green] {', '.join(d.name for d in detectors)}")
    console.print(f"[green]Tokens:[/green] {len(config.github.tokens)}")
    console.print(f"[green]Validation:[/green] {'[bold green]Enabled[/bold green]' if validate else '[dim]Disabled[/dim]'}")
    console.print(f"[green]Auto-split:[/green] {hunt_config.auto_split}")
    console.print()

    async with HttpClient() as http_client:
        provider = get_provider("github", config.github, http_client=http_client)
        validators = all_validators(config.validators, http_client=http_client) if validate else {}
        orchestrator = Orchestrator(provider, detectors, validators, hunt_config)

        with make_progress() as progress:
            orchestrator.subscribe(HuntProgress(progress))
            results = await orchestrator.hunt(custom_query=query)

        if validate:
            output_path = Path(output) if output else default_output_path(
                config.output.directory, key_type, "valid_keys"
            )
            save_valid_report(results, key_type, output_path)
        else:
            output_path = Path(output) if output else default_output_path(
                config.output.directory, key_type, "detected_keys"
            )
            save_detections(orchestrator.detected_keys, output_path)

    print_statistics(results)
    console.print(f"[green]Results saved to:[/green] {output_path}")
    return results


@cli.command()
@click.option("--input", "-i", "input_path", required=True, type=click.Path(), help="Detections file to validate")
@click.option("--output", "-o", default="validated_results.json", type=click.Path(), help="Output file for validation results")
@click.option("--key-type", "-k", default="all", help="Only validate keys of this type (default: all)")
@click.option("--config", "config_path", type=click.Path(), default=None, help="YAML configuration file")
def validate(input_path: str, output: str, key_type: str, config_path: Optional[str]):
    """
    Validate keys from a detections file.

    Example:
        keyhunter validate -i results/openai/detected_keys_20250101_120000.json
    """
    run_command(run_validate(input_path, output, key_type, config_path))


async def run_validate(input_path: str, output: str, key_type: str, config_path: Optional[str]) -> HuntResults:
    config = load_config(config_path)

    console.print(f"[cyan]Loading keys from {input_path}[/cyan]")
    detected_keys = load_detected_keys(input_path)
    console.print(f"Loaded {len(detected_keys)} keys to validate\n")

    async with HttpClient() as http_client:
        validators = all_validators(config.validators, http_client=http_client)
        orchestrator = Orchestrator(None, [], validators, HuntConfig(validate=True))

        with make_progress() as progress:
            orchestrator.subscribe(HuntProgress(progress))
            results = await orchestrator.validate_keys(detected_keys, key_type=key_type)

    save_hunt_results(results, output)

    print_statistics(results)
    console.print(f"[green]Results saved to:[/green] {output}")
    return results


@cli.command()
@click.argument("key")
@click.option("--key-type", "-k", required=True, help="Key type (see 'keyhunter list validators')")
def test(key: str, key_type: str):
    """
    Test a single key.

    Example:
        keyhunter test sk-... -k openai
    """
    run_command(run_test(key, key_type))


async def run_test(key: str, key_type: str):
    console.print(f"[cyan]Testing {key_type} key {key_preview(key)}...[/cyan]")

    config = load_config()
    validator = get_validator(key_type, config.validators)
    if validator is None:
        raise ConfigError(f"No validator for key type: {key_type}")

    try:
        result = await validator.validate(key)
    finally:
        await validator.close()

    if result.valid:
        console.print("[bold green]Key is VALID![/bold green]")
        if result.metadata:
            console.print("\nMetadata:")
            for name, value in result.metadata.items():
                console.print(f"  [cyan]{name}[/cyan]: {value}")
    else:
        console.print(f"[red]Key is INVALID:[/red] {result.error or 'Unknown error'}")
    return result


@cli.command(name="list")
@click.argument("what", default="all", type=click.Choice(["detectors", "validators", "all"], case_sensitive=False))
def list_command(what: str):
    """List available detectors and validators"""
    what = what.lower()

    if what in ("detectors", "all"):
        table = Table(title="Available Detectors")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Patterns", style="white", justify="right")
        table.add_column("Queries", style="white", justify="right")
        for name, detector_cls in DETECTORS.items():
            table.add_row(name, str(len(detector_cls.PATTERNS)), str(len(detector_cls.SEARCH_QUERIES)))
        console.print(table)
        console.print()

    if what in ("validators", "all"):
        table = Table(title="Available Validators")
        table.add_column("Key type", style="cyan", no_wrap=True)
        table.add_column("Service", style="green")
        table.add_column("Rate limit", style="yellow", justify="right")
        for name, validator_cls in VALIDATORS.items():
            table.add_row(name, validator_cls.service_name, f"{validator_cls.DEFAULT_RATE_LIMIT_MS} ms")
        console.print(table)
        console.print()


@cli.command()
@click.option("--results-dir", default="results", type=click.Path(), help="Directory holding search reports")
@click.option("--key-type", "-k", default="all", help="Only report keys of this type (default: all)")
@click.option("--dry-run", is_flag=True, help="Print issues instead of creating them")
def report(results_dir: str, key_type: str, dry_run: bool):
    """
    Open disclosure issues for valid keys.

    Example:
        keyhunter report --dry-run
        keyhunter report --results-dir results -k openai
    """
    run_command(run_report(results_dir, key_type, dry_run))


async def run_report(results_dir: str, key_type: str, dry_run: bool):
    load_config()

    if dry_run:
        console.print("[cyan]Running in DRY RUN mode - no issues will be created[/cyan]\n")
        token = ""
    else:
        token = load_issues_token()

    console.print(f"[cyan]Reading results from {results_dir}[/cyan]\n")
    keys = collect_valid_keys(results_dir, key_type)

    if not keys:
        console.print("[cyan]No valid keys found to report[/cyan]")
        return None

    repositories = {k.detected.repository for k in keys}
    console.print(f"Found [white]{len(keys)}[/white] valid keys in [white]{len(repositories)}[/white] repositories\n")

    async with HttpClient() as http_client:
        client = GitHubIssueClient(token, http_client=http_client, dry_run=dry_run, console=console)

        with make_progress() as progress:
            task = progress.add_task("[cyan]Creating issues", total=len(repositories))
            stats = await client.create_issues_bulk(
                keys,
                on_progress=lambda repo, count: progress.advance(task),
            )

    console.print("\n" + "=" * 80)
    console.print("Summary:")
    console.print(f"   Total keys: {stats.total}")
    console.print(f"   Issues created: {stats.success}")
    console.print(f"   Failed: {stats.failed}")
    console.print(f"   Skipped: {stats.skipped}")

    if stats.errors:
        console.print("\n[red]Errors:[/red]")
        for error in stats.errors:
            console.print(f"   {error}")

    if stats.issue_urls:
        console.print("\n[green]Created issues:[/green]")
        for url in stats.issue_urls:
            console.print(f"   {url}")

    console.print("=" * 80)
    return stats


if __name__ == "__main__":
    cli()
