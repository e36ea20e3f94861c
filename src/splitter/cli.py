"""splitter CLI: top-level command group."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.logging import RichHandler

from splitter import __version__
from splitter.config import SplitterConfig, load_config, validate_config
from splitter.history.errors import HistoryError
from splitter.history.github import GitHubAPI
from splitter.history.source import (
    EmptyHistory,
    GitHubArtifactHistory,
    HistorySource,
    LocalArtifactHistory,
)
from splitter.reporters.terminal import reporter
from splitter.sharding.partitioner import ORDERS, ShardPlan, validate_shard_request
from splitter.sharding.shard_result import shard_plan_to_dict, write_shard_plan
from splitter.sharding.splitter import plan_shards, read_input_files
from splitter.utils.ci_context import detect_ci_context, normalize_branch

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbosity: int) -> None:
    """Send log records to stderr through rich, keeping stdout clean."""
    logging.basicConfig(
        level=_VERBOSITY_LEVELS.get(verbosity, logging.DEBUG),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=reporter.console, show_path=False)],
        force=True,
    )


def _load_and_validate_config(path: str) -> SplitterConfig:
    try:
        config = load_config(path)
    except Exception as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    return config


def _build_history_source(config: SplitterConfig, **kwargs: Any) -> HistorySource:
    """Pick the history source from CLI options and configuration."""
    history = config.history
    artifact: Path | None = kwargs.get("artifact")

    if kwargs.get("no_history") or not history.enabled:
        return EmptyHistory()

    if artifact is not None:
        return LocalArtifactHistory(
            artifact,
            report_prefix=history.report_prefix,
            report_suffix=history.report_suffix,
        )

    ci_context = detect_ci_context()
    repository = kwargs.get("repository") or config.github.repository or ci_context.repository
    token = kwargs.get("token") or config.github.token
    if not repository or not token:
        raise click.UsageError(
            "A GitHub repository and token are required to fetch timing history "
            "(set GITHUB_REPOSITORY and GITHUB_TOKEN, or pass --artifact / --no-history)."
        )

    branch = normalize_branch(kwargs.get("branch")) or ci_context.branch
    try:
        client = GitHubAPI(
            repository,
            token,
            api_url=config.github.api_url,
            timeout=config.github.timeout,
        )
    except HistoryError as e:
        raise click.UsageError(str(e)) from e

    return GitHubArtifactHistory(
        client,
        current_branch=branch,
        artifact_name=history.artifact_name,
        main_branch=history.main_branch,
        max_pages=history.max_pages,
        report_prefix=history.report_prefix,
        report_suffix=history.report_suffix,
    )


def _build_plan(config: SplitterConfig, node_count: int, **kwargs: Any) -> tuple[ShardPlan, int]:
    """Read inputs, load history and partition.

    Returns:
        The plan and the number of history records it was built from.
    """
    input_path: Path | None = kwargs.get("input_file")
    try:
        input_files = read_input_files(input_path, sys.stdin)
    except (OSError, UnicodeDecodeError) as e:
        reporter.print_error(f"Failed to read input files: {e}")
        raise click.Abort from e

    order: str = kwargs.get("order") or config.split.order
    source = _build_history_source(config, **kwargs)
    logger.info(
        "Planning %d input files across %d nodes (history: %s)",
        len(input_files),
        node_count,
        source.name,
    )

    try:
        records = source.load_records()
    except HistoryError as e:
        reporter.print_error(f"Failed to load timing history: {e}")
        raise click.Abort from e

    if not records and not isinstance(source, EmptyHistory):
        reporter.print_warning(
            f"No timing history found ({source.name}); files are spread by count only"
        )

    try:
        plan = plan_shards(records, input_files, node_count, order=order)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    plan_output: Path | None = kwargs.get("plan_output")
    if plan_output is not None:
        write_shard_plan(plan, plan_output, history_records=len(records), order=order)
        logger.info("Shard plan written to %s", plan_output)

    return plan, len(records)


def _plan_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by ``split`` and ``plan``."""
    options = [
        click.option(
            "--path",
            default=".",
            type=click.Path(exists=True, file_okay=False, resolve_path=True),
            help="Directory holding .splitter.yml.",
        ),
        click.option(
            "--nodes-count",
            type=int,
            required=True,
            envvar="NODES_COUNT",
            help="Number of parallel nodes [env: NODES_COUNT].",
        ),
        click.option(
            "--input-file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            default=None,
            envvar="INPUT_FROM_FILE",
            help="File listing the test files, one per line (default: stdin) "
            "[env: INPUT_FROM_FILE].",
        ),
        click.option(
            "--branch",
            default=None,
            envvar="GITHUB_REF",
            help="Current branch or ref, used as history fallback [env: GITHUB_REF].",
        ),
        click.option(
            "--repository",
            default=None,
            help="GitHub repository (owner/repo) holding the history artifacts.",
        ),
        click.option(
            "--token",
            default=None,
            help="GitHub token (default: GITHUB_TOKEN).",
        ),
        click.option(
            "--artifact",
            type=click.Path(exists=True, path_type=Path),
            default=None,
            help="Local artifact zip or extracted directory to read history from.",
        ),
        click.option(
            "--no-history",
            is_flag=True,
            help="Ignore timing history; every file weighs the same.",
        ),
        click.option(
            "--order",
            type=click.Choice(ORDERS),
            default=None,
            help="File visiting order (default from config: name).",
        ),
        click.option(
            "--plan-output",
            type=click.Path(dir_okay=False, path_type=Path),
            default=None,
            help="Write the full shard plan as JSON to this path.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("-v", "--verbose", count=True, help="Log to stderr (-v info, -vv debug).")
@click.version_option(version=__version__, prog_name="splitter")
@click.pass_context
def cli(ctx: click.Context, *, verbose: int) -> None:
    """splitter: balance test files across parallel CI nodes by timing history."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


@cli.command()
@_plan_options
@click.option(
    "--node-id",
    type=int,
    required=True,
    envvar="NODE_ID",
    help="Zero-based index of this node [env: NODE_ID].",
)
def split(**kwargs: Any) -> None:
    """Print the test files assigned to this node, one per line.

    Reads the list of test files from --input-file or stdin, estimates each
    file's runtime from the newest test-results artifact and writes this
    node's share to stdout.
    """
    node_count: int = kwargs["nodes_count"]
    node_id: int = kwargs["node_id"]

    try:
        validate_shard_request(node_id, node_count)
    except ValueError as e:
        raise click.UsageError(
            f"{e} (check --nodes-count/NODES_COUNT and --node-id/NODE_ID)"
        ) from e

    config = _load_and_validate_config(kwargs["path"])
    shard_plan, _ = _build_plan(config, node_count, **kwargs)

    if logger.isEnabledFor(logging.INFO):
        reporter.print_plan(shard_plan, highlight=node_id)

    files = shard_plan.bucket_for(node_id)
    logger.info("Returning %d files for node %d", len(files), node_id)
    for filename in files:
        logger.debug("File to run: %s", filename)
        click.echo(filename)


@cli.command()
@_plan_options
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the plan as JSON on stdout instead of a table.",
)
def plan(**kwargs: Any) -> None:
    """Show how the test files would be spread over all nodes."""
    node_count: int = kwargs["nodes_count"]
    if node_count < 1:
        raise click.UsageError(
            f"node_count must be >= 1, got {node_count} (check --nodes-count/NODES_COUNT)"
        )

    config = _load_and_validate_config(kwargs["path"])
    shard_plan, history_records = _build_plan(config, node_count, **kwargs)

    if kwargs.get("as_json"):
        order: str = kwargs.get("order") or config.split.order
        payload = shard_plan_to_dict(shard_plan, history_records=history_records, order=order)
        click.echo(json.dumps(payload, indent=2))
        return

    reporter.print_header("splitter plan")
    reporter.print_info(f"{history_records} historical test records")
    reporter.print_plan(shard_plan)
