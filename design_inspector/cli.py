"""Click-based CLI interface for the design inspector."""

import json
import sys
from pathlib import Path
from typing import Any

import click

from . import __version__
from .config import InspectorConfig, load_config
from .detection.signature import SignatureBuilder
from .errors import InspectorError, TreeValidationError, handle_exception
from .inspector import PatternInspector
from .inspector_logging import LogCategory, get_category_logger, setup_logging
from .models import Node
from .tree import TreeStore, load_store

logger = get_category_logger(LogCategory.CLI)


def common_options(f: Any) -> Any:
    """Options shared by every analysis command."""
    f = click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")(f)
    f = click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")(f)
    f = click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True),
        help="Configuration file or directory",
    )(f)
    f = click.option(
        "--log-file", type=click.Path(dir_okay=False), help="Also log to this file"
    )(f)
    f = click.option(
        "--no-strict",
        is_flag=True,
        help="Drop dangling child references instead of failing",
    )(f)
    f = click.option("--json", "as_json", is_flag=True, help="Output as JSON")(f)
    return f


def _prepare(
    config_path: str | None,
    verbose: bool,
    quiet: bool,
    log_file: str | None,
    no_strict: bool,
) -> InspectorConfig:
    """Load configuration and set up logging for a command."""
    overrides: dict[str, Any] = {}
    if no_strict:
        overrides["strict_validation"] = False
    config = load_config(Path(config_path) if config_path else None, **overrides)
    setup_logging(
        level=config.log_level,
        quiet=quiet,
        verbose=verbose,
        log_file=Path(log_file) if log_file else None,
        log_format=config.log_format,
    )
    return config


def _load_tree(tree_file: str, config: InspectorConfig) -> TreeStore:
    store = load_store(tree_file, strict=config.strict_validation)
    if len(store) and store.root_id is None:
        raise TreeValidationError(
            "Tree has no single root node",
            suggestion="Set 'root' in the flattened document",
            details={"file": tree_file},
        )
    logger.debug(f"Loaded {len(store)} nodes from {tree_file}")
    return store


def _require_node(store: TreeStore, node_id: str) -> Node:
    node = store.to_tree(node_id) if node_id in store else None
    if node is None:
        raise TreeValidationError(
            f"Node not found: {node_id}",
            suggestion="Pass an id that exists in the tree file",
            details={"node_id": node_id},
        )
    return node


def _fail(error: Exception, verbose: bool) -> None:
    message, exit_code = handle_exception(error, use_color=sys.stderr.isatty(), verbose=verbose)
    click.echo(message, err=True)
    sys.exit(exit_code)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Design Inspector - find repeated components in UI design trees."""


@cli.command()
@click.argument("tree_file", type=click.Path(exists=True, dir_okay=False))
@common_options
def detect(tree_file, as_json, no_strict, log_file, config_path, quiet, verbose) -> None:
    """Detect structurally identical components.

    Examples:
        design-inspector detect tree.json
        design-inspector detect tree.json --json
    """
    try:
        config = _prepare(config_path, verbose, quiet, log_file, no_strict)
        store = _load_tree(tree_file, config)
        result = PatternInspector(config).detect(store)
    except InspectorError as e:
        _fail(e, verbose)
        return

    if as_json:
        _echo_json(result.to_dict())
        return

    if not result.components:
        click.echo("No repeated components found")
        return

    for label, node_ids in result.components.items():
        click.echo(f"{label} ({len(node_ids)} instances): {', '.join(node_ids)}")
        if verbose:
            click.echo(f"  signature: {result.signatures[label]}")
    if verbose and result.suppressed:
        click.echo(f"\n{len(result.suppressed)} nested candidate(s) suppressed:")
        for candidate in result.suppressed:
            click.echo(f"  {candidate.signature}: {', '.join(candidate.node_ids)}")


@cli.command()
@click.argument("tree_file", type=click.Path(exists=True, dir_okay=False))
@common_options
def group(tree_file, as_json, no_strict, log_file, config_path, quiet, verbose) -> None:
    """Group similar nodes and describe their variations.

    Examples:
        design-inspector group tree.json
        design-inspector group tree.json --config design-inspector.config.json
    """
    try:
        config = _prepare(config_path, verbose, quiet, log_file, no_strict)
        store = _load_tree(tree_file, config)
        result = PatternInspector(config).group(store.to_tree())
    except InspectorError as e:
        _fail(e, verbose)
        return

    if as_json:
        _echo_json(result.to_dict())
        return

    if not result.groups:
        click.echo("No similar node groups found")
        return

    for node_group in result.groups:
        click.echo(
            f"{node_group.id}: {node_group.pattern} "
            f"({node_group.size} nodes, avg similarity "
            f"{node_group.avg_internal_similarity:.2f})"
        )
        click.echo(f"  members: {', '.join(node_group.node_ids)}")
        for variation in node_group.variations:
            click.echo(f"  - {variation.type}: {variation.description}")


@cli.command()
@click.argument("tree_file", type=click.Path(exists=True, dir_okay=False))
@common_options
def inspect(tree_file, as_json, no_strict, log_file, config_path, quiet, verbose) -> None:
    """Run exact detection and similarity grouping together."""
    try:
        config = _prepare(config_path, verbose, quiet, log_file, no_strict)
        store = _load_tree(tree_file, config)
        result = PatternInspector(config).inspect(store.to_tree())
    except InspectorError as e:
        _fail(e, verbose)
        return

    if as_json:
        _echo_json(result.to_dict())
        return

    click.echo(result.summary)
    for label, node_ids in result.detection.components.items():
        click.echo(f"  {label}: {', '.join(node_ids)}")
    for node_group in result.grouping.groups:
        variations = ", ".join(v.type for v in node_group.variations)
        suffix = f" [{variations}]" if variations else ""
        click.echo(
            f"  {node_group.id} {node_group.pattern}: "
            f"{', '.join(node_group.node_ids)}{suffix}"
        )


@cli.command()
@click.argument("tree_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("node_id")
@common_options
def signature(
    tree_file, node_id, as_json, no_strict, log_file, config_path, quiet, verbose
) -> None:
    """Print the structural signature of one node."""
    try:
        config = _prepare(config_path, verbose, quiet, log_file, no_strict)
        store = _load_tree(tree_file, config)
        _require_node(store, node_id)
        value = SignatureBuilder(store).signature(node_id)
    except InspectorError as e:
        _fail(e, verbose)
        return

    if as_json:
        _echo_json({"node_id": node_id, "signature": value})
    else:
        click.echo(value)


@cli.command()
@click.argument("tree_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("first_id")
@click.argument("second_id")
@common_options
def similarity(
    tree_file,
    first_id,
    second_id,
    as_json,
    no_strict,
    log_file,
    config_path,
    quiet,
    verbose,
) -> None:
    """Score the similarity of two nodes."""
    try:
        config = _prepare(config_path, verbose, quiet, log_file, no_strict)
        store = _load_tree(tree_file, config)
        first = _require_node(store, first_id)
        second = _require_node(store, second_id)
        result = PatternInspector(config).compare(first, second)
    except InspectorError as e:
        _fail(e, verbose)
        return

    if as_json:
        _echo_json(result.to_dict())
        return

    click.echo(f"{first_id} vs {second_id}: {result.combined_score:.3f}")
    click.echo(f"  structure: {result.structural_score:.3f}")
    click.echo(f"  layout:    {result.layout_score:.3f}")
    click.echo(f"  style:     {result.style_score:.3f}")
    click.echo(f"  content:   {result.content_score:.3f}")


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
