import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import click
from appdirs import user_log_dir
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from authsync.compiler import compile_schema
from authsync.config import AuthConfig
from authsync.exceptions import TransformError
from authsync.policies import DEFAULT_MAX_RESOURCES_PER_POLICY

console = Console()

app_name = "authsync"
app_logger = logging.getLogger(app_name)
app_logger.setLevel(logging.DEBUG)

logger = logging.getLogger(__name__)


def _add_file_handler() -> Path:
    log_dir = Path(user_log_dir(app_name))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file_path = log_dir / f"{app_name}.log"
    if not any(isinstance(h, TimedRotatingFileHandler) for h in app_logger.handlers):
        file_handler = TimedRotatingFileHandler(
            filename=str(log_file_path), when="D", interval=1, backupCount=7, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        app_logger.addHandler(file_handler)
    return log_file_path


@click.group()
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity. -v for INFO, -vv for DEBUG logs."
)
def cli(verbose: int) -> None:
    log_file_path = _add_file_handler()

    if verbose > 0:
        console_handler = RichHandler(
            console=console,
            show_time=False,
            show_level=True,
            markup=True,
            tracebacks_suppress=[click],
            rich_tracebacks=True,
        )
        console_handler.setLevel(logging.INFO if verbose == 1 else logging.DEBUG)
        console.print(f"[italic dim]Logs saved to: {log_file_path}[/]")
        app_logger.addHandler(console_handler)


@cli.command(name="compile")
@click.argument("schema", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--auth-config",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with defaultAuthentication and additionalAuthenticationProviders.",
)
@click.option(
    "--out-dir",
    default="build",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for schema.graphql and stack.json.",
)
@click.option(
    "--max-resources-per-policy",
    default=DEFAULT_MAX_RESOURCES_PER_POLICY,
    show_default=True,
    type=click.IntRange(min=1),
    help="Maximum number of resources in one policy document.",
)
def compile_command(
    schema: Path, auth_config: Path, out_dir: Path, max_resources_per_policy: int
) -> None:
    """Processes @auth directives of SCHEMA and writes the transformed schema and policies."""
    try:
        config = AuthConfig.from_dict(json.loads(auth_config.read_text()))
    except (ValueError, TypeError) as e:
        raise click.ClickException(f"Invalid auth config {auth_config}: {e}") from e

    try:
        output = compile_schema(
            schema.read_text(), config, max_resources_per_policy=max_resources_per_policy
        )
    except TransformError as e:
        logger.debug("Compilation of %s failed", schema, exc_info=True)
        console.print(f"[bold red]✗ {schema}[/bold red]: {e}", highlight=False)
        raise SystemExit(1) from e

    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "schema.graphql").write_text(output.schema + "\n")
    (out_dir / "stack.json").write_text(json.dumps(output.root_stack, indent=2) + "\n")
    logger.info("Wrote transformed schema and stack to %s", out_dir)

    console.print(f"[bold green]✓[/bold green] Compiled {schema}")
    if output.policies:
        table = Table("Policy", "Role", "Resources")
        for document in output.policies:
            table.add_row(document.name, document.role_kind.value, str(len(document.resources)))
        console.print(table)
    else:
        console.print("No IAM policies needed.")
