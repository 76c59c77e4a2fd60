"""CLI commands using Typer."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from dirhasher import __app_name__, __version__
from dirhasher.cli.config import Config, ConfigError, create_default_config, load_config, validate_config
from dirhasher.cli.output import RichOutput

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

app = typer.Typer(
    name="dirhasher",
    help="Calculate and verify SHA-256 (or MD5) digests for files and directory trees.",
    add_completion=False,
)
console = Console(stderr=True, soft_wrap=True)
output = RichOutput(console)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{__app_name__} {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Calculate and verify file digests in sha256sum-compatible format."""


def get_config(
    config_path: Optional[Path],
    algorithm: Optional[str] = None,
    workers: Optional[int] = None,
    log_file: Optional[Path] = None,
    verbose: bool = False,
) -> Config:
    """Load configuration, apply command-line overrides and set up logging.

    Args:
        config_path: Optional path to config file.
        algorithm: Algorithm override.
        workers: Worker count override.
        log_file: Log file override.
        verbose: Enable debug logging on the console.

    Returns:
        Validated Config object.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    from dirhasher.utils.hashing import ALGORITHMS
    from dirhasher.utils.logging import setup_logging

    if config_path is not None and not config_path.exists():
        output.print_error(f"Config file not found: {config_path}")
        raise typer.Exit(EXIT_USAGE)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        output.print_error("Invalid configuration", str(e))
        raise typer.Exit(EXIT_USAGE)

    if algorithm is not None:
        config.hashing.algorithm = algorithm.lower()
    if workers is not None:
        config.workers.count = workers
    if log_file is not None:
        config.logging.file = log_file

    issues = validate_config(config)
    for issue in issues:
        output.print_warning(escape(issue))

    # An unknown algorithm can't be recovered from
    if config.hashing.algorithm not in ALGORITHMS:
        raise typer.Exit(EXIT_USAGE)
    if not isinstance(config.workers.count, int) or isinstance(config.workers.count, bool):
        raise typer.Exit(EXIT_USAGE)

    setup_logging(
        level="DEBUG" if verbose else str(config.logging.level),
        log_file=config.logging.file,
        verbose=verbose,
    )

    return config


@app.command()
def calculate(
    paths: list[Path] = typer.Argument(
        ...,
        help="Files or directories to hash (directories are walked recursively)",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the manifest to this file instead of standard output",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Number of files hashed concurrently (default 15, max 50)",
    ),
    algorithm: Optional[str] = typer.Option(
        None,
        "--algorithm",
        "-a",
        help="Digest algorithm: sha256 or md5",
    ),
    sort: Optional[bool] = typer.Option(
        None,
        "--sort/--no-sort",
        help="Sort output by path instead of completion order",
    ),
    lowercase: bool = typer.Option(
        False,
        "--lowercase",
        help="Write lowercase hex digests",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to config file",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write a debug log to this file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Calculate digests and write them in `DIGEST  path` format.

    Examples:

        dirhasher calculate . > hashes.txt

        dirhasher calculate file1.txt dir1 -o hashes.txt
    """
    from dirhasher.models.digest import DigestOutcome
    from dirhasher.processor.reconciler import Reconciler
    from dirhasher.processor.scheduler import BoundedScheduler, tasks_from_files
    from dirhasher.utils.files import collect_files
    from dirhasher.utils.hashing import DigestEngine
    from dirhasher.utils.logging import OperationLogger
    from dirhasher.utils.manifest import ManifestWriter

    config = get_config(config_path, algorithm, workers, log_file, verbose)
    sort_output = config.output.sort if sort is None else sort
    uppercase = config.hashing.uppercase and not lowercase

    exclude = [output_file] if output_file else []
    files = collect_files(paths, exclude=exclude)

    if not files:
        output.print_info("No files found to calculate hashes for.")
        raise typer.Exit(EXIT_OK)

    engine = DigestEngine(config.hashing.algorithm, uppercase=uppercase)
    scheduler = BoundedScheduler(engine, config.workers.count)
    tasks = tasks_from_files(files)

    op_logger = OperationLogger(config.logging.operation_log)
    op_logger.log_run_start("calculate", len(tasks), scheduler.workers, engine.algorithm.name)

    try:
        writer = ManifestWriter.open(output_file)
    except OSError as e:
        output.print_error(f"Cannot create output file {output_file}", str(e))
        raise typer.Exit(EXIT_FAILURE)

    destination = str(output_file) if output_file else "standard output"
    computed: list[DigestOutcome] = []

    with writer, output.create_progress_bar(enabled=config.output.progress) as progress:
        task_id = progress.add_task("Hashing...", total=len(tasks))

        def on_outcome(outcome: DigestOutcome) -> None:
            progress.advance(task_id)
            if outcome.is_error:
                output.print_calculation_error(outcome)
            elif sort_output:
                computed.append(outcome)
            else:
                writer.write(outcome)

        report = Reconciler(op_logger).reconcile(
            scheduler.run(tasks), len(tasks), on_outcome=on_outcome
        )

        if sort_output:
            writer.write_all(computed, sort=True)

    output.print_calculation_summary(report, destination)
    raise typer.Exit(report.exit_code)


@app.command()
def check(
    manifest: str = typer.Argument(
        "-",
        help="Manifest to verify, or '-' to read it from standard input",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Number of files hashed concurrently (default 15, max 50)",
    ),
    algorithm: Optional[str] = typer.Option(
        None,
        "--algorithm",
        "-a",
        help="Digest algorithm the manifest was written with: sha256 or md5",
    ),
    show_ok: Optional[bool] = typer.Option(
        None,
        "--show-ok/--failures-only",
        help="Also print files that verified correctly",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to config file",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write a debug log to this file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Verify files against a manifest.

    Relative paths in the manifest are resolved against the manifest's
    directory (or the current directory when reading standard input).
    Exits non-zero if any file is missing, unreadable or does not match.
    """
    from dirhasher.processor.reconciler import Reconciler
    from dirhasher.processor.scheduler import BoundedScheduler, tasks_from_manifest
    from dirhasher.utils.hashing import DigestEngine
    from dirhasher.utils.logging import OperationLogger
    from dirhasher.utils.manifest import ManifestReadError, read_manifest

    config = get_config(config_path, algorithm, workers, log_file, verbose)
    show = config.output.show_ok if show_ok is None else show_ok

    try:
        entries, manifest_path = read_manifest(manifest, config.hashing.algorithm)
    except ManifestReadError as e:
        output.print_error("Cannot read manifest", str(e))
        raise typer.Exit(EXIT_FAILURE)

    source = str(manifest_path) if manifest_path else "standard input"
    output.print_info(f"Parsed {len(entries)} entries from {escape(source)}")

    if not entries:
        output.print_info("No hash entries found. Nothing to check.")
        raise typer.Exit(EXIT_OK)

    engine = DigestEngine(config.hashing.algorithm, uppercase=config.hashing.uppercase)
    scheduler = BoundedScheduler(engine, config.workers.count)
    tasks = tasks_from_manifest(entries, manifest_path)

    op_logger = OperationLogger(config.logging.operation_log)
    op_logger.log_run_start("check", len(tasks), scheduler.workers, engine.algorithm.name)

    with output.create_progress_bar(enabled=config.output.progress) as progress:
        task_id = progress.add_task("Checking...", total=len(tasks))

        def on_outcome(outcome):
            progress.advance(task_id)
            output.print_outcome(outcome, show_ok=show)

        report = Reconciler(op_logger).reconcile(
            scheduler.run(tasks), len(tasks), on_outcome=on_outcome
        )

    output.print_check_summary(report)
    raise typer.Exit(report.exit_code)


@app.command()
def init_config(
    path: Path = typer.Argument(
        Path("dirhasher.yaml"),
        help="Where to write the configuration file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing file",
    ),
) -> None:
    """Write a commented default configuration file."""
    if path.exists() and not force:
        output.print_error(f"{path} already exists (use --force to overwrite)")
        raise typer.Exit(EXIT_FAILURE)

    create_default_config(path)
    output.print_success(f"Configuration written to {escape(str(path))}")


if __name__ == "__main__":
    app()
