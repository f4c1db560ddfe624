"""
Command-line interface for running ingestion pipelines.

Usage:
    sheetload run --config config/pipelines.yaml --pipeline people_sheet
    sheetload run --config config/pipelines.yaml --all
    sheetload run --locator <url> --destination analytics.people --mode replace --rules rules.yaml
    sheetload validate --locator <url> --rules rules.yaml
    sheetload list --config config/pipelines.yaml
"""

import argparse
import json
import sys

from dotenv import load_dotenv

from sheetload.config import get_pipeline_config, load_pipeline_configs
from sheetload.core.errors import PipelineError
from sheetload.core.models import PipelineConfig, WriteMode
from sheetload.observability.logger import get_logger, setup_logger
from sheetload.observability.metrics import start_metrics_server
from sheetload.pipeline import IngestPipeline

logger = get_logger("sheetload.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_REJECTIONS = 2


def build_adhoc_config(args) -> PipelineConfig:
    """Build a pipeline configuration from --locator/--destination flags."""
    return PipelineConfig(
        name=args.name,
        locator=args.locator,
        reader=args.reader,
        file_format=args.format,
        destination=args.destination or "adhoc",
        mode=WriteMode(args.mode),
        rules_path=args.rules,
        fetch_timeout=args.fetch_timeout,
        load_timeout=args.load_timeout,
    )


def select_pipelines(args) -> list[PipelineConfig]:
    """
    Resolve which pipelines a command applies to.

    Raises:
        ValueError: If neither a config file nor a locator was given, or an
            ad hoc run has no --destination
    """
    if args.locator:
        if args.command == "run" and not args.destination:
            raise ValueError("--destination is required with --locator for run")
        return [build_adhoc_config(args)]

    if not args.config:
        raise ValueError("Either --config or --locator is required")

    if getattr(args, "all", False):
        return [p for p in load_pipeline_configs(args.config) if p.enabled]

    if not args.pipeline:
        raise ValueError("--pipeline or --all is required with --config")
    return [get_pipeline_config(args.config, args.pipeline)]


def run_command(args) -> int:
    """Fetch, validate and load each selected pipeline."""
    from sheetload.warehouse.connection import DatabaseConnectionPool
    from sheetload.warehouse.postgres import PostgresDestination

    try:
        pipelines = select_pipelines(args)
    except (ValueError, KeyError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_ERROR

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    try:
        pool = DatabaseConnectionPool(
            host=args.db_host,
            port=args.db_port,
            database=args.db_name,
            user=args.db_user,
            password=args.db_password,
        )
        pool.open()
    except (ValueError, PipelineError) as e:
        logger.error(f"Cannot open database connection: {e}")
        return EXIT_ERROR

    exit_code = EXIT_OK
    try:
        for config in pipelines:
            try:
                pipeline = IngestPipeline(config, PostgresDestination(pool, config.destination))
                report, result = pipeline.run()
            except (PipelineError, ValueError, FileNotFoundError) as e:
                logger.error(
                    f"Pipeline '{config.name}' failed: {e}",
                    extra={"pipeline": config.name, "error_type": type(e).__name__},
                )
                exit_code = EXIT_ERROR
                continue

            logger.info(
                f"Pipeline '{config.name}' complete",
                extra={
                    "pipeline": config.name,
                    "rows_written": result.rows_written,
                    "mode": result.mode.value,
                    "skipped": result.skipped,
                    **report.summary(),
                },
            )
            if args.fail_on_rejections and not report.passed and exit_code == EXIT_OK:
                exit_code = EXIT_REJECTIONS
    finally:
        pool.close()

    return exit_code


def validate_command(args) -> int:
    """Fetch and validate without loading; print each report summary as JSON."""
    try:
        pipelines = select_pipelines(args)
    except (ValueError, KeyError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_ERROR

    exit_code = EXIT_OK
    for config in pipelines:
        try:
            report = IngestPipeline(config, destination=None).dry_run()
        except (PipelineError, ValueError, FileNotFoundError) as e:
            logger.error(f"Validation of '{config.name}' failed: {e}")
            exit_code = EXIT_ERROR
            continue

        summary = report.summary()
        summary["pipeline"] = config.name
        summary["rejected_rows"] = [
            {"row_index": r.row_index, "failed_rules": r.failed_rules} for r in report.rejected
        ]
        print(json.dumps(summary, indent=2, default=str))

        if args.fail_on_rejections and not report.passed and exit_code == EXIT_OK:
            exit_code = EXIT_REJECTIONS
    return exit_code


def list_command(args) -> int:
    """Print the pipelines declared in a configuration file."""
    try:
        pipelines = load_pipeline_configs(args.config)
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_ERROR

    for p in pipelines:
        state = "" if p.enabled else " (disabled)"
        print(f"{p.name}: {p.locator} -> {p.destination} [{p.mode.value}]{state}")
    return EXIT_OK


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Pipeline configuration YAML file")
    parser.add_argument("--pipeline", help="Name of the pipeline to run from --config")
    parser.add_argument("--all", action="store_true", help="Run every enabled pipeline in --config")
    parser.add_argument("--locator", help="Ad hoc source locator (URL or file path)")
    parser.add_argument("--name", default="adhoc", help="Ad hoc pipeline name (default: adhoc)")
    parser.add_argument(
        "--reader",
        default="auto",
        choices=["auto", "http", "file", "spark"],
        help="Source reader (default: auto)",
    )
    parser.add_argument(
        "--format",
        default="csv",
        choices=["csv", "json", "parquet"],
        help="File format for the spark reader (default: csv)",
    )
    parser.add_argument("--rules", help="Validation rules YAML file")
    parser.add_argument("--fetch-timeout", type=float, default=30.0, help="Fetch timeout in seconds")
    parser.add_argument(
        "--fail-on-rejections",
        action="store_true",
        help=f"Exit with {EXIT_REJECTIONS} when any row is rejected",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetload",
        description="Validated ingestion of tabular sources into warehouse tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run one configured pipeline
  sheetload run --config config/pipelines.yaml --pipeline people_sheet

  # Load a published sheet into a table, replacing its contents
  sheetload run --locator "https://docs.google.com/spreadsheets/d/<id>/edit#gid=0" \\
      --destination analytics.people --mode replace --rules config/validation_rules.yaml

  # Validate only, failing when rows are rejected
  sheetload validate --locator data/people.csv --rules config/validation_rules.yaml --fail-on-rejections
        """
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--log-format", default=None, choices=["json", "text"], help="Log format")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Fetch, validate and load")
    _add_source_arguments(run_parser)
    run_parser.add_argument("--destination", help="Ad hoc destination table (schema.table)")
    run_parser.add_argument(
        "--mode",
        default=WriteMode.REPLACE.value,
        choices=[m.value for m in WriteMode],
        help="Write mode (default: replace)",
    )
    run_parser.add_argument("--load-timeout", type=float, default=60.0, help="Load timeout in seconds")
    run_parser.add_argument("--metrics-port", type=int, default=None, help="Expose Prometheus metrics on this port")

    # Database connection arguments (fall back to DB_* environment variables)
    run_parser.add_argument("--db-host", default=None, help="Database host")
    run_parser.add_argument("--db-port", type=int, default=None, help="Database port")
    run_parser.add_argument("--db-name", default=None, help="Database name")
    run_parser.add_argument("--db-user", default=None, help="Database user")
    run_parser.add_argument("--db-password", default=None, help="Database password")

    validate_parser = subparsers.add_parser("validate", help="Fetch and validate without loading")
    _add_source_arguments(validate_parser)
    validate_parser.set_defaults(mode=WriteMode.REPLACE.value, destination=None, load_timeout=60.0)

    list_parser = subparsers.add_parser("list", help="List configured pipelines")
    list_parser.add_argument("--config", required=True, help="Pipeline configuration YAML file")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level or args.log_format:
        setup_logger("sheetload", level=args.log_level, format_type=args.log_format)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    commands = {
        "run": run_command,
        "validate": validate_command,
        "list": list_command,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
