"""Command-line utilities for carbon_lifecycle."""

from __future__ import annotations

import argparse
import json
import logging
import logging.handlers
import sys
from collections.abc import Sequence
from pathlib import Path

from carbon_lifecycle.aggregation import aggregate, category_breakdown, stage_breakdown
from carbon_lifecycle.comparison import ComparisonSession
from carbon_lifecycle.config_loader import LifecycleConfig, load_config
from carbon_lifecycle.dynamic import SimulatedValueProvider, initial_state, tick
from carbon_lifecycle.errors import LifecycleImpactError, RecordValidationError
from carbon_lifecycle.export import (
    default_export_filename,
    dump_record,
    records_to_csv,
)
from carbon_lifecycle.loader import load_files, load_record_file
from carbon_lifecycle.logging_pipeline import (
    PACKAGE_LOGGER_NAME,
    configure_plain_logging,
    configure_structured_logging,
    parse_level,
    shutdown_listeners,
)
from carbon_lifecycle.metrics import clamp_request_count, per_unit_metrics
from carbon_lifecycle.schemas import AIServiceLifecycleImpact
from carbon_lifecycle.settings import get_settings


def _print_json(payload: object) -> None:
    print(json.dumps(payload, separators=(",", ":")))


def _parse_request_override(text: str) -> tuple[str, int]:
    """Parse ``SERVICE_ID=N`` into a service id and a clamped count."""

    service_id, separator, count = text.rpartition("=")
    if not separator or not service_id:
        raise argparse.ArgumentTypeError(
            f"expected SERVICE_ID=N, got {text!r}"
        )
    return service_id, clamp_request_count(count)


def _simulated_values(
    record: AIServiceLifecycleImpact, ticks: int, config: LifecycleConfig
) -> dict[str, float]:
    simulation = config.simulation
    provider = SimulatedValueProvider(
        simulation.seed,
        initial_range=(simulation.initial_min, simulation.initial_max),
        increment_range=(simulation.increment_min, simulation.increment_max),
    )
    state = initial_state(record, provider)
    for _ in range(ticks):
        state = tick(state, record, provider)
    return dict(state)


def _cmd_validate(args: argparse.Namespace, config: LifecycleConfig) -> int:
    _ = config
    exit_code = 0
    for path in args.files:
        try:
            record = load_record_file(path)
        except RecordValidationError as exc:
            exit_code = 1
            _print_json({"file": path, "valid": False, "errors": list(exc.problems)})
            continue
        _print_json({"file": path, "valid": True, "serviceId": record.service_id})
    return exit_code


def _cmd_summarize(args: argparse.Namespace, config: LifecycleConfig) -> int:
    record = load_record_file(args.file)
    dynamic_values: dict[str, float] | None = None
    if args.ticks is not None:
        dynamic_values = _simulated_values(record, args.ticks, config)

    request_count = (
        config.comparison.default_request_count
        if args.requests is None
        else args.requests
    )
    totals = aggregate(record, dynamic_values)
    per_unit = per_unit_metrics(totals, request_count)
    _print_json(
        {
            "serviceId": record.service_id,
            "name": record.name,
            "totals": totals.to_dict(),
            "perUnit": {
                "requestCount": per_unit.request_count,
                "avgEmbodiedPerUnit": per_unit.avg_embodied_per_unit,
                "avgOperationalPerUnit": per_unit.avg_operational_per_unit,
                "avgTotalPerUnit": per_unit.avg_total_per_unit,
            },
            "stages": stage_breakdown(record, dynamic_values),
            "categories": category_breakdown(totals),
            "dynamicValues": dynamic_values or {},
        }
    )
    return 0


def _cmd_compare(args: argparse.Namespace, config: LifecycleConfig) -> int:
    sources: list[tuple[str, bytes]] = []
    for path in args.files:
        try:
            sources.append((Path(path).name, Path(path).read_bytes()))
        except OSError as exc:
            print(f"Error processing {path}: unreadable file: {exc}", file=sys.stderr)

    session = ComparisonSession.from_config(config).add_uploads(sources)
    if session.error:
        print(session.error, file=sys.stderr)

    for service_id, count in args.requests:
        try:
            session = session.set_request_count(service_id, count)
        except KeyError:
            print(f"Unknown service id for --requests: {service_id}", file=sys.stderr)

    if not session.services:
        print("No valid service records to compare.", file=sys.stderr)
        return 1

    displayed = session.generate().displayed
    if displayed is not None:
        _print_json(displayed.to_dict())
    return 0


def _cmd_export(args: argparse.Namespace, config: LifecycleConfig) -> int:
    result = load_files(args.files)
    result.raise_for_errors()
    single = result.records[0] if len(result.records) == 1 else None
    if args.format == "json":
        if single is None:
            raise ValueError("--format json takes exactly one record FILE")
        document = dump_record(single, schema_url=config.export.schema_url) + "\n"
    else:
        document = records_to_csv(
            result.records, dynamic_placeholder=config.export.dynamic_placeholder
        )

    if args.output is None:
        sys.stdout.write(document)
        return 0

    target = Path(args.output)
    if target.is_dir():
        filename = default_export_filename(
            single, fallback=config.export.fallback_filename
        )
        if args.format == "json":
            filename = str(Path(filename).with_suffix(".json"))
        target = target / filename
    target.write_text(document, encoding="utf-8", newline="")
    print(str(target), file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the ``carbon-lifecycle`` command."""

    parser = argparse.ArgumentParser(
        prog="carbon-lifecycle",
        description="Validate, summarise, compare and export AI service "
        "lifecycle impact records.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging verbosity (defaults to CARBON_LIFECYCLE_LOG_LEVEL or WARNING).",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log records as JSON lines on stderr.",
    )
    parser.add_argument(
        "--config",
        help="Path to a JSON or YAML configuration file.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="Check record files.")
    validate.add_argument("files", nargs="+", metavar="FILE")
    validate.set_defaults(handler=_cmd_validate)

    summarize = commands.add_parser("summarize", help="Aggregate one record.")
    summarize.add_argument("file", metavar="FILE")
    summarize.add_argument(
        "--requests",
        type=clamp_request_count,
        help="Requests the totals are spread over (default from configuration).",
    )
    summarize.add_argument(
        "--ticks",
        type=int,
        help="Simulate dynamic stages for this many ticks before summarising.",
    )
    summarize.set_defaults(handler=_cmd_summarize)

    compare = commands.add_parser("compare", help="Compare several records.")
    compare.add_argument("files", nargs="+", metavar="FILE")
    compare.add_argument(
        "--requests",
        action="append",
        default=[],
        type=_parse_request_override,
        metavar="SERVICE_ID=N",
        help="Request count for one service; may be repeated.",
    )
    compare.set_defaults(handler=_cmd_compare)

    export = commands.add_parser("export", help="Write records as CSV or JSON.")
    export.add_argument("files", nargs="+", metavar="FILE")
    export.add_argument(
        "--format",
        choices=("csv", "json"),
        default="csv",
        help="csv (tokens omitted) or json, the record file itself with tokens.",
    )
    export.add_argument(
        "--output",
        "-o",
        help="File or directory to write to. If omitted, writes to stdout.",
    )
    export.set_defaults(handler=_cmd_export)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return its exit code."""

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    settings = get_settings()
    try:
        level = parse_level(args.log_level or settings.log_level)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    existing_handlers = list(package_logger.handlers)
    listeners: list[logging.handlers.QueueListener] = []
    if args.json_logs:
        listeners.append(configure_structured_logging(package_logger, level=level))
    else:
        configure_plain_logging(package_logger, level=level)

    try:
        config = load_config(args.config, settings=settings)
        return int(args.handler(args, config))
    except (LifecycleImpactError, OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        shutdown_listeners(listeners)
        for handler in list(package_logger.handlers):
            if handler not in existing_handlers:
                package_logger.removeHandler(handler)


if __name__ == "__main__":
    raise SystemExit(main())
