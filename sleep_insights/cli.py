"""
Command-line entry point for Sleep Insights.

Loads a sleep export and an optional event log, computes the dashboard views
and writes them as JSON to stdout (or a file).
"""

from __future__ import annotations

import argparse
import json
import math
import sys
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from sleep_insights.core.config import ViewSettings, config
from sleep_insights.core.exceptions import ConfigurationError, SleepInsightsError
from sleep_insights.core.logging_config import setup_logging
from sleep_insights.data.aggregation import SortColumn, SortDirection, SortDirective
from sleep_insights.pipeline import build_dashboard, load_event_log, load_sleep_export


def _nan_to_none(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, dict):
        return {k: _nan_to_none(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_nan_to_none(v) for v in value]
    return value


def build_parser() -> argparse.ArgumentParser:
    defaults = config.analysis.view
    parser = argparse.ArgumentParser(description="Sleep stage trends and medication deltas")
    parser.add_argument("sleep_file", type=Path, help="Sleep export (.csv or .zip)")
    parser.add_argument("--events", type=Path, default=None, help="Event log (.csv or .txt)")
    parser.add_argument("--min-hours", type=float, default=defaults.min_hours)
    parser.add_argument("--max-hours", type=float, default=defaults.max_hours)
    parser.add_argument("--from", dest="date_from", type=date.fromisoformat, default=None)
    parser.add_argument("--to", dest="date_to", type=date.fromisoformat, default=None)
    parser.add_argument("--rolling", type=int, default=defaults.rolling_window)
    parser.add_argument(
        "--sort",
        choices=[c.value for c in SortColumn],
        default=SortColumn.MONTH.value,
    )
    parser.add_argument("--desc", action="store_true", help="Sort the monthly table descending")
    parser.add_argument(
        "--low-deep-percentile",
        type=int,
        default=config.analysis.low_deep_percentile,
    )
    parser.add_argument("--output", type=Path, default=None)
    return parser


def view_settings(args: argparse.Namespace) -> ViewSettings:
    """
    Build filter settings from parsed arguments.

    Raises:
        ConfigurationError: If the bounds are inconsistent
    """
    if args.min_hours > args.max_hours:
        raise ConfigurationError(
            f"--min-hours ({args.min_hours}) must not exceed --max-hours ({args.max_hours})"
        )

    try:
        return ViewSettings(
            min_hours=args.min_hours,
            max_hours=args.max_hours,
            date_from=args.date_from,
            date_to=args.date_to,
            rolling_window=args.rolling,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid view settings: {e}") from e


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging()

    try:
        settings = view_settings(args)
        sort = SortDirective(
            column=SortColumn(args.sort),
            direction=SortDirection.DESC if args.desc else SortDirection.ASC,
        )
        nights = load_sleep_export(args.sleep_file)
        events = load_event_log(args.events) if args.events else []
        dashboard = build_dashboard(
            nights,
            events,
            settings=settings,
            sort=sort,
            low_deep_percentile=args.low_deep_percentile,
        )
    except SleepInsightsError as e:
        logger.error(f"Failed to build dashboard: {e}")
        return 1

    payload = json.dumps(_nan_to_none(dashboard.model_dump(mode="json")), indent=2)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        logger.info(f"Dashboard written to {args.output}")
    else:
        sys.stdout.write(payload + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
