#!/usr/bin/env python3
"""Main entry point for the dependency policy gate."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, TextIO

from .config import Settings, load_settings
from .errors import InputError
from .filtering import ViolationFilter
from .models import FilterResult, VulnerableChange
from .store import PolicyStore

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_ERROR = 2

INPUT_ENV_VAR = "VULNERABLE_CHANGES"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Configure logging. Diagnostics go to stderr, stdout carries the report."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def parse_changes(text: str) -> List[VulnerableChange]:
    """Parse and validate a vulnerable-changes JSON array."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InputError(f"Invalid JSON input: {e}") from e

    if not isinstance(data, list):
        raise InputError(f"Expected a JSON array of changes, got {type(data).__name__}")

    return [VulnerableChange.from_dict(item) for item in data]


def read_changes(environ: Mapping[str, str], stdin: TextIO) -> List[VulnerableChange]:
    """Read changes from VULNERABLE_CHANGES, falling back to stdin."""
    if environ.get(INPUT_ENV_VAR):
        return parse_changes(environ[INPUT_ENV_VAR])
    return parse_changes(stdin.read())


def build_report(
    changes: List[VulnerableChange],
    result: FilterResult,
    min_severity: str,
) -> Dict[str, Any]:
    """Assemble the JSON report written to stdout."""
    return {
        "filtered_vulnerabilities": [change.to_dict() for change in result.filtered],
        "metrics": {name: entry.to_dict() for name, entry in result.metrics.items()},
        "summary": {
            "total_vulnerabilities": len(changes),
            "policy_violations": len(result.filtered),
            "min_severity": min_severity,
        },
    }


def run(
    settings: Settings,
    environ: Optional[Mapping[str, str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    store: Optional[PolicyStore] = None,
) -> int:
    """Load policies, filter the input and write the JSON report.

    Returns:
        EXIT_VIOLATIONS if any policy violation was found, EXIT_OK otherwise
    """
    logger = logging.getLogger(__name__)
    environ = os.environ if environ is None else environ
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    logger.info("Loading policies...")
    if store is None:
        store = PolicyStore.from_settings(settings)
    policies = store.load_all()
    if store.failures:
        logger.warning(f"Policies unavailable for: {', '.join(sorted(store.failures))}")

    changes = read_changes(environ, stdin)
    logger.info(f"Processing {len(changes)} vulnerable changes...")

    result = ViolationFilter(policies, settings.min_severity).apply(changes)
    logger.info(f"Filtered to {len(result.filtered)} policy violations")

    report = build_report(changes, result, settings.min_severity)
    stdout.write(json.dumps(report, indent=2))
    stdout.write("\n")
    stdout.flush()

    return EXIT_VIOLATIONS if result.has_violations else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Filter dependency vulnerabilities against per-ecosystem policy lists"
    )
    parser.add_argument(
        "--config",
        help="Path to a 'key: value' settings file (overrides environment)",
    )
    parser.add_argument(
        "--source",
        choices=["local", "github"],
        help="Override POLICY_SOURCE",
    )
    parser.add_argument(
        "--min-severity",
        help="Override MIN_SEVERITY (critical, high, moderate, low)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file",
    )

    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        settings = load_settings(
            config_path=args.config,
            overrides={"policy_source": args.source, "min_severity": args.min_severity},
        )
        return run(settings)
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return EXIT_ERROR
    except Exception as e:
        logging.exception(f"Error: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
