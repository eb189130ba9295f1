"""Handles the generation of coverage summaries and report exports."""

import csv
import json
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any

from .models import CoverageEntry

logger = logging.getLogger(__name__)

_CSV_HEADER = [
    "url",
    "total_bytes",
    "used_bytes",
    "usage_ratio",
    "ranges",
]


def calculate_metrics(entries: list[CoverageEntry]) -> dict[str, Any]:
    """
    Calculate usage metrics from a list of coverage entries in a single pass.

    Entries sharing a URL (e.g. the same script loaded twice) are added up in
    the URL breakdown.

    Args:
        entries: Coverage entries from JS coverage, CSS coverage, or both.

    Returns:
        A dictionary containing key metrics about the coverage run.

    """
    url_breakdown: defaultdict[str, dict[str, int]] = defaultdict(lambda: {"total_bytes": 0, "used_bytes": 0})
    total_bytes = 0
    used_bytes = 0

    for entry in entries:
        total_bytes += entry.total_bytes
        used_bytes += entry.used_bytes
        url_breakdown[entry.url]["total_bytes"] += entry.total_bytes
        url_breakdown[entry.url]["used_bytes"] += entry.used_bytes

    return {
        "total_entries": len(entries),
        "total_bytes": total_bytes,
        "used_bytes": used_bytes,
        "unused_bytes": total_bytes - used_bytes,
        "usage_ratio": used_bytes / total_bytes if total_bytes else 0.0,
        "url_breakdown": dict(url_breakdown),
    }


def log_summary(metrics: dict[str, Any]) -> None:
    """
    Log the summary report to the console.

    Args:
        metrics: A dictionary of calculated metrics.

    """
    logger.info("%s", "=" * 40)
    logger.info(" PageCov - Coverage Summary")
    logger.info("=" * 40)
    logger.info("- Resources Reported: %s", metrics["total_entries"])
    logger.info("- Total Bytes: %s", metrics["total_bytes"])
    logger.info("- Used Bytes: %s (%.2f%%)", metrics["used_bytes"], metrics["usage_ratio"] * 100)
    logger.info("- Unused Bytes: %s", metrics["unused_bytes"])

    if metrics.get("url_breakdown"):
        logger.info("--- Resource Breakdown ---")
        # Least used resources first
        sorted_urls = sorted(
            metrics["url_breakdown"].items(),
            key=lambda item: (item[1]["used_bytes"] / item[1]["total_bytes"]) if item[1]["total_bytes"] else 1.0,
        )
        for url, data in sorted_urls:
            logger.info("- %s: %s / %s bytes used", url, data["used_bytes"], data["total_bytes"])


def write_json_report(entries: list[CoverageEntry], output_path: Path) -> None:
    """Write coverage entries as a JSON array of `{url, ranges, text}` objects."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump([entry.to_dict() for entry in entries], f, ensure_ascii=False, indent=2)
    logger.info("Coverage report with %d entries written to %s", len(entries), output_path)


def read_json_report(report_path: Path) -> list[CoverageEntry]:
    """
    Read coverage entries written by `write_json_report`.

    Raises:
        FileNotFoundError: If the report does not exist.
        ValueError: If the report is not a list of coverage entries.

    """
    if not report_path.is_file():
        msg = f"Coverage report not found at: {report_path}"
        raise FileNotFoundError(msg)

    try:
        with report_path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            msg = "a coverage report must be a JSON array"
            raise TypeError(msg)
        return [CoverageEntry.from_dict(item) for item in data]
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        msg = f"Invalid coverage report {report_path}: {e}"
        raise ValueError(msg) from e


def write_csv_report(entries: list[CoverageEntry], output_path: Path) -> None:
    """Write one CSV row per coverage entry; ranges are written as `start-end` pairs separated by ';'."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(_CSV_HEADER)
        for entry in entries:
            writer.writerow(
                [
                    entry.url,
                    entry.total_bytes,
                    entry.used_bytes,
                    f"{entry.usage_ratio:.4f}",
                    ";".join(f"{r.start}-{r.end}" for r in entry.ranges),
                ]
            )
    logger.info("CSV report with %d rows written to %s", len(entries), output_path)
