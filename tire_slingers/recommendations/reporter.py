"""
Recommendation report writer: CSV and JSON output for one organization's
stock recommendations.

All functions are pure I/O, no DB access. They consume in-memory
StockRecommendation lists and write human-readable + machine-readable files.

Output files
------------
  data/outputs/recommendations/
    stock_{org_id}_{date}.csv    -- one row per size, shop-floor columns
    stock_{org_id}_{date}.json   -- same data, structured JSON with summary
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from pathlib import Path

from tire_slingers.models.recommendation import StockRecommendation

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "Size", "Current", "Target", "Need", "Action", "Priority", "Flag", "Reasons",
]


def format_need(need_units: int) -> str:
    """Signed need for display: ``+4``, ``-6``, ``0``."""
    return f"+{need_units}" if need_units > 0 else str(need_units)


def write_recommendation_csv(
    recommendations: list[StockRecommendation],
    output_dir: Path,
    org_id: str,
    run_date: date | None = None,
) -> Path:
    """Write recommendations to a CSV file in the order given.

    Columns: Size, Current, Target, Need, Action, Priority, Flag, Reasons
    (reasons joined with ``"; "``).

    Args:
        recommendations: Recommendations to write (usually from get_recommendations()).
        output_dir:      Directory to write the file (created if missing).
        org_id:          Organization id (used in filename).
        run_date:        Date label for the filename. Defaults to today.

    Returns:
        Path to the written CSV file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / f"stock_{org_id}_{run_date}.csv"

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for rec in recommendations:
            writer.writerow(
                {
                    "Size":     rec.size_display,
                    "Current":  rec.current_stock,
                    "Target":   rec.target_stock,
                    "Need":     format_need(rec.need_units),
                    "Action":   rec.action,
                    "Priority": rec.priority,
                    "Flag":     rec.flag or "",
                    "Reasons":  "; ".join(rec.reasons),
                }
            )

    logger.info("Recommendation CSV written: %s (%d rows)", csv_path, len(recommendations))
    return csv_path


def write_recommendation_json(
    recommendations: list[StockRecommendation],
    output_dir: Path,
    org_id: str,
    run_date: date | None = None,
    run_slug: str = "",
) -> Path:
    """Write recommendations to a structured JSON file.

    Args:
        recommendations: Recommendations to write.
        output_dir:      Target directory.
        org_id:          Used in filename + metadata.
        run_date:        Date label. Defaults to today.
        run_slug:        Pipeline run UUID for provenance.

    Returns:
        Path to the written JSON file.
    """
    if run_date is None:
        run_date = date.today()

    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / f"stock_{org_id}_{run_date}.json"

    summary = {"stock": 0, "purge": 0, "hold": 0}
    for rec in recommendations:
        summary[rec.action] += 1

    payload: dict = {
        "org_id":       org_id,
        "generated_at": run_date.isoformat(),
        "run_slug":     run_slug,
        "summary": {
            "total":         len(recommendations),
            "current_stock": sum(r.current_stock for r in recommendations),
            **summary,
        },
        "recommendations": [
            {
                "size_key":        rec.size_key,
                "size_display":    rec.size_display,
                "current_stock":   rec.current_stock,
                "target_stock":    rec.target_stock,
                "need_units":      rec.need_units,
                "action":          rec.action,
                "priority":        rec.priority,
                "flag":            rec.flag,
                "signals": {
                    "sales":    rec.sales_90d,
                    "searches": rec.searches_90d,
                    "requests": rec.requests_90d,
                },
                "avg_age_days":    rec.avg_age_days,
                "oldest_age_days": rec.oldest_age_days,
                "reasons":         rec.reasons,
                "computed_at":     rec.computed_at,
            }
            for rec in recommendations
        ],
    }

    json_path.write_text(json.dumps(payload, indent=2, default=str))
    logger.info("Recommendation JSON written: %s", json_path)
    return json_path
