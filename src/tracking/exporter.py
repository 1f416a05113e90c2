# src/tracking/exporter.py - v3
"""Writers for the batch cost report: JSON file, calls CSV, console table."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from casereview.tracking.models import CostStatistics, LLMCallRecord, StepCostStatistics

logger = logging.getLogger(__name__)

# column order follows the record model
CALL_COLUMNS: list[str] = list(LLMCallRecord.model_fields)


def export_cost_json(stats: CostStatistics, path: Path) -> None:
    """Write ``stats`` as indented camelCase JSON, the same shape the API returns."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(stats.to_wire().to_json(), encoding="utf-8")
    logger.debug("Cost statistics written to %s", path)


def export_calls_csv(records: list[LLMCallRecord], path: Path) -> None:
    """One CSV row per model call, failed calls included."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CALL_COLUMNS)
        writer.writeheader()
        writer.writerows(r.model_dump(mode="json") for r in records)


def _step_line(s: StepCostStatistics, grand_total: float) -> str:
    share = 100 * s.cost.total_cost / grand_total if grand_total else 0.0
    return (
        f"  {s.step:>2d} {s.step_name:18s} {s.calls:>5d} {s.tokens.total_tokens:>10,} "
        f"{s.cost.input_cost:>11.6f} {s.cost.cached_input_cost:>11.6f} {s.cost.output_cost:>11.6f} "
        f"{s.cost.total_cost:>11.6f} {share:>5.1f}%{' *' if s.estimated else ''}"
    )


def export_cost_summary(stats: CostStatistics) -> str:
    """Console table of per-step cost with the batch total on top.

    Steps priced with the fallback model are marked with ``*``.
    """
    total = stats.total
    tokens = total.tokens
    header = (
        f"  {'#':>2s} {'step':18s} {'calls':>5s} {'tokens':>10s} "
        f"{'input $':>11s} {'cached $':>11s} {'output $':>11s} {'total $':>11s} {'share':>6s}"
    )
    out = [
        "=== Cost Summary ===",
        f"Model calls : {sum(s.calls for s in stats.steps)}",
        f"Tokens      : {tokens.total_tokens:,} (prompt {tokens.prompt_tokens:,} "
        f"of which cached {tokens.cached_tokens:,}, completion {tokens.completion_tokens:,})",
        f"Total cost  : ${total.cost.total_cost:.6f}{' (estimated)' if total.estimated else ''}",
        "",
        header,
    ]
    out.extend(_step_line(s, total.cost.total_cost) for s in stats.steps)
    if total.estimated:
        out += ["", "* priced with fallback pricing (model not in pricing table)"]
    return "\n".join(out)
