"""Summarize resolution diagnostics into a structured report."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from omresolve.diagnostics import STAGE_ORDER, Diagnostic
from serde_msgspec import dumps_json_sorted, to_builtins


@dataclass(frozen=True)
class DiagnosticsReport:
    """Structured diagnostics report payload."""

    error_count: int
    warning_count: int
    stage_breakdown: Sequence[Mapping[str, object]]
    code_breakdown: Sequence[Mapping[str, object]]
    entries: Sequence[Diagnostic]

    @property
    def ok(self) -> bool:
        """Return whether the report holds no errors."""
        return self.error_count == 0

    def to_dict(self) -> dict[str, object]:
        return {
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "stage_breakdown": list(self.stage_breakdown),
            "code_breakdown": list(self.code_breakdown),
            "entries": to_builtins(tuple(self.entries)),
        }


def build_diagnostics_report(diagnostics: Iterable[Diagnostic]) -> DiagnosticsReport:
    """Build a diagnostics report from a resolution pass.

    Returns
    -------
    DiagnosticsReport
        Counts per stage and per code plus the ordered entries.
    """
    entries = tuple(diagnostics)
    by_stage: Counter[tuple[str, str]] = Counter(
        (str(diag.stage), diag.severity) for diag in entries
    )
    by_code = Counter(str(diag.code) for diag in entries)
    stage_breakdown = [
        {
            "stage": str(stage),
            "errors": by_stage[(str(stage), "error")],
            "warnings": by_stage[(str(stage), "warning")],
        }
        for stage in STAGE_ORDER
        if by_stage[(str(stage), "error")] or by_stage[(str(stage), "warning")]
    ]
    code_breakdown = [
        {"code": code, "count": count}
        for code, count in sorted(by_code.items(), key=lambda item: (-item[1], item[0]))
    ]
    errors = sum(1 for diag in entries if diag.is_error)
    return DiagnosticsReport(
        error_count=errors,
        warning_count=len(entries) - errors,
        stage_breakdown=stage_breakdown,
        code_breakdown=code_breakdown,
        entries=entries,
    )


def render_diagnostics_markdown(report: DiagnosticsReport) -> str:
    """Render a report as Markdown.

    Returns
    -------
    str
        Markdown text.
    """
    lines = [
        "# Resolution Diagnostics Report",
        "",
        f"- errors: {report.error_count}",
        f"- warnings: {report.warning_count}",
        "",
        "## Stage Breakdown",
    ]
    if report.stage_breakdown:
        lines.extend(
            f"- {row['stage']}: {row['errors']} errors, {row['warnings']} warnings"
            for row in report.stage_breakdown
        )
    else:
        lines.append("- None")
    lines.extend(["", "## Diagnostics"])
    if report.entries:
        for diag in report.entries:
            involved = ", ".join(diag.declarations)
            suffix = f" ({involved})" if involved else ""
            lines.append(f"- [{diag.severity}] {diag.render()}{suffix}")
    else:
        lines.append("- None")
    return "\n".join(lines) + "\n"


def write_diagnostics_report(
    diagnostics: Iterable[Diagnostic],
    *,
    output_dir: Path,
) -> Path:
    """Write JSON and Markdown diagnostics reports to ``output_dir``.

    Returns
    -------
    Path
        Path to the rendered Markdown report.
    """
    report = build_diagnostics_report(diagnostics)
    output_dir.mkdir(parents=True, exist_ok=True)
    json_path = output_dir / "resolution_diagnostics.json"
    md_path = output_dir / "resolution_diagnostics.md"
    json_path.write_bytes(dumps_json_sorted(report.to_dict(), pretty=True))
    md_path.write_text(render_diagnostics_markdown(report), encoding="utf-8")
    return md_path


__all__ = [
    "DiagnosticsReport",
    "build_diagnostics_report",
    "render_diagnostics_markdown",
    "write_diagnostics_report",
]
