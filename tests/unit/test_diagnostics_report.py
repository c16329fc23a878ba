"""Tests for diagnostics reports."""

from __future__ import annotations

import json
from pathlib import Path

from obs.diagnostics_report import (
    build_diagnostics_report,
    render_diagnostics_markdown,
    write_diagnostics_report,
)
from omresolve.diagnostics import DiagnosticCode, Stage, error, warning

_DIAGNOSTICS = (
    error(
        DiagnosticCode.UNKNOWN_CONTRACT,
        Stage.CONTRACTS,
        "A: platform names undeclared contract 'X'.",
        declarations=("A",),
    ),
    warning(
        DiagnosticCode.GATE_BELOW_OWNER,
        Stage.CONTRACTS,
        "A.P: gate below owner.",
        declarations=("A.P", "A"),
    ),
    error(
        DiagnosticCode.UNKNOWN_CONTRACT,
        Stage.CONTRACTS,
        "B: platform names undeclared contract 'X'.",
        declarations=("B",),
    ),
    error(
        DiagnosticCode.DUPLICATE_IDENTITY,
        Stage.IDENTITY,
        "Identity 'x1' is claimed twice.",
        declarations=("A", "B"),
    ),
)


def test_report_counts() -> None:
    """Ensure counts are broken down by stage and code."""
    report = build_diagnostics_report(_DIAGNOSTICS)
    assert report.error_count == 3
    assert report.warning_count == 1
    assert not report.ok
    assert report.stage_breakdown == [
        {"stage": "contracts", "errors": 2, "warnings": 1},
        {"stage": "identity", "errors": 1, "warnings": 0},
    ]
    assert report.code_breakdown[0] == {"code": "UnknownContract", "count": 2}


def test_empty_report_renders_placeholders() -> None:
    """Ensure a clean pass renders without sections."""
    report = build_diagnostics_report(())
    assert report.ok
    text = render_diagnostics_markdown(report)
    assert "- errors: 0" in text
    assert text.count("- None") == 2


def test_write_report(tmp_path: Path) -> None:
    """Ensure JSON and Markdown reports are written side by side."""
    md_path = write_diagnostics_report(_DIAGNOSTICS, output_dir=tmp_path / "out")
    assert md_path.name == "resolution_diagnostics.md"
    assert "[warning] contracts:GateBelowOwner" in md_path.read_text(encoding="utf-8")
    payload = json.loads((tmp_path / "out" / "resolution_diagnostics.json").read_text())
    assert payload["error_count"] == 3
    assert payload["entries"][3]["code"] == "DuplicateIdentity"


def test_diagnostic_detail_is_sorted_and_copied() -> None:
    """Ensure detail entries are stored as sorted pairs that copies cannot alter."""
    diagnostic = error(
        DiagnosticCode.DUPLICATE_IDENTITY,
        Stage.IDENTITY,
        "Identity 'x1' is claimed twice.",
        declarations=("A", "B"),
        detail={"value": "x1", "space": "identifier", "count": 2},
    )
    assert diagnostic.detail == (("count", "2"), ("space", "identifier"), ("value", "x1"))
    copied = diagnostic.detail_map()
    copied["value"] = "changed"
    assert diagnostic.detail_value("value") == "x1"
    assert diagnostic.detail_value("missing") is None
