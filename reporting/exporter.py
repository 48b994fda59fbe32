"""
Converts OverallResult data to Pandas DataFrames and CSV bytes for export.
"""
from __future__ import annotations

import io

import pandas as pd

from models import CategoryResult, CheckSeverity, LinkAssessment, LinkStatus, OverallResult

_SEVERITY_ORDER = {sev: idx for idx, sev in enumerate(CheckSeverity.ALL)}
_STATUS_ORDER = {"fail": 0, "error": 1, "warn": 2, "info": 3, "pass": 4}
_LINK_ORDER = {status: idx for idx, status in enumerate(
    [LinkStatus.UNSAFE, LinkStatus.BROKEN, LinkStatus.UNREACHABLE, LinkStatus.WARNING,
     LinkStatus.UNKNOWN, LinkStatus.SAFE, LinkStatus.NOT_SCORED]
)}


# ── Categories ─────────────────────────────────────────────────────────────────

def categories_to_df(result: OverallResult) -> pd.DataFrame:
    if not result.categories:
        return pd.DataFrame(columns=["Category", "Score", "Checks", "Failed", "Threat"])

    rows = []
    for cat in result.categories:
        rows.append({
            "Category": cat.category,
            "Score":    cat.score,
            "Checks":   len(cat.checks),
            "Failed":   sum(1 for c in cat.checks if c.status in ("fail", "error")),
            "Threat":   cat.threat_detected,
        })
    return pd.DataFrame(rows)


def checks_to_df(categories: list[CategoryResult]) -> pd.DataFrame:
    """Every check of every category, worst first."""
    columns = ["Category", "Check", "Status", "Severity", "Description"]
    rows = []
    for cat in categories:
        for check in cat.checks:
            rows.append({
                "Category":    cat.category,
                "Check":       check.name,
                "Status":      check.status.upper(),
                "Severity":    check.severity.capitalize(),
                "Description": check.description,
            })
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows, columns=columns)
    df["_status_order"] = df["Status"].str.lower().map(_STATUS_ORDER).fillna(len(_STATUS_ORDER))
    df["_sev_order"] = df["Severity"].str.lower().map(_SEVERITY_ORDER).fillna(len(_SEVERITY_ORDER))
    df = df.sort_values(["_status_order", "_sev_order", "Category"], kind="stable")
    return df.drop(columns=["_status_order", "_sev_order"]).reset_index(drop=True)


# ── Links ──────────────────────────────────────────────────────────────────────

def scored_links_to_df(assessments: list[LinkAssessment]) -> pd.DataFrame:
    columns = ["URL", "Score", "Status", "Issues"]
    if not assessments:
        return pd.DataFrame(columns=columns)

    rows = [{
        "URL":    a.url,
        "Score":  a.score,
        "Status": a.status,
        "Issues": ", ".join(a.issues),
    } for a in assessments]

    df = pd.DataFrame(rows, columns=columns)
    df["_order"] = df["Status"].map(_LINK_ORDER).fillna(len(_LINK_ORDER))
    df = df.sort_values(["_order", "Score"], kind="stable", na_position="last").drop(columns=["_order"])
    return df.reset_index(drop=True)


def link_status_counts(assessments: list[LinkAssessment]) -> dict[str, int]:
    counts = {status: 0 for status in LinkStatus.ALL}
    for a in assessments:
        counts[a.status] = counts.get(a.status, 0) + 1
    return counts


# ── CSV export ─────────────────────────────────────────────────────────────────

def to_csv_bytes(df: pd.DataFrame) -> bytes:
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return buf.getvalue().encode("utf-8")
