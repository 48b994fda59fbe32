"""
Category and overall score calculator.

Scoring model:
- Each check contributes status_value × severity_weight; the category score is the
  weighted mean, rounded half-up to an integer. An empty category scores 0.
- A category carrying a confirmed threat flag scores 0, whatever its checks say.
- The overall score is the rounded mean of the category scores, forced to 0 as soon
  as ANY category carries a threat flag. A single confirmed malicious signal is meant
  to dominate an otherwise good average.
"""
from __future__ import annotations

import math
from typing import Iterable

from config import SCORE_BANDS, SEVERITY_WEIGHTS, STATUS_VALUES
from models import CategoryResult, CheckResult

# Unknown severities count as "medium"
_DEFAULT_WEIGHT = 1.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_category_score(checks: Iterable[CheckResult], threat_detected: bool = False) -> int:
    """Weighted mean of the check statuses, 0–100."""
    if threat_detected:
        return 0

    total = 0.0
    total_weight = 0.0
    for check in checks:
        weight = SEVERITY_WEIGHTS.get(check.severity, _DEFAULT_WEIGHT)
        total += STATUS_VALUES.get(check.status, 0) * weight
        total_weight += weight

    if total_weight == 0:
        return 0
    return max(0, min(100, round_half_up(total / total_weight)))


def calculate_overall_score(categories: list[CategoryResult]) -> int:
    if not categories:
        return 0
    if any(c.threat_detected for c in categories):
        return 0
    mean = sum(c.score for c in categories) / len(categories)
    return max(0, min(100, round_half_up(mean)))


def score_label(score: float) -> str:
    for minimum, label, _ in SCORE_BANDS:
        if score >= minimum:
            return label
    return SCORE_BANDS[-1][1]


def score_color(score: float) -> str:
    for minimum, _, color in SCORE_BANDS:
        if score >= minimum:
            return color
    return SCORE_BANDS[-1][2]
