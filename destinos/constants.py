"""Shared constants for the destinos gamification rules.

Centralises point values and thresholds used by the scoring rules and the
season reset.
"""

from __future__ import annotations

# Points granted per accepted action
POINTS_SUBMISSION: int = 10
POINTS_APPROVAL: int = 50

# Max point-earning actions of one kind per season
YEARLY_LIMIT: int = 10

# Every medal is worth the same regardless of category
MEDAL_VALUE: int = 100

# Medal labels keyed by action kind value
MEDAL_LABELS: dict[str, str] = {
    "submission": "🏅 Constancia",
    "approval": "🌟 Calidad",
}
