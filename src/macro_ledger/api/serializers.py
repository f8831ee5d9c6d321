"""Conversion of domain results into JSON-ready dictionaries."""

from macro_ledger.domain.meals import MultiLedgerResult
from macro_ledger.domain.metrics import Extreme, LedgerMetrics, Streak
from macro_ledger.domain.rename import AffectedFile, FollowedRename, RenameOutcome
from macro_ledger.services.formatting import display_totals


def totals_payload(result: MultiLedgerResult, energy_unit: str) -> dict[str, object]:
    return {
        "aggregate": result.aggregate.as_dict(),
        "breakdown": [
            {"identifier": item.identifier, **item.totals.as_dict()}
            for item in result.breakdown
        ],
        "display": display_totals(result.aggregate, energy_unit),
    }


def affected_payload(affected: list[AffectedFile] | tuple[AffectedFile, ...]) -> list[dict]:
    return [
        {
            "file": item.file,
            "matches": [
                {
                    "line": match.line,
                    "before_text": match.before_text,
                    "after_text": match.after_text,
                }
                for match in item.matches
            ],
        }
        for item in affected
    ]


def outcome_payload(outcome: RenameOutcome) -> dict[str, object]:
    return {
        "updated_files": list(outcome.updated_files),
        "failed_files": list(outcome.failed_files),
        "backups": list(outcome.backups),
    }


def followed_payload(followed: FollowedRename) -> dict[str, object]:
    return {
        "old_name": followed.old_name,
        "new_name": followed.new_name,
        "affected": affected_payload(followed.affected),
        "outcome": outcome_payload(followed.outcome) if followed.outcome else None,
    }


def metrics_payload(metrics: LedgerMetrics) -> dict[str, object]:
    span = metrics.date_range
    return {
        "day_count": metrics.day_count,
        "date_range": (
            {
                "start": span.start.isoformat(),
                "end": span.end.isoformat(),
                "day_count": span.day_count,
            }
            if span
            else None
        ),
        "averages": metrics.averages.as_dict(),
        "extremes": {
            item.macro: {
                "min": _extreme_payload(item.minimum),
                "max": _extreme_payload(item.maximum),
            }
            for item in metrics.extremes
        },
        "ratios": (
            {
                "protein": metrics.ratios.protein,
                "fat": metrics.ratios.fat,
                "carbs": metrics.ratios.carbs,
            }
            if metrics.ratios
            else None
        ),
        "adherence": {
            item.macro: {
                "target": item.target,
                "tolerance_percent": item.tolerance_percent,
                "percentage": item.percentage,
                "current_streak": item.current_streak,
                "longest_streak": _streak_payload(item.longest_streak),
            }
            for item in metrics.adherence
        },
        "trend": (
            {
                "window": metrics.trend.window,
                "through": metrics.trend.through.isoformat(),
                "averages": metrics.trend.averages.as_dict(),
            }
            if metrics.trend
            else None
        ),
    }


def _extreme_payload(extreme: Extreme) -> dict[str, object]:
    return {"identifier": extreme.identifier, "value": extreme.value}


def _streak_payload(streak: Streak) -> dict[str, object]:
    return {
        "length": streak.length,
        "start": streak.start.isoformat() if streak.start else None,
        "end": streak.end.isoformat() if streak.end else None,
    }
