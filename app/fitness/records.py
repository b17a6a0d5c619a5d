"""
Personal-Record Reduction

Derives the "current PR" per lift from a patient's full lift history.

The heaviest weight wins, regardless of reps or age. When two entries share
the top weight the later recorded_at wins; if those match too, the entry
seen first is kept. Output is ordered by lift type so equal inputs always
give equal outputs.
"""

from typing import Dict, Iterable, List

from app.trends.series import as_datetime, field_value

from .models import LiftHistoryPoint, LiftType, PersonalRecord


def _lift_key(record) -> str:
    lift = field_value(record, "lift_type")
    return getattr(lift, "value", lift)


def _beats(candidate, held) -> bool:
    """True when candidate should replace the held best for its lift."""
    new_weight = field_value(candidate, "weight_lbs")
    old_weight = field_value(held, "weight_lbs")
    if new_weight != old_weight:
        return new_weight > old_weight
    return as_datetime(field_value(candidate, "recorded_at")) > as_datetime(field_value(held, "recorded_at"))


def current_pr_map(records: Iterable[PersonalRecord]) -> Dict[str, PersonalRecord]:
    """Single pass: {lift_type: best record}."""
    best: Dict[str, PersonalRecord] = {}
    for record in records:
        key = _lift_key(record)
        held = best.get(key)
        if held is None or _beats(record, held):
            best[key] = record
    return best


def current_prs(records: Iterable[PersonalRecord]) -> List[PersonalRecord]:
    best = current_pr_map(records)
    return [best[key] for key in sorted(best)]


def lift_history(records: Iterable[PersonalRecord], lift_type: LiftType) -> List[LiftHistoryPoint]:
    """Every entry for one lift, oldest first, for the progress chart."""
    wanted = LiftType(lift_type).value
    entries = [r for r in records if _lift_key(r) == wanted]
    entries.sort(key=lambda r: as_datetime(field_value(r, "recorded_at")))
    return [
        LiftHistoryPoint(
            date=as_datetime(field_value(r, "recorded_at")).date(),
            weight_lbs=field_value(r, "weight_lbs"),
            reps=field_value(r, "reps"),
        )
        for r in entries
    ]
