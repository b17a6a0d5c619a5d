"""
Biomarker Flag Rule

Classifies a measured value against an optional reference range.

- no bounds at all      -> None (no opinion)
- value below ref_low   -> low
- value above ref_high  -> high
- otherwise             -> normal

Bounds themselves count as normal. Pure and deterministic; malformed
numeric input is the caller's concern.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import (
    BiomarkerFlag,
    BiomarkerInput,
    BiomarkerValue,
    FlagSummary,
    TrendChange,
)

# Changes smaller than this (percent) are reported as stable.
STABLE_THRESHOLD_PCT = 2.0


def flag_biomarker(
    value: float,
    ref_low: Optional[float],
    ref_high: Optional[float],
) -> Optional[BiomarkerFlag]:
    if ref_low is None and ref_high is None:
        return None

    if ref_low is not None and value < ref_low:
        return BiomarkerFlag.LOW

    if ref_high is not None and value > ref_high:
        return BiomarkerFlag.HIGH

    return BiomarkerFlag.NORMAL


def build_biomarker_value(
    value: float,
    unit: str,
    ref_low: Optional[float] = None,
    ref_high: Optional[float] = None,
) -> BiomarkerValue:
    """Create a stored measurement with its flag derived from the range."""
    return BiomarkerValue(
        value=value,
        unit=unit,
        reference_low=ref_low,
        reference_high=ref_high,
        flag=flag_biomarker(value, ref_low, ref_high),
    )


def build_biomarker_map(entries: Iterable[BiomarkerInput]) -> Dict[str, BiomarkerValue]:
    """Manual-entry rows -> {name: BiomarkerValue}. A repeated name keeps the last row."""
    return {
        entry.name: build_biomarker_value(
            entry.value,
            entry.unit,
            entry.reference_low,
            entry.reference_high,
        )
        for entry in entries
    }


def flag_summary(biomarkers: Optional[Mapping[str, Any]]) -> FlagSummary:
    """Count flags across one record's biomarkers."""
    summary = FlagSummary()
    for entry in (biomarkers or {}).values():
        flag = entry.get("flag") if isinstance(entry, dict) else entry.flag
        flag = getattr(flag, "value", flag)
        if flag == "low":
            summary.low += 1
        elif flag == "high":
            summary.high += 1
        elif flag == "normal":
            summary.normal += 1
        else:
            summary.unflagged += 1
    return summary


def unique_biomarkers(records: Iterable[Any]) -> List[str]:
    """Sorted distinct biomarker names across records."""
    names = set()
    for record in records:
        biomarkers = record.get("biomarkers") if isinstance(record, dict) else record.biomarkers
        if biomarkers:
            names.update(biomarkers.keys())
    return sorted(names)


def trend_change(current: float, previous: float) -> TrendChange:
    """Percent change between two readings; under 2% is stable."""
    if previous == 0:
        return TrendChange(direction="stable", percent=0.0)

    percent_change = ((current - previous) / previous) * 100
    abs_change = abs(percent_change)

    if abs_change < STABLE_THRESHOLD_PCT:
        return TrendChange(direction="stable", percent=abs_change)

    return TrendChange(
        direction="up" if percent_change > 0 else "down",
        percent=abs_change,
    )
