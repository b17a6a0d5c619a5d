"""
Blood Work Module

Lab results entered by hand or uploaded as PDFs, flagged against their
reference ranges, plus patient blood-draw requests.

The flag rule is PURE: same value and range -> same flag, no side effects.
"""

from .models import (
    LabSource,
    BiomarkerFlag,
    BiomarkerValue,
    BiomarkerInput,
    BloodWorkRecord,
    BloodWorkRequestStatus,
    BloodWorkRequestRecord,
)
from .flags import (
    flag_biomarker,
    build_biomarker_value,
    build_biomarker_map,
    flag_summary,
    unique_biomarkers,
    trend_change,
)
from .router import router

__all__ = [
    # Models
    "LabSource",
    "BiomarkerFlag",
    "BiomarkerValue",
    "BiomarkerInput",
    "BloodWorkRecord",
    "BloodWorkRequestStatus",
    "BloodWorkRequestRecord",
    # Functions
    "flag_biomarker",
    "build_biomarker_value",
    "build_biomarker_map",
    "flag_summary",
    "unique_biomarkers",
    "trend_change",
    # Router
    "router",
]
