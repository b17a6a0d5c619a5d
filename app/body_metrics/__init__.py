"""Body Metrics Module - weight and circumference tracking."""

from .models import BodyMetric, BodyMetricCreate
from .router import router

__all__ = ["BodyMetric", "BodyMetricCreate", "router"]
