"""Lifestyle Module - patient journal and provider meeting notes."""

from .models import LifestyleNote, ProviderMeetingNote, provider_display_name
from .router import router

__all__ = ["LifestyleNote", "ProviderMeetingNote", "provider_display_name", "router"]
