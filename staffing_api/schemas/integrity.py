"""Pydantic schemas for the booking integrity report."""

from .base import CamelModel


class IntegrityReportResponse(CamelModel):
    accepted_without_candidate: list[int] = []
    legacy_status_aliases: list[int] = []
    stale_notifications: list[int] = []
    incomplete_play_projects: list[int] = []
    is_clean: bool
    repaired: bool = False
