"""Business logic services for the staffing booking API."""

from .token import create_access_token, create_token, decode_token
from .rbac import require_role, get_current_user, is_admin
from .matching import MatchResult, evaluate_match, is_match, is_visible, match_criteria
from .access_policy import (
    visible_assignments_clause,
    eligible_candidates_clause,
    render_policy_function_sql,
)
from .booking import BookingService, RebookingResult
from .projects import ProjectService
from .integrity import IntegrityReport, check_booking_integrity

__all__ = [
    "create_access_token",
    "create_token",
    "decode_token",
    "require_role",
    "get_current_user",
    "is_admin",
    "MatchResult",
    "evaluate_match",
    "is_match",
    "is_visible",
    "match_criteria",
    "visible_assignments_clause",
    "eligible_candidates_clause",
    "render_policy_function_sql",
    "BookingService",
    "RebookingResult",
    "ProjectService",
    "IntegrityReport",
    "check_booking_integrity",
]
