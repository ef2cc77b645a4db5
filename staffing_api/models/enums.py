"""Status and level enums for the booking schema."""

import enum


class BookingStatus(str, enum.Enum):
    """Booking status of a resource assignment."""

    DRAFT = "draft"
    RECHERCHE = "recherche"  # Search open, no candidate yet
    ACCEPTED = "accepted"  # Legacy spelling: "booké"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: "str | BookingStatus") -> "BookingStatus":
        """Parse a stored value, resolving legacy aliases.

        Raises:
            ValueError: If the value is not a known status or alias
        """
        if isinstance(value, cls):
            return value
        return cls(LEGACY_BOOKING_STATUS_ALIASES.get(value, value))

    @property
    def stored_values(self) -> tuple[str, ...]:
        """Every spelling that may be stored for this status, canonical first."""
        aliases = tuple(
            alias for alias, canonical in LEGACY_BOOKING_STATUS_ALIASES.items()
            if canonical == self.value
        )
        return (self.value,) + aliases


# Spellings written by older clients for the same logical state
LEGACY_BOOKING_STATUS_ALIASES = {
    "booké": BookingStatus.ACCEPTED.value,
}

# Statuses where visibility is gated by candidate_id alone
BOUND_BOOKING_STATUSES = (BookingStatus.ACCEPTED, BookingStatus.COMPLETED)

TERMINAL_BOOKING_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status."""

    DRAFT = "draft"
    WAITING_TEAM = "attente-team"
    PLAY = "play"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Seniority(str, enum.Enum):
    """Seniority levels shared by assignments and candidates."""

    JUNIOR = "junior"
    INTERMEDIATE = "intermediate"
    SENIOR = "senior"
    EXPERT = "expert"


class CandidateStatus(str, enum.Enum):
    """Availability status of a candidate profile."""

    DISPONIBLE = "disponible"
    QUALIFICATION = "qualification"  # Still being qualified, never matched
    INDISPONIBLE = "indisponible"


class NotificationType(str, enum.Enum):
    MISSION_REQUEST = "mission_request"
    MISSION_COMPLETED = "mission_completed"


class NotificationStatus(str, enum.Enum):
    UNREAD = "unread"
    READ = "read"
    DECLINED = "declined"
    EXPIRED = "expired"


# Notifications that still ask the candidate for an answer
LIVE_NOTIFICATION_STATUSES = (NotificationStatus.UNREAD.value, NotificationStatus.READ.value)
