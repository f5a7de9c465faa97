"""String enumerations stored in VARCHAR columns."""

from enum import Enum


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class EventCategory(str, Enum):
    UNIVERSITY = "UNIVERSITY"
    FACULTY = "FACULTY"
    COLLEGE = "COLLEGE"
    CLUB = "CLUB"


class EventStatus(str, Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def label(self) -> str:
        """Display form used by the API ("Upcoming", "Ongoing", ...)."""
        return self.value.capitalize()


class RegistrationStatus(str, Enum):
    REGISTERED = "REGISTERED"
    WAITLISTED = "WAITLISTED"
    CANCELLED = "CANCELLED"
    ATTENDED = "ATTENDED"

    @property
    def label(self) -> str:
        return self.value.capitalize()
