from __future__ import annotations

import enum


class UserRole(enum.StrEnum):
    """Role of a profile inside its organization."""

    STAFF = "staff"
    ADMIN = "admin"


class RequestStatus(enum.StrEnum):
    """State machine for leave requests: pending is the only non-terminal state."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ReviewDecision(enum.StrEnum):
    """Outcome an admin may choose for a pending request."""

    APPROVED = "approved"
    DENIED = "denied"


class FormType(enum.StrEnum):
    """Staff-facing submission forms."""

    DAY_OFF = "day_off"
    VACATION = "vacation"
    SICK_DAY = "sick_day"
    TIME_CLOCK = "time_clock"
    OVERTIME = "overtime"


class NotificationType(enum.StrEnum):
    """Event tags understood by the notification fan-out."""

    NEW_REQUEST = "new_request"
    VACATION_REQUEST = "vacation_request"
    TIME_CLOCK_REQUEST = "time_clock_request"
    OVERTIME_REQUEST = "overtime_request"
    SICK_DAY_REQUEST = "sick_day_request"
    APPROVED = "approved"
    DENIED = "denied"


# Form types that create a LeaveRequest row for authenticated submitters.
PERSISTABLE_FORMS = frozenset({FormType.DAY_OFF, FormType.VACATION})

FORM_NOTIFICATION_TYPES: dict[FormType, NotificationType] = {
    FormType.DAY_OFF: NotificationType.NEW_REQUEST,
    FormType.VACATION: NotificationType.VACATION_REQUEST,
    FormType.TIME_CLOCK: NotificationType.TIME_CLOCK_REQUEST,
    FormType.OVERTIME: NotificationType.OVERTIME_REQUEST,
    FormType.SICK_DAY: NotificationType.SICK_DAY_REQUEST,
}
