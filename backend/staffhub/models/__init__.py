from sqlmodel import SQLModel

from staffhub.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from staffhub.models.enums import FormType, NotificationType, RequestStatus, ReviewDecision, UserRole
from staffhub.models.organization import NotificationRecipient, Organization, Profile
from staffhub.models.reference import LeaveType, PayPeriod
from staffhub.models.request import LeaveRequest, LeaveRequestDate

__all__ = [
    "FormType",
    "LeaveRequest",
    "LeaveRequestDate",
    "LeaveType",
    "NotificationRecipient",
    "NotificationType",
    "Organization",
    "PayPeriod",
    "Profile",
    "RequestStatus",
    "ReviewDecision",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
    "UserRole",
]
