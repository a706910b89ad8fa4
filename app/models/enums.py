from enum import StrEnum

class ContributionFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

class PayoutOrder(StrEnum):
    FIXED = "fixed"
    # Deterministic join order, not a shuffle
    RANDOM = "random"

class StartType(StrEnum):
    IMMEDIATE = "immediate"
    FUTURE = "future"
    IN_PROGRESS = "in-progress"

class PaymentVerification(StrEnum):
    OPTIONAL = "optional"
    MANDATORY = "mandatory"

class RoundStatus(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"

class RoundRole(StrEnum):
    ORGANIZER = "organizer"
    MEMBER = "member"

class ContributionStatus(StrEnum):
    PENDING = "pending"
    LATE = "late"
    PAID = "paid"
    VERIFIED = "verified"

class ProofType(StrEnum):
    IMAGE = "image"
    FILE = "file"
    REFERENCE = "reference"

class ProofStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class PayoutStatus(StrEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"

class TimelineEventType(StrEnum):
    ROUND_CREATED = "round_created"
    ROUND_UPDATED = "round_updated"
    MEMBER_JOINED = "member_joined"
    MEMBER_REMOVED = "member_removed"
    CONTRIBUTION_RECORDED = "contribution_recorded"
    PROOF_UPLOADED = "proof_uploaded"
    PROOF_APPROVED = "proof_approved"
    PROOF_REJECTED = "proof_rejected"

class NotificationCategory(StrEnum):
    ACTION_REQUIRED = "action_required"
    UPCOMING = "upcoming"
    INFORMATION = "information"

class NotificationType(StrEnum):
    MEMBER_JOINED = "member_joined"
    ROUND_UPDATED = "round_updated"
    PROOF_UPLOADED = "proof_uploaded"
    PROOF_APPROVED = "proof_approved"
    PROOF_REJECTED = "proof_rejected"

class CalendarFilter(StrEnum):
    ALL = "all"
    ORGANIZED = "organized"
    JOINED = "joined"

class CalendarEventType(StrEnum):
    PAYOUT = "payout"
    CONTRIBUTION_DUE = "contribution_due"

class GlobalStatus(StrEnum):
    HEALTHY = "healthy"
    ACTION_NEEDED = "action-needed"
