"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class ResolutionStatus(str, Enum):
    """Persisted ticket status"""
    PENDING = "Pending"
    IN_PROGRESS = "In-Progress"
    COMPLETED = "Completed"


class FirstCallResolution(str, Enum):
    """Derived from resolution status, never client-controlled"""
    YES = "Yes"
    NO = "No"


class TicketState(str, Enum):
    """Display-only state computed on read"""
    OPEN = "Open"
    CLOSED = "Closed"
    REOPENED = "Reopened"


class CommunicationChannel(str, Enum):
    """Channel the customer used to reach support"""
    WHATSAPP = "WhatsApp"
    PHONE = "Phone"
    EMAIL = "Email"
    IN_APP = "In-App"


class IssueCategory(str, Enum):
    """Support issue categories"""
    APP = "App"
    IPTV = "IPTV"
    STREAMING = "Streaming"
    VOD = "VOD"
    SUBSCRIPTION = "Subscription"
    OTP = "OTP"
    PROGRAMMING = "Programming"
    OTHER = "Other"


class UserStatus(str, Enum):
    """Account status"""
    ACTIVE = "active"
    DISABLED = "disabled"


class Shift(str, Enum):
    """Employee shift"""
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    NIGHT = "Night"


class NotificationStatus(str, Enum):
    """Notification outbox status"""
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationType(str, Enum):
    """In-app notification categories"""
    TICKET_ASSIGNMENT = "ticket_assignment"
    TICKET_UPDATE = "ticket_update"
    FOLLOW_UP_CREATED = "follow_up_created"
    SYSTEM = "system"
