"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .enums import (
    ResolutionStatus, FirstCallResolution, CommunicationChannel, IssueCategory,
    UserStatus, Shift, NotificationStatus, NotificationType
)


def _unique(values: Optional[List[Any]]) -> List[Any]:
    """Drop duplicates while keeping first-seen order"""
    seen = set()
    result = []
    for value in values or []:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current caller, resolved from the session token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="User ID")
    username: str = Field(..., description="Login name")
    email: str = Field(..., description="User email")
    employee_id: Optional[int] = Field(None, description="Linked employee, if any")


class User(BaseModel):
    """Application user account"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    user_id: str
    username: str
    email: str
    password_hash: str
    employee_id: Optional[int] = None
    status: UserStatus = UserStatus.ACTIVE
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    def to_public(self) -> Dict[str, Any]:
        """User fields safe to return to clients"""
        return {
            "id": self.user_id,
            "username": self.username,
            "email": self.email,
            "employeeId": self.employee_id,
            "status": self.status,
        }


class Department(BaseModel):
    """Organizational department"""
    model_config = ConfigDict(extra="ignore")

    department_id: str
    name: str


class Section(BaseModel):
    """Section within a department"""
    model_config = ConfigDict(extra="ignore")

    section_id: str
    department_id: str
    name: str


class Employee(BaseModel):
    """Employee record; agents and reviewers are referenced by employee_id"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    employee_id: int
    name: str
    shift: Optional[Shift] = None
    title: Optional[str] = None
    department_id: Optional[str] = None
    section_id: Optional[str] = None
    phone: Optional[str] = None


# ============================================================================
# Permission Registry & User Access
# ============================================================================

class Permission(BaseModel):
    """A grantable capability"""
    model_config = ConfigDict(extra="ignore")

    key: str
    label: str
    group: Optional[str] = None
    description: Optional[str] = None


class Role(BaseModel):
    """Named bundle of permission keys"""
    model_config = ConfigDict(extra="ignore")

    key: str
    label: str
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)

    @field_validator("permissions")
    @classmethod
    def dedupe_permissions(cls, v: List[str]) -> List[str]:
        return _unique(v)


class PageAccessRule(BaseModel):
    """Page/section restriction attached to one permission"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    permission: str = Field(..., min_length=1)
    allowed_pages: Optional[List[int]] = Field(None, alias="allowedPages")
    max_pages: Optional[int] = Field(None, alias="maxPages", ge=1)
    sections_allowed: Optional[List[str]] = Field(None, alias="sectionsAllowed")

    @field_validator("allowed_pages")
    @classmethod
    def validate_pages(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is None:
            return v
        if any(page < 1 for page in v):
            raise ValueError("page numbers start at 1")
        return _unique(v)

    @field_validator("sections_allowed")
    @classmethod
    def dedupe_sections(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _unique(v)


class UserAccess(BaseModel):
    """
    Per-user access overrides.

    Effective permissions are (role permissions + perms_extra) - perms_denied.
    The API speaks the camelCase aliases; MongoDB stores the snake_case names.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    roles: List[str] = Field(default_factory=list)
    perms_extra: List[str] = Field(default_factory=list, alias="permsExtra")
    perms_denied: List[str] = Field(default_factory=list, alias="permsDenied")
    home_route: Optional[str] = Field(None, alias="homeRoute")
    page_access: List[PageAccessRule] = Field(default_factory=list, alias="pageAccess")
    department_restrictions: List[str] = Field(default_factory=list, alias="departmentRestrictions")
    section_restrictions: List[str] = Field(default_factory=list, alias="sectionRestrictions")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator(
        "roles", "perms_extra", "perms_denied",
        "department_restrictions", "section_restrictions"
    )
    @classmethod
    def dedupe_keys(cls, v: List[str]) -> List[str]:
        return _unique(v)


class EffectiveAccess(BaseModel):
    """Result of evaluating a user's access record against the role catalog"""
    permissions: Set[str] = Field(default_factory=set)
    roles: List[str] = Field(default_factory=list)
    home_route: Optional[str] = None


# ============================================================================
# Support: Tickets, Follow-ups, Reviews
# ============================================================================

class Ticket(BaseModel):
    """Customer support ticket"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    ticket_id: int
    customer_phone: str
    customer_location: Optional[str] = None
    communication_channel: Optional[CommunicationChannel] = None
    device_type: Optional[str] = None
    issue_category: IssueCategory
    issue_type: Optional[str] = None
    issue_description: Optional[str] = None
    agent_id: Optional[int] = None
    resolution_status: ResolutionStatus = ResolutionStatus.PENDING
    first_call_resolution: FirstCallResolution = FirstCallResolution.NO
    created_at: datetime
    updated_at: datetime


class FollowUp(BaseModel):
    """Customer follow-up attached to a ticket"""
    model_config = ConfigDict(extra="ignore")

    follow_up_id: int
    ticket_id: int
    follow_up_agent_id: Optional[int] = None
    follow_up_date: datetime
    issue_solved: Optional[bool] = None
    satisfied: Optional[bool] = None
    repeated_issue: bool = False
    follow_up_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Review(BaseModel):
    """QA review of a ticket"""
    model_config = ConfigDict(extra="ignore")

    review_id: int
    ticket_id: int
    reviewer_id: int
    review_date: datetime
    issue_status: str
    resolved: bool = False
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Notifications
# ============================================================================

class NotificationOutbox(BaseModel):
    """Notification waiting in the outbox for delivery"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    outbox_id: str
    recipient_user_id: str
    title: str
    message: str
    notification_type: NotificationType = NotificationType.SYSTEM
    ticket_id: Optional[int] = None
    status: NotificationStatus = NotificationStatus.PENDING
    retry_count: int = 0
    last_error: Optional[str] = None
    next_retry_at: Optional[datetime] = None
    created_at: datetime
    sent_at: Optional[datetime] = None


class Notification(BaseModel):
    """Delivered in-app notification"""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    notification_id: int
    user_id: str
    title: str
    message: str
    notification_type: NotificationType = NotificationType.SYSTEM
    ticket_id: Optional[int] = None
    is_read: bool = False
    created_at: datetime
