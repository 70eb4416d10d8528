from __future__ import annotations

import enum


class RequestStatus(enum.StrEnum):
    """Manager track of a leave request."""

    PENDING = "PENDING"
    MANAGER_APPROVED = "MANAGER_APPROVED"
    MANAGER_REJECTED = "MANAGER_REJECTED"


class HRStatus(enum.StrEnum):
    """HR track of a leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveType(enum.StrEnum):
    """Kinds of leave an employee can request."""

    ANNUAL = "ANNUAL"
    EMERGENCY = "EMERGENCY"
    UNPAID = "UNPAID"
    PERMISSION = "PERMISSION"
    EXTERNAL_ASSIGNMENT = "EXTERNAL_ASSIGNMENT"
    WORK_FROM_HOME = "WORK_FROM_HOME"


class AccessLevel(enum.StrEnum):
    """Visibility scope for request list queries."""

    OWN = "OWN"
    DEPARTMENT = "DEPARTMENT"
    ALL = "ALL"


class Transition(enum.StrEnum):
    """Lifecycle transitions a request can undergo."""

    MANAGER_APPROVE = "MANAGER_APPROVE"
    MANAGER_REJECT = "MANAGER_REJECT"
    HR_APPROVE = "HR_APPROVE"
    HR_REJECT = "HR_REJECT"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    USER = "USER"
    REQUEST = "REQUEST"
    TOKEN = "TOKEN"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    MANAGER_APPROVE = "MANAGER_APPROVE"
    MANAGER_REJECT = "MANAGER_REJECT"
    HR_APPROVE = "HR_APPROVE"
    HR_REJECT = "HR_REJECT"
    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOCKOUT = "LOCKOUT"
    REFRESH = "REFRESH"
    REVOKE = "REVOKE"
