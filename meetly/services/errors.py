"""Domain errors raised by the services.

Each error carries a stable code and a user-safe message.  The HTTP layer
maps the category to a status code (api.dependencies.domain_error_handler);
services never import FastAPI.
"""

from __future__ import annotations

from enum import Enum


class Category(Enum):
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFLICT = "conflict"


class ErrorCode(Enum):
    NOT_A_MEMBER = "NOT_A_MEMBER"
    NOT_OWNER = "NOT_OWNER"
    INVITE_FORBIDDEN = "INVITE_FORBIDDEN"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    PURCHASE_NOT_FOUND = "PURCHASE_NOT_FOUND"
    INVITE_NOT_FOUND = "INVITE_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    INVALID_ENROLLMENT = "INVALID_ENROLLMENT"
    INVALID_PROFILE = "INVALID_PROFILE"
    SLUG_TAKEN = "SLUG_TAKEN"
    ALREADY_PURCHASED = "ALREADY_PURCHASED"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    category: Category

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


# --- Authorization ---


class NotAMemberError(DomainError):
    code = ErrorCode.NOT_A_MEMBER
    category = Category.AUTHORIZATION

    def __init__(self) -> None:
        super().__init__("You are not a member of this organization")


class NotOwnerError(DomainError):
    code = ErrorCode.NOT_OWNER
    category = Category.AUTHORIZATION

    def __init__(self) -> None:
        super().__init__("Only the organization owner can do this")


class InviteForbiddenError(DomainError):
    code = ErrorCode.INVITE_FORBIDDEN
    category = Category.AUTHORIZATION

    def __init__(self) -> None:
        super().__init__("This invite is addressed to someone else")


# --- Not found ---


class EventNotFoundError(DomainError):
    code = ErrorCode.EVENT_NOT_FOUND
    category = Category.NOT_FOUND

    def __init__(self) -> None:
        super().__init__("Event not found")


class PackageNotFoundError(DomainError):
    code = ErrorCode.PACKAGE_NOT_FOUND
    category = Category.NOT_FOUND

    def __init__(self) -> None:
        super().__init__("Package not found")


class PurchaseNotFoundError(DomainError):
    code = ErrorCode.PURCHASE_NOT_FOUND
    category = Category.NOT_FOUND

    def __init__(self) -> None:
        super().__init__("Purchase not found")


class InviteNotFoundError(DomainError):
    code = ErrorCode.INVITE_NOT_FOUND
    category = Category.NOT_FOUND

    def __init__(self) -> None:
        super().__init__("Invite not found")


class ProfileNotFoundError(DomainError):
    code = ErrorCode.PROFILE_NOT_FOUND
    category = Category.NOT_FOUND

    def __init__(self) -> None:
        super().__init__("Profile not found")


# --- Validation ---


class LimitExceededError(DomainError):
    code = ErrorCode.LIMIT_EXCEEDED
    category = Category.VALIDATION

    def __init__(self, limit: int) -> None:
        super().__init__(f"You can create at most {limit} events")
        self.limit = limit


class EnrollmentValidationError(DomainError):
    code = ErrorCode.INVALID_ENROLLMENT
    category = Category.VALIDATION


class ProfileValidationError(DomainError):
    code = ErrorCode.INVALID_PROFILE
    category = Category.VALIDATION


# --- Conflict ---


class SlugTakenError(DomainError):
    code = ErrorCode.SLUG_TAKEN
    category = Category.CONFLICT

    def __init__(self) -> None:
        super().__init__("This profile URL is already taken")


class AlreadyPurchasedError(DomainError):
    code = ErrorCode.ALREADY_PURCHASED
    category = Category.CONFLICT

    def __init__(self) -> None:
        super().__init__("You have already purchased this package")
