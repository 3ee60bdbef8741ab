"""Input validation for registration and login payloads."""
from typing import List, Optional
from email_validator import EmailNotValidError, validate_email
from skyearth.errors import ValidationError
from skyearth.schemas.auth import LoginRequest, RegisterRequest

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_BYTES = 72  # bcrypt only looks at the first 72 bytes
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively."""
    return email.strip().lower()


def _clean_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_credentials(email: Optional[str], password: Optional[str]):
    if not email or not email.strip() or not password:
        raise ValidationError("Email and password are required")


def _email_errors(email: str) -> List[str]:
    if len(email) > EMAIL_MAX_LENGTH:
        return [f"Email must be at most {EMAIL_MAX_LENGTH} characters"]
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return ["Please provide a valid email address"]
    return []


def validate_registration(data: RegisterRequest) -> RegisterRequest:
    """
    Validate a registration payload before it touches the store.

    Returns a cleaned copy (normalized email, stripped names). Raises
    ValidationError listing every failed rule.
    """
    _require_credentials(data.email, data.password)

    email = normalize_email(data.email)
    first_name = _clean_name(data.first_name)
    last_name = _clean_name(data.last_name)

    errors = _email_errors(email)
    if len(data.password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    elif len(data.password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        errors.append(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long")
    if first_name and len(first_name) > NAME_MAX_LENGTH:
        errors.append(f"First name must be less than {NAME_MAX_LENGTH} characters")
    if last_name and len(last_name) > NAME_MAX_LENGTH:
        errors.append(f"Last name must be less than {NAME_MAX_LENGTH} characters")

    if errors:
        raise ValidationError(errors[0] if len(errors) == 1 else "Validation error", errors)

    return RegisterRequest(
        email=email,
        first_name=first_name,
        last_name=last_name,
        password=data.password,
    )


def validate_login(data: LoginRequest) -> LoginRequest:
    """Check that both credentials are present and normalize the email."""
    _require_credentials(data.email, data.password)
    return LoginRequest(email=normalize_email(data.email), password=data.password)
