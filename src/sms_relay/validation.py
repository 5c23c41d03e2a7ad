import re
from typing import Any

# E.164: leading "+", first digit 1-9, 2 to 15 digits in total.
E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


class ValidationError(ValueError):
    """Base class for request validation failures. str(err) is safe to show callers."""


class MissingFieldError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Phone number and message are required")


class InvalidPhoneFormatError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Invalid phone number format. Use E.164 format (e.g., +1234567890)")


class InvalidMessageError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Message must be a non-empty string")


def is_e164(phone_number: Any) -> bool:
    return isinstance(phone_number, str) and E164_PATTERN.fullmatch(phone_number) is not None


def is_message_text(message: Any) -> bool:
    return isinstance(message, str) and message != ""


def validate(phone_number: Any, message: Any) -> None:
    """
    Check an SMS request before it reaches the gateway.

    Raises MissingFieldError if either field is absent or empty,
    InvalidMessageError if the message is not a string, and
    InvalidPhoneFormatError if the phone number is not E.164.
    """
    if not phone_number or not message:
        raise MissingFieldError()

    if not is_message_text(message):
        raise InvalidMessageError()

    if not is_e164(phone_number):
        raise InvalidPhoneFormatError()
