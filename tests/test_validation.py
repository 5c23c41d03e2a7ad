import pytest

from sms_relay.validation import (
    InvalidMessageError,
    InvalidPhoneFormatError,
    MissingFieldError,
    ValidationError,
    is_e164,
    validate,
)


@pytest.mark.parametrize("phone", ["+14155552671", "+12", "+442071838750", "+123456789012345"])
def test_accepts_e164(phone):
    validate(phone, "hi")
    assert is_e164(phone)


@pytest.mark.parametrize(
    "phone",
    ["1234567890", "+0123", "+1", "+1234567890123456", "+1 415 555 2671", "+14155552671\n", 14155552671],
)
def test_rejects_non_e164(phone):
    with pytest.raises(InvalidPhoneFormatError):
        validate(phone, "hi")


@pytest.mark.parametrize(
    "phone,message",
    [("", "hi"), (None, "hi"), ("+14155552671", ""), ("+14155552671", None), (None, None)],
)
def test_missing_fields(phone, message):
    with pytest.raises(MissingFieldError) as exc:
        validate(phone, message)
    assert str(exc.value) == "Phone number and message are required"


def test_empty_phone_is_missing_not_bad_format():
    # Presence is checked before format
    with pytest.raises(MissingFieldError):
        validate("", "hi")


def test_errors_are_value_errors():
    assert issubclass(MissingFieldError, ValidationError)
    assert issubclass(InvalidPhoneFormatError, ValueError)
    assert "E.164" in str(InvalidPhoneFormatError())


@pytest.mark.parametrize("message", [123, True, {"x": 1}, ["hi"]])
def test_non_string_message_rejected(message):
    with pytest.raises(InvalidMessageError) as exc:
        validate("+14155552671", message)
    assert str(exc.value) == "Message must be a non-empty string"
