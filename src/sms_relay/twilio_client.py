from dataclasses import dataclass
from typing import Dict, Optional, Union

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from sms_relay.logger import get_logger
from sms_relay.secrets import Settings

logger = get_logger("twilio_client")

UNKNOWN_ERROR = "UNKNOWN_ERROR"
DEFAULT_FAILURE_MESSAGE = "Failed to send SMS"

# Twilio error codes we translate into fixed, user-facing messages.
# https://www.twilio.com/docs/api/errors
ERROR_MESSAGES: Dict[int, str] = {
    21211: "Invalid phone number",
    21608: "Unverified phone number. Please verify your Twilio number.",
}

ErrorCode = Union[int, str]


@dataclass(frozen=True)
class DeliveryOutcome:
    ok: bool
    sid: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    message: Optional[str] = None


def map_error(code: Optional[int], vendor_message: Optional[str]) -> str:
    if code in ERROR_MESSAGES:
        return ERROR_MESSAGES[code]
    return vendor_message or DEFAULT_FAILURE_MESSAGE


class SmsGateway:
    """Sends SMS from a fixed sender number through Twilio."""

    def __init__(self, client: TwilioClient, from_number: str):
        self.client = client
        self.from_number = from_number

    def send(self, to: str, body: str) -> DeliveryOutcome:
        try:
            resp = self.client.messages.create(
                body=body,
                from_=self.from_number,
                to=to,
            )
        except TwilioRestException as e:
            logger.error(
                "twilio.rejected",
                extra={"to": to, "code": e.code, "status": e.status, "error": e.msg},
            )
            return DeliveryOutcome(
                ok=False,
                error_code=e.code or UNKNOWN_ERROR,
                message=map_error(e.code, e.msg),
            )
        except Exception:
            logger.exception("twilio.unexpected_error", extra={"to": to})
            return DeliveryOutcome(
                ok=False,
                error_code=UNKNOWN_ERROR,
                message=DEFAULT_FAILURE_MESSAGE,
            )

        logger.info("twilio.sent", extra={"sid": resp.sid, "to": to})
        return DeliveryOutcome(ok=True, sid=resp.sid)


def build_client(settings: Settings) -> Optional[SmsGateway]:
    """
    Build the gateway for the given settings, or None when Twilio
    credentials are incomplete (sending is then disabled).
    """
    missing = settings.missing_credentials()
    if missing:
        logger.warning("Twilio client not built", extra={"missing": missing})
        return None

    client = TwilioClient(settings.twilio_account_sid, settings.twilio_auth_token)
    logger.info("Twilio client initialized successfully")

    return SmsGateway(client, settings.twilio_phone_number)
