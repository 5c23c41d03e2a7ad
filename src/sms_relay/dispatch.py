"""
Shared send path for the direct-call and HTTP handlers:
configuration check -> validation -> one Twilio send -> structured result.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from sms_relay.logger import get_logger
from sms_relay.secrets import Settings
from sms_relay.twilio_client import SmsGateway
from sms_relay.validation import ValidationError, validate

logger = get_logger("dispatch")

SENT = "sent"
NOT_CONFIGURED = "not_configured"
INVALID_REQUEST = "invalid_request"
GATEWAY_ERROR = "gateway_error"

NOT_CONFIGURED_MESSAGE = "SMS service not configured"
SENT_MESSAGE = "SMS sent successfully"


@dataclass(frozen=True)
class DispatchResult:
    kind: str
    body: Dict[str, Any]

    @property
    def success(self) -> bool:
        return self.kind == SENT


def dispatch_sms(
    payload: Any, settings: Settings, gateway: Optional[SmsGateway]
) -> DispatchResult:
    if not settings.is_configured or gateway is None:
        logger.error(
            "dispatch.not_configured",
            extra={"missing": settings.missing_credentials()},
        )
        return DispatchResult(
            NOT_CONFIGURED, {"success": False, "message": NOT_CONFIGURED_MESSAGE}
        )

    if not isinstance(payload, dict):
        payload = {}
    phone_number = payload.get("phoneNumber")
    text = payload.get("message")

    try:
        validate(phone_number, text)
    except ValidationError as e:
        logger.warning(
            "dispatch.invalid_request",
            extra={"reason": type(e).__name__, "phone_present": bool(phone_number)},
        )
        return DispatchResult(INVALID_REQUEST, {"success": False, "message": str(e)})

    outcome = gateway.send(phone_number, text)
    if outcome.ok:
        return DispatchResult(
            SENT, {"success": True, "message": SENT_MESSAGE, "sid": outcome.sid}
        )

    return DispatchResult(
        GATEWAY_ERROR,
        {"success": False, "message": outcome.message, "error": outcome.error_code},
    )
