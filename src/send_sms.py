from sms_relay.dispatch import dispatch_sms
from sms_relay.logger import get_logger
from sms_relay.secrets import load_settings
from sms_relay.twilio_client import build_client

logger = get_logger("send_sms")

# Built once per container
settings = load_settings()
gateway = build_client(settings)


def lambda_handler(event, context):
    """
    Direct invocation: event is {"phoneNumber": "...", "message": "..."}.
    Returns {"success": bool, "message": str, "sid"?: str, "error"?: code}.
    """
    logger.info(
        "send_sms.lambda_start",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    result = dispatch_sms(event, settings, gateway)

    logger.info("send_sms.lambda_done", extra={"outcome": result.kind})
    return result.body
