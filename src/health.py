import json

from sms_relay import __version__
from sms_relay.logger import log
from sms_relay.secrets import load_settings

settings = load_settings()


def lambda_handler(event, context):
    method = event.get("requestContext", {}).get("http", {}).get("method", "GET")
    log("health.check", path="/healthz", method=method, sms_configured=settings.is_configured)
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(
            {
                "status": "ok",
                "smsConfigured": settings.is_configured,
                "version": __version__,
            }
        ),
    }
