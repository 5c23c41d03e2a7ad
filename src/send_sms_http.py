import base64
import binascii
import json

from sms_relay.dispatch import (
    GATEWAY_ERROR,
    INVALID_REQUEST,
    NOT_CONFIGURED,
    SENT,
    dispatch_sms,
)
from sms_relay.logger import get_logger
from sms_relay.secrets import load_settings
from sms_relay.twilio_client import build_client

logger = get_logger("send_sms_http")

settings = load_settings()
gateway = build_client(settings)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

STATUS_BY_OUTCOME = {
    SENT: 200,
    INVALID_REQUEST: 400,
    NOT_CONFIGURED: 500,
    GATEWAY_ERROR: 500,
}


def _response(status_code: int, payload=None) -> dict:
    if payload is None:
        return {"statusCode": status_code, "headers": dict(CORS_HEADERS), "body": ""}
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def _method(event: dict) -> str:
    # HTTP API (v2) puts it under requestContext.http; REST API (v1) at the top.
    http = event.get("requestContext", {}).get("http", {})
    return (http.get("method") or event.get("httpMethod") or "").upper()


def _parse_body(event: dict):
    """
    Extract and parse the JSON body from an API Gateway event.

    Raises ValueError when the body isn't valid JSON.
    """
    body = event.get("body")

    if body is None or body == "":
        return {}
    if isinstance(body, dict):
        return body

    if event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValueError("body is not valid base64 UTF-8") from e

    try:
        return json.loads(body)
    except json.JSONDecodeError:
        logger.warning(
            "send_sms_http.invalid_json",
            extra={"body_preview": str(body)[:200]},
        )
        raise


def lambda_handler(event, context):
    method = _method(event)
    logger.info(
        "send_sms_http.lambda_start",
        extra={
            "request_id": getattr(context, "aws_request_id", None),
            "method": method,
        },
    )

    # Preflight
    if method == "OPTIONS":
        return _response(204)

    if method != "POST":
        return _response(405, {"success": False, "message": "Method not allowed"})

    try:
        payload = _parse_body(event)
    except ValueError:
        return _response(400, {"success": False, "message": "Invalid JSON body"})

    result = dispatch_sms(payload, settings, gateway)

    logger.info("send_sms_http.lambda_done", extra={"outcome": result.kind})
    return _response(STATUS_BY_OUTCOME[result.kind], result.body)
