import json
import os
from dataclasses import dataclass
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sms_relay.logger import get_logger

logger = get_logger("secrets")

DEFAULT_REGION = "us-east-1"
DEFAULT_QUEUE_TABLE = "smsQueue"
DEFAULT_STALE_PROCESSING_SECONDS = 900


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, built once per Lambda container and passed
    explicitly to whatever needs it.
    """

    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    aws_region: str = DEFAULT_REGION
    sms_queue_table: str = DEFAULT_QUEUE_TABLE
    stale_processing_seconds: int = DEFAULT_STALE_PROCESSING_SECONDS

    def missing_credentials(self) -> List[str]:
        return [
            name
            for name, value in [
                ("account_sid", self.twilio_account_sid),
                ("auth_token", self.twilio_auth_token),
                ("phone_number", self.twilio_phone_number),
            ]
            if not value
        ]

    @property
    def is_configured(self) -> bool:
        return not self.missing_credentials()


def get_twilio_secrets(secret_name: str, region_name: str) -> dict:
    """
    Fetch Twilio credentials from AWS Secrets Manager.

    Expects the secret value to be a JSON object, e.g.:

        {
          "account_sid": "...",
          "auth_token": "...",
          "phone_number": "+1..."
        }
    """
    logger.info(
        "secrets.fetch",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    resp = client.get_secret_value(SecretId=secret_name)
    secret_str = resp.get("SecretString")

    if not secret_str:
        raise RuntimeError(f"Secret '{secret_name}' has no SecretString payload")

    data = json.loads(secret_str)
    if not isinstance(data, dict):
        raise RuntimeError(f"Secret '{secret_name}' is not a JSON object")

    return data


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        msg = f"Invalid {name}='{raw}'. Must be an integer number of seconds."
        logger.error(msg)
        raise RuntimeError(msg)


def load_settings() -> Settings:
    """
    Build Settings from environment variables.

    TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN / TWILIO_PHONE_NUMBER give the
    credentials directly. When TWILIO_SECRET_NAME is set, the secret's
    values take precedence. A secret that can't be read leaves the
    credentials missing, which disables sending instead of failing the
    container at cold start.
    """
    region_name = os.getenv("AWS_REGION", DEFAULT_REGION)

    account_sid = os.getenv("TWILIO_ACCOUNT_SID")
    auth_token = os.getenv("TWILIO_AUTH_TOKEN")
    phone_number = os.getenv("TWILIO_PHONE_NUMBER")

    secret_name = os.getenv("TWILIO_SECRET_NAME")
    if secret_name:
        try:
            secrets = get_twilio_secrets(secret_name, region_name)
        except (BotoCoreError, ClientError, RuntimeError, json.JSONDecodeError) as e:
            logger.error(
                "secrets.fetch_failed",
                extra={"secret_name": secret_name, "error": str(e)},
            )
            account_sid = auth_token = phone_number = None
        else:
            account_sid = secrets.get("account_sid") or account_sid
            auth_token = secrets.get("auth_token") or auth_token
            phone_number = secrets.get("phone_number") or phone_number

    settings = Settings(
        twilio_account_sid=account_sid,
        twilio_auth_token=auth_token,
        twilio_phone_number=phone_number,
        aws_region=region_name,
        sms_queue_table=os.getenv("SMS_QUEUE_TABLE", DEFAULT_QUEUE_TABLE),
        stale_processing_seconds=_parse_int(
            "STALE_PROCESSING_SECONDS",
            os.getenv("STALE_PROCESSING_SECONDS", str(DEFAULT_STALE_PROCESSING_SECONDS)),
        ),
    )

    missing = settings.missing_credentials()
    if missing:
        logger.error("Missing Twilio settings", extra={"missing": missing})

    return settings
