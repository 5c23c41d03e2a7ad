"""
SMS Relay
=========

Shared modules for the AWS-native SMS relay. The relay validates a phone
number and message, forwards them to Twilio, and reports the outcome.

Lambda entry points (one module each, at the code root):
- send_sms.py        → direct invocation, returns a result object
- send_sms_http.py   → HTTP endpoint (POST /sms, CORS enabled)
- process_queue.py   → DynamoDB Stream trigger for the SMS queue table
- sweep_queue.py     → scheduled reconciliation of stuck queue records
- health.py          → health check (/healthz)

Modules under this package:
- logger.py          → structured JSON logging
- secrets.py         → Settings from environment / Secrets Manager
- validation.py      → E.164 and required-field checks
- twilio_client.py   → Twilio gateway and error-code mapping
- dispatch.py        → shared send path for direct and HTTP calls
- records.py         → DynamoDB queue records and status transitions

Environment variables expected:
  • AWS_REGION                 - AWS region for all resources
  • TWILIO_ACCOUNT_SID         - Twilio account identifier
  • TWILIO_AUTH_TOKEN          - Twilio auth secret
  • TWILIO_PHONE_NUMBER        - Sender number (E.164)
  • TWILIO_SECRET_NAME         - Secrets Manager secret overriding the three above (optional)
  • SMS_QUEUE_TABLE            - DynamoDB table holding queue records
  • STALE_PROCESSING_SECONDS   - Age after which a processing record is swept
  • LOG_LEVEL                  - Log verbosity (default: INFO)
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
