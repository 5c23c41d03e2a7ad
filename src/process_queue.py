from typing import Any, Dict, Optional

from sms_relay.dispatch import NOT_CONFIGURED_MESSAGE
from sms_relay.logger import get_logger
from sms_relay.records import PENDING, RecordStore, StaleStatus, deserialize_image
from sms_relay.secrets import load_settings
from sms_relay.twilio_client import SmsGateway, build_client
from sms_relay.validation import is_message_text

logger = get_logger("process_queue")

INVALID_DATA_MESSAGE = "Invalid data"

# Built once per container
settings = load_settings()
gateway = build_client(settings)
store = RecordStore.from_settings(settings)


def process_record(
    record_id: str,
    data: Dict[str, Any],
    store: RecordStore,
    gateway: Optional[SmsGateway],
) -> bool:
    """
    Drive one newly created queue record through its lifecycle:
    pending -> processing -> completed | failed.

    Returns False when the record was skipped because it was not pending.
    A failed send is a handled record, not an error.
    """
    if data.get("status") != PENDING:
        logger.info(
            "process_queue.skip_not_pending",
            extra={"record_id": record_id, "status": data.get("status")},
        )
        return False

    phone_number = data.get("phoneNumber")
    text = data.get("message")

    try:
        if not phone_number or not is_message_text(text):
            logger.error("process_queue.invalid_data", extra={"record_id": record_id})
            store.mark_failed(record_id, INVALID_DATA_MESSAGE, expected_status=PENDING)
            return True

        if gateway is None:
            logger.error("process_queue.not_configured", extra={"record_id": record_id})
            store.mark_failed(record_id, NOT_CONFIGURED_MESSAGE, expected_status=PENDING)
            return True

        # Visible to observers before the send starts
        store.mark_processing(record_id)
    except StaleStatus:
        logger.info("process_queue.already_claimed", extra={"record_id": record_id})
        return False

    outcome = gateway.send(phone_number, text)

    if outcome.ok:
        try:
            store.mark_completed(record_id, outcome.sid)
        except Exception:
            # The SMS went out; the sweep will later mark this record failed.
            logger.exception(
                "process_queue.completed_not_recorded",
                extra={"record_id": record_id, "sid": outcome.sid},
            )
            return True
        logger.info(
            "process_queue.completed",
            extra={"record_id": record_id, "sid": outcome.sid},
        )
    else:
        store.mark_failed(record_id, outcome.message, outcome.error_code)
        logger.warning(
            "process_queue.failed",
            extra={"record_id": record_id, "error_code": outcome.error_code},
        )

    return True


def lambda_handler(event, context):
    records = event.get("Records", [])
    logger.info("process_queue.lambda_start", extra={"record_count": len(records)})

    processed = 0
    skipped = 0

    for rec in records:
        # Only creations are triggers; our own updates come back as MODIFY.
        if rec.get("eventName") != "INSERT":
            continue

        change = rec.get("dynamodb", {})
        image = change.get("NewImage")
        if not image:
            logger.warning(
                "process_queue.missing_new_image",
                extra={"event_id": rec.get("eventID")},
            )
            skipped += 1
            continue

        data = deserialize_image(image)
        record_id = data.get("id") or deserialize_image(change.get("Keys", {})).get("id")

        try:
            handled = process_record(record_id, data, store, gateway)
        except Exception:
            # Store failure; leave the rest of the batch unaffected.
            logger.exception("process_queue.record_error", extra={"record_id": record_id})
            skipped += 1
            continue

        if handled:
            processed += 1
        else:
            skipped += 1

    logger.info(
        "process_queue.lambda_done",
        extra={"processed": processed, "skipped": skipped},
    )
    return {"processed": processed, "skipped": skipped}
