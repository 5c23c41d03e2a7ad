from sms_relay.logger import get_logger
from sms_relay.records import RecordStore, StaleStatus, now_ms
from sms_relay.secrets import load_settings

logger = get_logger("sweep_queue")

INTERRUPTED_MESSAGE = "Processing interrupted"
INTERRUPTED_CODE = "PROCESSING_TIMEOUT"

settings = load_settings()
store = RecordStore.from_settings(settings)


def sweep(store: RecordStore, stale_after_seconds: int) -> int:
    """
    Fail records left in `processing` by a worker that died between its two
    writes. Nothing is re-sent. Returns how many records were moved.
    """
    cutoff = now_ms() - stale_after_seconds * 1000
    swept = 0

    for item in store.find_stale_processing(cutoff):
        record_id = item["id"]
        try:
            store.mark_failed(record_id, INTERRUPTED_MESSAGE, INTERRUPTED_CODE)
        except StaleStatus:
            # Finished in the meantime
            continue

        logger.warning(
            "sweep_queue.failed_stale",
            extra={"record_id": record_id, "processing_at": item.get("processingAt")},
        )
        swept += 1

    return swept


def lambda_handler(event, context):
    swept = sweep(store, settings.stale_processing_seconds)
    logger.info("sweep_queue.done", extra={"swept": swept})
    return {"swept": swept}
