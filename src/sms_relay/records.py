import time
from typing import Any, Dict, Iterable, Iterator, List, Optional

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeDeserializer
from botocore.exceptions import ClientError

from sms_relay.logger import get_logger
from sms_relay.secrets import Settings

logger = get_logger("records")

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

KEY_ATTR = "id"

# Sparse GSI (status, processingAt). processingAt only exists while a record
# is in flight, so terminal records drop out of the index.
PROCESSING_INDEX = "status-processingAt-index"

_deserializer = TypeDeserializer()


def now_ms() -> int:
    """Server timestamp: milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def deserialize_image(image: Dict[str, Any]) -> Dict[str, Any]:
    """Turn a DynamoDB Stream image ({"attr": {"S": "..."}}) into plain values."""
    return {k: _deserializer.deserialize(v) for k, v in image.items()}


class StaleStatus(Exception):
    """The stored status no longer matched what the update expected."""


class RecordStore:
    """
    SMS queue records in a DynamoDB table keyed by `id`.

    Every status change is a partial update conditioned on the status the
    caller expects to find, so two paths can never both move a record.
    """

    def __init__(self, table):
        self.table = table

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecordStore":
        dynamodb = boto3.resource("dynamodb", region_name=settings.aws_region)
        return cls(dynamodb.Table(settings.sms_queue_table))

    def update(
        self,
        record_id: str,
        fields: Dict[str, Any],
        expected_status: str,
        remove: Iterable[str] = (),
    ) -> None:
        names = {"#status": "status"}
        values: Dict[str, Any] = {":expected": expected_status}
        assignments = []
        for i, (name, value) in enumerate(fields.items()):
            names[f"#f{i}"] = name
            values[f":v{i}"] = value
            assignments.append(f"#f{i} = :v{i}")

        expression = "SET " + ", ".join(assignments)
        removals = []
        for i, name in enumerate(remove):
            names[f"#r{i}"] = name
            removals.append(f"#r{i}")
        if removals:
            expression += " REMOVE " + ", ".join(removals)

        try:
            self.table.update_item(
                Key={KEY_ATTR: record_id},
                UpdateExpression=expression,
                ConditionExpression="#status = :expected",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise StaleStatus(record_id) from e
            raise

    def mark_processing(self, record_id: str) -> None:
        self.update(
            record_id,
            {"status": PROCESSING, "processingAt": now_ms()},
            expected_status=PENDING,
        )

    def mark_completed(self, record_id: str, sid: str) -> None:
        self.update(
            record_id,
            {"status": COMPLETED, "twilioSid": sid, "completedAt": now_ms()},
            expected_status=PROCESSING,
            remove=["processingAt"],
        )

    def mark_failed(
        self,
        record_id: str,
        error: str,
        error_code: Optional[Any] = None,
        expected_status: str = PROCESSING,
    ) -> None:
        fields: Dict[str, Any] = {"status": FAILED, "error": error}
        if error_code is not None:
            fields["errorCode"] = error_code
        fields["failedAt"] = now_ms()
        self.update(
            record_id, fields, expected_status=expected_status, remove=["processingAt"]
        )

    def find_stale_processing(self, older_than_ms: int) -> Iterator[Dict[str, Any]]:
        """Yield records stuck in `processing` since before `older_than_ms`."""
        kwargs: Dict[str, Any] = {
            "IndexName": PROCESSING_INDEX,
            "KeyConditionExpression": Key("status").eq(PROCESSING)
            & Key("processingAt").lt(older_than_ms),
        }
        while True:
            resp = self.table.query(**kwargs)
            items: List[Dict[str, Any]] = resp.get("Items", [])
            yield from items

            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return
            kwargs["ExclusiveStartKey"] = last_key
