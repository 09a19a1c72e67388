# keystore_core/storage/providers/dynamodb_provider.py
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, Optional

from keystore_core.errors import BackendError, KeyRecordDecodeError
from keystore_core.logger import get_logger
from keystore_core.storage.models import InsertResult, KeyMaterial, KeyRecord
from keystore_core.storage.provider import DurableStore

log = get_logger("keystore.storage.dynamodb")

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def _encode_attr(material: KeyMaterial) -> Dict[str, Any]:
    if isinstance(material, str):
        return {"S": material}
    return {"B": material}


def _decode_attr(attr: Dict[str, Any]) -> KeyMaterial:
    if "S" in attr:
        return attr["S"]
    if "B" in attr:
        return attr["B"]
    raise ValueError(f"unsupported key material attribute {sorted(attr)}")


class DynamoDBDurableStore(DurableStore):
    """
    DynamoDB binding.

    • Table partition key: ``id`` (S)
    • Item: {"id": {"S": id}, "keys": {"M": {name: {"S": text} | {"B": bytes}}}}
    • Reads use ConsistentRead; writes use attribute_not_exists(id)

    Calls made with a ``timeout`` run on a pool of ``max_workers`` threads.
    A call that times out keeps its worker until the SDK gives up on it, so a
    hung backend can fill the pool; later calls then queue and time out
    without being sent. Size ``max_workers`` to the number of concurrent
    callers expected (KEYSTORE_BACKEND_MAX_WORKERS).

    ``client`` may be injected (tests pass a stubbed client); otherwise one is
    built from region/endpoint_url. boto3 is only needed in the latter case.
    """

    name = "dynamodb"

    def __init__(
        self,
        table_name: str = "encrypted-data-keys",
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
        max_workers: int = 8,
    ):
        self.table_name = table_name
        if client is None:
            import boto3

            client = boto3.client("dynamodb", region_name=region, endpoint_url=endpoint_url)
            log.info(f"[DYNAMODB] client ready table={table_name} region={region}")
        self.client = client
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    # ---------------------------
    # Call plumbing
    # ---------------------------
    def _call(self, fn: Callable[..., Dict[str, Any]], timeout: Optional[float], **kwargs) -> Dict[str, Any]:
        """
        Run a client call. With a timeout, the call runs on a worker thread and
        the caller stops waiting when it expires; the request itself may still
        complete server-side.
        """
        if timeout is None:
            return fn(**kwargs)
        if timeout <= 0:
            raise BackendError("deadline exceeded")
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="dynamodb")
        future = self._executor.submit(fn, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise BackendError(f"deadline exceeded after {timeout}s") from e

    @staticmethod
    def _error_code(err: Exception) -> str:
        response = getattr(err, "response", None) or {}
        return response.get("Error", {}).get("Code", "")

    # ---------------------------
    # Item codec
    # ---------------------------
    @staticmethod
    def encode_item(record: KeyRecord) -> Dict[str, Any]:
        return {
            "id": {"S": record.id},
            "keys": {"M": {name: _encode_attr(material) for name, material in record.keys.items()}},
        }

    @staticmethod
    def decode_item(item: Dict[str, Any]) -> KeyRecord:
        try:
            keys = {name: _decode_attr(attr) for name, attr in item["keys"]["M"].items()}
            return KeyRecord(id=item["id"]["S"], keys=keys)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise KeyRecordDecodeError(f"malformed dynamodb item: {e}") from e

    # ---------------------------
    # DurableStore
    # ---------------------------
    def get_consistent(self, id: str, timeout: Optional[float] = None) -> Optional[KeyRecord]:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            result = self._call(
                self.client.get_item,
                timeout,
                TableName=self.table_name,
                Key={"id": {"S": id}},
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise BackendError(f"dynamodb get_item failed for {id}: {e}") from e

        item = result.get("Item")
        if item is None:
            return None
        return self.decode_item(item)

    def insert_if_absent(self, record: KeyRecord, timeout: Optional[float] = None) -> InsertResult:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._call(
                self.client.put_item,
                timeout,
                TableName=self.table_name,
                Item=self.encode_item(record),
                ConditionExpression="attribute_not_exists(id)",
            )
        except ClientError as e:
            if self._error_code(e) == CONDITIONAL_CHECK_FAILED:
                return InsertResult.ALREADY_EXISTS
            raise BackendError(f"dynamodb put_item failed for {record.id}: {e}") from e
        except BotoCoreError as e:
            raise BackendError(f"dynamodb put_item failed for {record.id}: {e}") from e
        return InsertResult.CREATED

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
