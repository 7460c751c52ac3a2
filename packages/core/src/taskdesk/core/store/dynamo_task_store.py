"""TaskStore DynamoDB 实现

表结构：partition key = taskId；GSI StatusIndex(status, updatedAt)、
CreatedByIndex(createdBy, updatedAt)。按指派成员查询没有索引，
使用 contains(assignedMembers) 的分页 scan。

boto3 是同步 SDK，所有调用通过 asyncio.to_thread 执行。
"""

import asyncio
from datetime import UTC, datetime
from functools import partial
from typing import Any

import boto3
import structlog
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError
from pydantic_core import to_jsonable_python

from ..exceptions import DependencyFailureError, TaskAlreadyExistsError, TaskNotFoundError
from ..models.enums import TaskStatus
from ..models.task import ActivityLogEntry, Task

log = structlog.get_logger()

STATUS_INDEX = "StatusIndex"
CREATED_BY_INDEX = "CreatedByIndex"

_CONDITION_FAILED = "ConditionalCheckFailedException"


def _to_item(task: Task) -> dict[str, Any]:
    """序列化为 DynamoDB item（省略 None 属性）"""
    return {k: v for k, v in task.dump().items() if v is not None}


def _wire_name(field: str) -> str:
    return Task.model_fields[field].alias or field


def _now_iso() -> str:
    # 与 Task.dump() 的时间格式一致
    return to_jsonable_python(datetime.now(UTC))


def _newest_first(tasks: list[Task], limit: int) -> list[Task]:
    return sorted(tasks, key=lambda t: t.updated_at, reverse=True)[:limit]


class DynamoTaskStore:
    """TaskStore 的 DynamoDB 实现"""

    def __init__(
        self,
        table_name: str,
        region_name: str | None = None,
        table: Any | None = None,
    ) -> None:
        """
        Args:
            table_name: 任务表名
            region_name: AWS 区域
            table: 预先构造的 boto3 Table（测试注入）
        """
        self._table_name = table_name
        self._table = table or boto3.resource(
            "dynamodb", region_name=region_name
        ).Table(table_name)

    @property
    def table(self) -> Any:
        return self._table

    async def _call(self, method: str, **kwargs: Any) -> dict[str, Any]:
        """在线程中执行 Table 方法，SDK 异常转换为 DependencyFailureError

        ConditionalCheckFailedException 原样抛出，由调用方解释。
        """
        fn = partial(getattr(self._table, method), **kwargs)
        try:
            return await asyncio.to_thread(fn)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == _CONDITION_FAILED:
                raise
            log.error("dynamodb_call_failed", method=method, error=str(exc))
            raise DependencyFailureError("task_store", exc) from exc
        except BotoCoreError as exc:
            log.error("dynamodb_call_failed", method=method, error=str(exc))
            raise DependencyFailureError("task_store", exc) from exc

    async def put_task(self, task: Task) -> Task:
        """条件创建：attribute_not_exists(taskId)"""
        try:
            await self._call(
                "put_item",
                Item=_to_item(task),
                ConditionExpression="attribute_not_exists(taskId)",
            )
        except ClientError:
            raise TaskAlreadyExistsError(task.task_id) from None
        return task

    async def get_task(self, task_id: str) -> Task | None:
        result = await self._call("get_item", Key={"taskId": task_id})
        item = result.get("Item")
        return Task.model_validate(item) if item else None

    async def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> Task:
        """SET 合并更新，仅当任务存在时生效"""
        names: dict[str, str] = {"#updatedAt": "updatedAt"}
        values: dict[str, Any] = {":updatedAt": _now_iso()}
        clauses = ["#updatedAt = :updatedAt"]
        for i, (name, value) in enumerate(fields.items()):
            names[f"#f{i}"] = _wire_name(name)
            values[f":v{i}"] = to_jsonable_python(value, by_alias=True)
            clauses.append(f"#f{i} = :v{i}")

        try:
            result = await self._call(
                "update_item",
                Key={"taskId": task_id},
                UpdateExpression="SET " + ", ".join(clauses),
                ConditionExpression="attribute_exists(taskId)",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError:
            raise TaskNotFoundError(task_id) from None
        return Task.model_validate(result["Attributes"])

    async def append_activity_log_entry(
        self,
        task_id: str,
        entry: ActivityLogEntry,
    ) -> ActivityLogEntry:
        """list_append 原子追加"""
        try:
            await self._call(
                "update_item",
                Key={"taskId": task_id},
                UpdateExpression=(
                    "SET activityLog = list_append(if_not_exists(activityLog, :empty), :entry), "
                    "updatedAt = :updatedAt"
                ),
                ConditionExpression="attribute_exists(taskId)",
                ExpressionAttributeValues={
                    ":empty": [],
                    ":entry": [entry.dump()],
                    ":updatedAt": _now_iso(),
                },
            )
        except ClientError:
            raise TaskNotFoundError(task_id) from None
        return entry

    async def delete_task(self, task_id: str) -> None:
        await self._call("delete_item", Key={"taskId": task_id})

    async def list_tasks_by_status(self, status: TaskStatus, limit: int) -> list[Task]:
        result = await self._call(
            "query",
            IndexName=STATUS_INDEX,
            KeyConditionExpression=Key("status").eq(TaskStatus(status).value),
            Limit=limit,
            ScanIndexForward=False,
        )
        return _newest_first([Task.model_validate(i) for i in result.get("Items", [])], limit)

    async def list_tasks_created_by(self, user_id: str, limit: int) -> list[Task]:
        result = await self._call(
            "query",
            IndexName=CREATED_BY_INDEX,
            KeyConditionExpression=Key("createdBy").eq(user_id),
            Limit=limit,
            ScanIndexForward=False,
        )
        return _newest_first([Task.model_validate(i) for i in result.get("Items", [])], limit)

    async def list_tasks_for_assignee(self, user_id: str, limit: int) -> list[Task]:
        items = await self._scan_all(FilterExpression=Attr("assignedMembers").contains(user_id))
        return _newest_first([Task.model_validate(i) for i in items], limit)

    async def list_all_tasks(self, limit: int) -> list[Task]:
        items = await self._scan_all()
        return _newest_first([Task.model_validate(i) for i in items], limit)

    async def _scan_all(self, **kwargs: Any) -> list[dict[str, Any]]:
        """跟随 LastEvaluatedKey 扫描全部分页"""
        items: list[dict[str, Any]] = []
        while True:
            result = await self._call("scan", **kwargs)
            items.extend(result.get("Items", []))
            last_key = result.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    async def ping(self) -> None:
        client = self._table.meta.client
        try:
            await asyncio.to_thread(client.describe_table, TableName=self._table_name)
        except (ClientError, BotoCoreError) as exc:
            raise DependencyFailureError("task_store", exc) from exc

    async def close(self) -> None:
        """boto3 客户端无需显式关闭"""
