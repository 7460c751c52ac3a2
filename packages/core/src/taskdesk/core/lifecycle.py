"""任务生命周期 -- 创建、字段更新白名单、状态流转与成员指派

所有函数都是纯函数：基于当前 Task 与请求者计算出要写入的字段和活动日志条目，
不接触存储。写入与通知由 gateway 的 TaskService 负责。
"""

from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from .exceptions import InvalidRequestError
from .fanout import assignment_recipients
from .models.draft import TaskDraft
from .models.enums import (
    ActivityAction,
    TaskPriority,
    TaskStatus,
    validate_transition,
)
from .models.payloads import (
    FieldChange,
    MembersAssignedDetails,
    StatusChangedDetails,
    TaskCreatedDetails,
)
from .models.task import ActivityLogEntry, StatusUpdate, Task
from .models.user import Caller

# 请求体字段名 -> Task 字段名；不在表中的字段一律忽略
UPDATABLE_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "dueDate": "due_date",
    "tags": "tags",
}

VALID_STATUSES = [s.value for s in TaskStatus]
VALID_PRIORITIES = [p.value for p in TaskPriority]

_DATE = TypeAdapter(date | None)
_TAGS = TypeAdapter(list[str])


class StatusChange(BaseModel):
    """状态流转计划"""

    previous_status: TaskStatus
    new_status: TaskStatus
    fields: dict[str, Any] = Field(description="待写入字段（Task 字段名）")
    entry: ActivityLogEntry


class FieldUpdate(BaseModel):
    """字段更新计划

    fields 包含全部被接受的字段（即使值未变）；
    entry 仅在至少一个字段值实际变化时存在。
    """

    fields: dict[str, Any]
    changes: dict[str, FieldChange] = Field(default_factory=dict)
    entry: ActivityLogEntry | None = None


class Assignment(BaseModel):
    """成员指派计划"""

    new_members: list[str]
    all_members: list[str]
    entry: ActivityLogEntry


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


def _entry(
    action: ActivityAction,
    caller: Caller,
    details: dict[str, Any],
    now: datetime,
) -> ActivityLogEntry:
    return ActivityLogEntry(
        id=str(ULID()),
        timestamp=now,
        action=action,
        user_id=caller.user_id,
        user_name=caller.display_name,
        details=details,
    )


def parse_draft(payload: dict[str, Any]) -> TaskDraft:
    """校验创建请求体

    Raises:
        InvalidRequestError: 优先级非法（附带合法取值）或其他字段类型错误
    """
    if payload.get("priority") is not None:
        _coerce_field("priority", payload["priority"])
    try:
        return TaskDraft.model_validate(payload)
    except PydanticValidationError as exc:
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise InvalidRequestError(
            "Invalid task payload",
            code="INVALID_REQUEST",
            details={"fields": fields},
        ) from None


def new_task(
    caller: Caller,
    draft: TaskDraft,
    now: datetime | None = None,
    task_id: str | None = None,
) -> Task:
    """按草稿构建新任务

    状态强制为 OPEN，指派成员为空，优先级缺省 MEDIUM。

    Raises:
        InvalidRequestError: 标题为空
    """
    title = (draft.title or "").strip()
    if not title:
        raise InvalidRequestError("Task title is required", code="TITLE_REQUIRED")

    ts = _now(now)
    priority = draft.priority or TaskPriority.MEDIUM
    return Task(
        task_id=task_id or str(ULID()),
        title=title,
        description=draft.description or "",
        status=TaskStatus.OPEN,
        priority=priority,
        created_by=caller.user_id,
        created_by_email=caller.email,
        created_by_name=caller.display_name,
        due_date=draft.due_date,
        assigned_members=[],
        tags=list(draft.tags or []),
        created_at=ts,
        updated_at=ts,
        activity_log=[
            _entry(
                ActivityAction.TASK_CREATED,
                caller,
                TaskCreatedDetails(title=title, priority=priority).dump(),
                ts,
            )
        ],
    )


def parse_status(value: Any) -> TaskStatus:
    """解析请求中的目标状态

    Raises:
        InvalidRequestError: 缺失或不在枚举内，details 附带合法取值
    """
    try:
        return TaskStatus(value)
    except ValueError:
        raise InvalidRequestError(
            "Valid status is required",
            code="INVALID_STATUS",
            details={"validStatuses": VALID_STATUSES},
        ) from None


def plan_status_change(
    task: Task,
    new_status: TaskStatus,
    caller: Caller,
    now: datetime | None = None,
) -> StatusChange:
    """计算状态流转

    Raises:
        InvalidRequestError: 目标状态与当前状态相同
    """
    if not validate_transition(task.status, new_status):
        raise InvalidRequestError(
            "Task already has this status",
            code="STATUS_UNCHANGED",
            details={"status": task.status.value},
        )

    ts = _now(now)
    last_update = StatusUpdate(
        from_status=task.status,
        to_status=new_status,
        updated_by=caller.user_id,
        updated_by_name=caller.display_name,
        updated_at=ts,
    )
    details = StatusChangedDetails(from_status=task.status, to_status=new_status)
    return StatusChange(
        previous_status=task.status,
        new_status=new_status,
        fields={"status": new_status, "last_status_update": last_update},
        entry=_entry(ActivityAction.STATUS_CHANGED, caller, details.dump(), ts),
    )


def plan_field_update(
    task: Task,
    payload: dict[str, Any],
    caller: Caller,
    now: datetime | None = None,
) -> FieldUpdate:
    """按白名单计算字段更新

    只接受 title / description / priority / dueDate / tags，其余字段静默忽略。
    任何字段校验失败都在写入前抛出。

    Raises:
        InvalidRequestError: 无可更新字段，或字段取值非法
    """
    submitted = {
        field: payload[key] for key, field in UPDATABLE_FIELDS.items() if key in payload
    }
    if not submitted:
        raise InvalidRequestError("No valid fields to update", code="NO_VALID_FIELDS")

    fields = {name: _coerce_field(name, value) for name, value in submitted.items()}

    changes: dict[str, FieldChange] = {}
    for name, value in fields.items():
        current = getattr(task, name)
        if current != value:
            changes[_wire_name(name)] = FieldChange(from_value=current, to_value=value)

    entry = None
    if changes:
        details = {key: change.dump() for key, change in changes.items()}
        entry = _entry(ActivityAction.TASK_UPDATED, caller, details, _now(now))
    return FieldUpdate(fields=fields, changes=changes, entry=entry)


def plan_assignment(
    task: Task,
    member_ids: Any,
    caller: Caller,
    now: datetime | None = None,
) -> Assignment:
    """计算成员指派

    Raises:
        InvalidRequestError: member_ids 缺失/为空，或全部成员已被指派
    """
    if (
        not isinstance(member_ids, list)
        or not member_ids
        or not all(isinstance(m, str) and m for m in member_ids)
    ):
        raise InvalidRequestError(
            "memberIds array is required", code="MEMBER_IDS_REQUIRED"
        )

    new_members = assignment_recipients(task.assigned_members, member_ids)
    if not new_members:
        raise InvalidRequestError(
            "All members are already assigned to this task", code="NO_NEW_MEMBERS"
        )

    details = MembersAssignedDetails(members=new_members).dump()
    return Assignment(
        new_members=new_members,
        all_members=[*task.assigned_members, *new_members],
        entry=_entry(ActivityAction.MEMBERS_ASSIGNED, caller, details, _now(now)),
    )


def _wire_name(field: str) -> str:
    return Task.model_fields[field].alias or field


def _coerce_field(name: str, value: Any) -> Any:
    """校验并规范化单个可更新字段"""
    if name == "priority":
        try:
            return TaskPriority(value)
        except ValueError:
            raise InvalidRequestError(
                "Invalid priority",
                code="INVALID_PRIORITY",
                details={"validPriorities": VALID_PRIORITIES},
            ) from None

    if name == "title":
        if not isinstance(value, str) or not value.strip():
            raise InvalidRequestError("Task title must not be empty", code="INVALID_TITLE")
        return value.strip()

    if name == "description":
        if value is None:
            return ""
        if not isinstance(value, str):
            raise InvalidRequestError("description must be a string", code="INVALID_DESCRIPTION")
        return value

    try:
        if name == "due_date":
            if isinstance(value, str) and not value.strip():
                return None
            return _DATE.validate_python(value)
        return _TAGS.validate_python(value or [])
    except PydanticValidationError:
        raise InvalidRequestError(
            f"Invalid value for {_wire_name(name)}",
            code=f"INVALID_{name.upper()}",
        ) from None
