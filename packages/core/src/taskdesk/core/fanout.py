"""通知扇出策略 -- 计算一次任务事件需要通知的用户集合

- 指派：只通知本次新增的成员（重复指派不重复发信）
- 状态变更：全部 Admin ∪ 指派成员 ∪ 创建者，去掉操作者本人

返回有序去重的 user id 列表，邮箱解析和发送由调用方负责。
"""

from collections.abc import Iterable

from .models.task import Task


def _ordered_unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(i for i in ids if i))


def assignment_recipients(
    previous_members: Iterable[str],
    requested_members: Iterable[str],
) -> list[str]:
    """本次指派真正新增的成员 = requested - previous"""
    previous = set(previous_members)
    return [m for m in _ordered_unique(requested_members) if m not in previous]


def status_change_recipients(
    task: Task,
    admin_ids: Iterable[str],
    actor_id: str,
) -> list[str]:
    """状态变更通知对象

    Args:
        task: 变更前读取的任务（指派成员与创建者）
        admin_ids: Admins 组内全部用户 id
        actor_id: 本次操作者，永远不通知自己

    Returns:
        有序去重的 user id 列表
    """
    candidates = [*admin_ids, *task.assigned_members, task.created_by]
    return [uid for uid in _ordered_unique(candidates) if uid != actor_id]
