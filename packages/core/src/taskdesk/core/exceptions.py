"""TaskDesk 核心异常体系

每个异常携带机器可读的 code 与可选 details，由 gateway 映射为 HTTP 状态码：
UnauthenticatedError -> 401, AccessDeniedError -> 403, InvalidRequestError -> 400,
TaskNotFoundError -> 404, DependencyFailureError -> 500。
"""

from typing import Any


class TaskDeskError(Exception):
    """核心层基础异常"""

    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Args:
            message: 错误描述（可直接返回给客户端）
            code: 机器可读错误码，缺省使用类属性
            details: 附加的结构化信息（如合法取值列表）
        """
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}


class UnauthenticatedError(TaskDeskError):
    """无法解析请求者身份"""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class AccessDeniedError(TaskDeskError):
    """已认证但授权规则拒绝"""

    code = "FORBIDDEN"


class InvalidRequestError(TaskDeskError):
    """校验失败：缺少必填字段、非法枚举值、无效更新、无新增成员等"""

    code = "INVALID_REQUEST"


class TaskNotFoundError(TaskDeskError):
    """task_id 不存在"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class TaskAlreadyExistsError(TaskDeskError):
    """条件创建失败：task_id 已存在"""

    code = "TASK_ALREADY_EXISTS"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} already exists")
        self.task_id = task_id


class DependencyFailureError(TaskDeskError):
    """外部依赖（存储 / 目录服务）不可达或报错

    不在单次请求内自动重试，由调用方决定是否重试。
    """

    code = "DEPENDENCY_FAILURE"

    def __init__(self, dependency: str, original_error: Exception) -> None:
        """
        Args:
            dependency: 依赖名称（如 "task_store"、"user_directory"）
            original_error: 原始异常
        """
        super().__init__(f"{dependency} request failed: {type(original_error).__name__}")
        self.dependency = dependency
        self.original_error = original_error
