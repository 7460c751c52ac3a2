"""Provider 异常体系"""


class ProviderError(Exception):
    """Provider 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class DirectoryUnavailableError(ProviderError):
    """用户目录服务不可达或报错（网络、权限、限流等）"""

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 调用的目录操作（如 list_users）
            original_error: 原始异常
        """
        super().__init__(
            f"用户目录调用失败: {operation} -- {original_error}",
            recoverable=True,
        )
        self.operation = operation
        self.original_error = original_error


class ProviderConfigError(ProviderError):
    """Provider 配置缺失（如 aws 模式下没有 User Pool ID）"""

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=False)
