"""数据模型 -- NotificationMessage + DispatchSummary"""

from pydantic import BaseModel, Field


class NotificationMessage(BaseModel):
    """一封待发送的通知邮件"""

    to_email: str = Field(description="收件地址")
    subject: str = Field(description="主题")
    body_html: str = Field(default="", description="HTML 正文")
    body_text: str = Field(default="", description="纯文本正文")


class DispatchSummary(BaseModel):
    """一次扇出的投递汇总

    sent: 发送成功数
    failed: 通道返回失败或抛出异常的数量
    skipped: 无法解析邮箱而跳过的收件人数量
    """

    sent: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.sent + self.failed + self.skipped
