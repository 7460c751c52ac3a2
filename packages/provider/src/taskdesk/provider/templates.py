"""邮件模板 -- 任务指派 / 状态变更通知

HTML 模板开启 autoescape（标题、描述是用户输入），纯文本模板不转义。
"""

from jinja2 import BaseLoader, Environment, StrictUndefined

from taskdesk.core.models import Task, TaskStatus

from .models import NotificationMessage

_html_env = Environment(loader=BaseLoader(), autoescape=True, undefined=StrictUndefined)
_text_env = Environment(loader=BaseLoader(), autoescape=False, undefined=StrictUndefined)

_FOOTER_HTML = """
<div class="footer">
  <p>{{ app_name }}</p>
  <p>This is an automated notification. Please do not reply to this email.</p>
</div>
"""

_ASSIGNED_HTML = _html_env.from_string(
    """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h1>New Task Assigned</h1>
  <p>Hello,</p>
  <p>You have been assigned a new task. Here are the details:</p>
  <table>
    <tr><th align="left">Task Title</th><td><strong>{{ task.title }}</strong></td></tr>
    <tr><th align="left">Description</th><td>{{ task.description or "No description provided" }}</td></tr>
    <tr><th align="left">Priority</th><td class="priority-{{ task.priority.value | lower }}">{{ task.priority.value }}</td></tr>
    <tr><th align="left">Due Date</th><td>{{ task.due_date or "Not set" }}</td></tr>
    <tr><th align="left">Assigned By</th><td>{{ assigner_name }}</td></tr>
  </table>
  <p>Please log in to the {{ app_name }} to view more details and start working on this task.</p>
"""
    + _FOOTER_HTML
    + """</body>
</html>
"""
)

_ASSIGNED_TEXT = _text_env.from_string(
    """New Task Assigned

Hello,

You have been assigned a new task:

Task: {{ task.title }}
Description: {{ task.description or "No description provided" }}
Priority: {{ task.priority.value }}
Due Date: {{ task.due_date or "Not set" }}
Assigned By: {{ assigner_name }}

Please log in to the {{ app_name }} to view more details.

{{ app_name }}
"""
)

_STATUS_HTML = _html_env.from_string(
    """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h1>Task Status Updated</h1>
  <p>Hello,</p>
  <p>The status of a task you're involved with has been updated:</p>
  <div class="status-change">
    <div class="task-title"><strong>{{ task.title }}</strong></div>
    <div>
      <span class="status old-status" style="text-decoration: line-through;">{{ old_status.value }}</span>
      <span class="arrow">&rarr;</span>
      <span class="status new-status">{{ new_status.value }}</span>
    </div>
    <div class="updater">Updated by: {{ updater_name }}</div>
  </div>
  <p>Please log in to the {{ app_name }} to view more details.</p>
"""
    + _FOOTER_HTML
    + """</body>
</html>
"""
)

_STATUS_TEXT = _text_env.from_string(
    """Task Status Updated

Hello,

The status of a task you're involved with has been updated:

Task: {{ task.title }}
Previous Status: {{ old_status.value }}
New Status: {{ new_status.value }}
Updated By: {{ updater_name }}

Please log in to the {{ app_name }} to view more details.

{{ app_name }}
"""
)


def render_assignment_email(
    to_email: str,
    task: Task,
    assigner_name: str,
    app_name: str,
) -> NotificationMessage:
    """渲染 "Task Assigned" 邮件"""
    context = {"task": task, "assigner_name": assigner_name, "app_name": app_name}
    return NotificationMessage(
        to_email=to_email,
        subject=f"Task Assigned: {task.title}",
        body_html=_ASSIGNED_HTML.render(**context),
        body_text=_ASSIGNED_TEXT.render(**context),
    )


def render_status_email(
    to_email: str,
    task: Task,
    old_status: TaskStatus,
    new_status: TaskStatus,
    updater_name: str,
    app_name: str,
) -> NotificationMessage:
    """渲染 "Task Status Updated" 邮件"""
    context = {
        "task": task,
        "old_status": old_status,
        "new_status": new_status,
        "updater_name": updater_name,
        "app_name": app_name,
    }
    return NotificationMessage(
        to_email=to_email,
        subject=f"Task Status Updated: {task.title}",
        body_html=_STATUS_HTML.render(**context),
        body_text=_STATUS_TEXT.render(**context),
    )
