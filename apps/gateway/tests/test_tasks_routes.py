"""任务 CRUD 路由测试

覆盖：
1. POST /tasks 创建（Admin only、标题/优先级校验）
2. GET /tasks 列表可见范围、状态筛选、limit
3. GET /tasks/{id} 读取授权
4. PUT /tasks/{id} 字段白名单更新
5. DELETE /tasks/{id}
"""

import pytest


class TestCreateTask:
    async def test_admin_creates_task(self, client, admin_headers):
        resp = await client.post(
            "/tasks",
            json={
                "title": "Ship v1",
                "description": "cut the release",
                "priority": "HIGH",
                "dueDate": "2026-05-01",
                "tags": ["release"],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Task created successfully"

        task = body["task"]
        assert task["title"] == "Ship v1"
        assert task["status"] == "OPEN"
        assert task["priority"] == "HIGH"
        assert task["dueDate"] == "2026-05-01"
        assert task["assignedMembers"] == []
        assert task["createdBy"] == "u-admin"
        assert task["createdByName"] == "Ada Admin"
        assert [e["action"] for e in task["activityLog"]] == ["TASK_CREATED"]

    async def test_blank_due_date_from_form(self, client, admin_headers):
        """表单未选日期时提交 dueDate: ''"""
        resp = await client.post(
            "/tasks",
            json={"title": "Ship v1", "priority": "MEDIUM", "dueDate": ""},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["task"]["dueDate"] is None

    async def test_priority_defaults_to_medium(self, client, admin_headers):
        resp = await client.post("/tasks", json={"title": "x"}, headers=admin_headers)
        assert resp.json()["task"]["priority"] == "MEDIUM"

    async def test_member_forbidden(self, client, alice_headers):
        resp = await client.post("/tasks", json={"title": "x"}, headers=alice_headers)
        assert resp.status_code == 403
        assert resp.json() == {
            "code": "FORBIDDEN",
            "message": "Only admins can create tasks",
        }

    async def test_unauthenticated(self, client):
        resp = await client.post("/tasks", json={"title": "x"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "UNAUTHORIZED"

    @pytest.mark.parametrize("body", [{}, {"title": ""}, {"title": "   "}, None])
    async def test_title_required(self, client, admin_headers, body):
        resp = await client.post("/tasks", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "TITLE_REQUIRED"

    async def test_invalid_priority(self, client, admin_headers):
        resp = await client.post(
            "/tasks", json={"title": "x", "priority": "CRITICAL"}, headers=admin_headers
        )
        assert resp.status_code == 400
        error = resp.json()
        assert error["code"] == "INVALID_PRIORITY"
        assert error["details"]["validPriorities"] == ["LOW", "MEDIUM", "HIGH", "URGENT"]

    async def test_nothing_persisted_on_rejection(self, client, admin_headers, alice_headers):
        await client.post("/tasks", json={"title": "x"}, headers=alice_headers)
        resp = await client.get("/tasks", headers=admin_headers)
        assert resp.json()["count"] == 0


class TestListTasks:
    async def test_admin_sees_all(self, client, admin_headers, create_task):
        await create_task("one", members=["u-a"])
        await create_task("two")
        resp = await client.get("/tasks", headers=admin_headers)

        body = resp.json()
        assert resp.status_code == 200
        assert body["count"] == 2
        assert body["isAdmin"] is True
        # updatedAt 倒序
        assert [t["title"] for t in body["tasks"]] == ["two", "one"]

    async def test_member_sees_assigned_only(self, client, alice_headers, create_task):
        await create_task("mine", members=["u-a"])
        await create_task("theirs", members=["u-b"])
        await create_task("nobody")

        body = (await client.get("/tasks", headers=alice_headers)).json()
        assert body["isAdmin"] is False
        assert [t["title"] for t in body["tasks"]] == ["mine"]

    async def test_status_filter(self, client, admin_headers, alice_headers, create_task):
        done = await create_task("done", members=["u-a"])
        await create_task("open", members=["u-a"])
        await client.put(
            f"/tasks/{done['taskId']}/status", json={"status": "COMPLETED"}, headers=alice_headers
        )

        for headers in (admin_headers, alice_headers):
            body = (await client.get("/tasks?status=COMPLETED", headers=headers)).json()
            assert [t["title"] for t in body["tasks"]] == ["done"]

    async def test_invalid_status_filter(self, client, admin_headers):
        resp = await client.get("/tasks?status=DONE", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_STATUS"

    async def test_limit(self, client, admin_headers, create_task):
        for i in range(3):
            await create_task(f"t{i}")
        body = (await client.get("/tasks?limit=2", headers=admin_headers)).json()
        assert body["count"] == 2

    @pytest.mark.parametrize("limit", ["0", "501", "abc"])
    async def test_limit_out_of_range(self, client, admin_headers, limit):
        resp = await client.get(f"/tasks?limit={limit}", headers=admin_headers)
        assert resp.status_code == 400
        error = resp.json()
        assert error["code"] == "INVALID_REQUEST"
        assert error["details"]["fields"] == ["query.limit"]

    async def test_unauthenticated(self, client):
        assert (await client.get("/tasks")).status_code == 401


class TestGetTask:
    async def test_admin_reads(self, client, admin_headers, create_task):
        task = await create_task()
        resp = await client.get(f"/tasks/{task['taskId']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["task"]["taskId"] == task["taskId"]

    async def test_assigned_member_reads(self, client, alice_headers, create_task):
        task = await create_task(members=["u-a"])
        resp = await client.get(f"/tasks/{task['taskId']}", headers=alice_headers)
        assert resp.status_code == 200

    async def test_unassigned_member_forbidden(self, client, bob_headers, create_task):
        task = await create_task(members=["u-a"])
        resp = await client.get(f"/tasks/{task['taskId']}", headers=bob_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == "You are not assigned to this task"

    async def test_not_found(self, client, admin_headers):
        resp = await client.get("/tasks/missing", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {
            "code": "TASK_NOT_FOUND",
            "message": "Task with id missing does not exist",
        }


class TestUpdateTask:
    async def test_whitelisted_fields_only(self, client, admin_headers, create_task):
        task = await create_task("Old", members=["u-a"])
        resp = await client.put(
            f"/tasks/{task['taskId']}",
            json={
                "title": "New",
                "priority": "URGENT",
                "status": "CLOSED",
                "assignedMembers": [],
                "createdBy": "u-evil",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Task updated successfully"

        updated = body["task"]
        assert updated["title"] == "New"
        assert updated["priority"] == "URGENT"
        assert updated["status"] == "OPEN"
        assert updated["assignedMembers"] == ["u-a"]
        assert updated["createdBy"] == "u-admin"

        entry = updated["activityLog"][-1]
        assert entry["action"] == "TASK_UPDATED"
        assert entry["details"] == {
            "title": {"from": "Old", "to": "New"},
            "priority": {"from": "MEDIUM", "to": "URGENT"},
        }

    async def test_blank_due_date_clears_date(self, client, admin_headers, create_task):
        task = await create_task(dueDate="2026-05-01")
        resp = await client.put(
            f"/tasks/{task['taskId']}", json={"dueDate": ""}, headers=admin_headers
        )
        assert resp.status_code == 200
        updated = resp.json()["task"]
        assert updated["dueDate"] is None
        assert updated["activityLog"][-1]["details"] == {
            "dueDate": {"from": "2026-05-01", "to": None}
        }

    async def test_no_change_no_log_entry(self, client, admin_headers, create_task):
        task = await create_task("Same")
        resp = await client.put(
            f"/tasks/{task['taskId']}", json={"title": "Same"}, headers=admin_headers
        )
        assert resp.status_code == 200
        assert len(resp.json()["task"]["activityLog"]) == 1

    async def test_no_valid_fields(self, client, admin_headers, create_task):
        task = await create_task()
        resp = await client.put(
            f"/tasks/{task['taskId']}", json={"status": "CLOSED"}, headers=admin_headers
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "NO_VALID_FIELDS"

    async def test_member_forbidden_before_lookup(self, client, alice_headers):
        resp = await client.put("/tasks/missing", json={"title": "x"}, headers=alice_headers)
        assert resp.status_code == 403

    async def test_not_found(self, client, admin_headers):
        resp = await client.put("/tasks/missing", json={"title": "x"}, headers=admin_headers)
        assert resp.status_code == 404


class TestDeleteTask:
    async def test_admin_deletes(self, client, admin_headers, create_task):
        task = await create_task(members=["u-a"])
        resp = await client.delete(f"/tasks/{task['taskId']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"message": "Task deleted successfully", "taskId": task["taskId"]}

        resp = await client.get(f"/tasks/{task['taskId']}", headers=admin_headers)
        assert resp.status_code == 404

    async def test_member_forbidden(self, client, alice_headers, create_task):
        task = await create_task(members=["u-a"])
        resp = await client.delete(f"/tasks/{task['taskId']}", headers=alice_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == "Only admins can delete tasks"

    async def test_not_found(self, client, admin_headers):
        resp = await client.delete("/tasks/missing", headers=admin_headers)
        assert resp.status_code == 404
