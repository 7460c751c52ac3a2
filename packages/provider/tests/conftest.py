"""Provider 包测试 fixtures"""

from collections.abc import Iterator

import boto3
import pytest
from botocore.stub import Stubber

from taskdesk.core.models import ADMIN_GROUP, MEMBER_GROUP
from taskdesk.provider import StaticDirectory


def _client(service: str):
    return boto3.client(
        service,
        region_name="eu-central-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def user_records() -> list[dict]:
    """本地目录种子数据"""
    return [
        {
            "userId": "u-admin",
            "email": "admin@example.com",
            "name": "Ada Admin",
            "groups": [ADMIN_GROUP],
        },
        {"userId": "u-a", "email": "a@example.com", "name": "Alice", "groups": [MEMBER_GROUP]},
        {"userId": "u-b", "email": "b@example.com", "groups": [MEMBER_GROUP]},
        {
            "userId": "u-off",
            "email": "off@example.com",
            "groups": [MEMBER_GROUP],
            "enabled": False,
        },
    ]


@pytest.fixture
def static_directory(user_records) -> StaticDirectory:
    return StaticDirectory.from_records(user_records)


@pytest.fixture
def cognito_stub() -> Iterator[tuple]:
    """(client, stubber) -- cognito-idp client 加 Stubber"""
    client = _client("cognito-idp")
    with Stubber(client) as stub:
        yield client, stub
        stub.assert_no_pending_responses()


@pytest.fixture
def ses_stub() -> Iterator[tuple]:
    client = _client("ses")
    with Stubber(client) as stub:
        yield client, stub


@pytest.fixture
def sns_stub() -> Iterator[tuple]:
    client = _client("sns")
    with Stubber(client) as stub:
        yield client, stub
