"""请求者解析 -- 从请求中得到 Caller

解析顺序：
1. API Gateway Cognito authorizer 已验证的 claims（Mangum 放在 scope["aws.event"]）
2. Authorization: Bearer <JWT>，用 PyJWT 校验：
   - 配置了 TASKDESK_JWT_SECRET 时按 HS256 校验（本地模式）
   - 否则配置了 COGNITO_USER_POOL_ID 时按 Cognito JWKS 校验 RS256

无法解析时返回 None，由授权判定给出 UNAUTHORIZED。
"""

import asyncio
import os
from typing import Any

import jwt
import structlog
from pydantic import BaseModel, Field
from starlette.requests import Request

from taskdesk.core.models import Caller

log = structlog.get_logger()


class AuthConfig(BaseModel):
    """Bearer token 校验配置"""

    jwt_secret: str = Field(default="", description="HS256 共享密钥")
    user_pool_id: str = Field(default="", description="Cognito User Pool ID")
    aws_region: str = Field(default="eu-central-1", description="User Pool 所在区域")

    @property
    def issuer(self) -> str:
        return f"https://cognito-idp.{self.aws_region}.amazonaws.com/{self.user_pool_id}"


def load_auth_config() -> AuthConfig:
    return AuthConfig(
        jwt_secret=os.environ.get("TASKDESK_JWT_SECRET", ""),
        user_pool_id=os.environ.get("COGNITO_USER_POOL_ID", ""),
        aws_region=os.environ.get("AWS_REGION", "eu-central-1"),
    )


def parse_groups(raw: Any) -> list[str]:
    """cognito:groups 可能是列表，也可能是逗号分隔字符串"""
    if not raw:
        return []
    if isinstance(raw, str):
        raw = raw.strip("[]").replace(" ", ",").split(",")
    return [g.strip() for g in raw if g and g.strip()]


def claims_to_caller(claims: dict[str, Any] | None) -> Caller | None:
    """token claims -> Caller；缺少 sub 视为无法解析"""
    if not claims or not claims.get("sub"):
        return None
    email = claims.get("email", "")
    return Caller(
        user_id=claims["sub"],
        email=email,
        name=claims.get("name") or email,
        groups=parse_groups(claims.get("cognito:groups")),
        username=claims.get("cognito:username") or claims.get("username") or claims["sub"],
    )


def event_claims(event: dict[str, Any] | None) -> dict[str, Any] | None:
    """从 API Gateway 事件中取出 authorizer claims（REST v1 / HTTP v2）"""
    if not event:
        return None
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    return authorizer.get("claims") or (authorizer.get("jwt") or {}).get("claims")


class CallerResolver:
    """按 AuthConfig 解析请求者"""

    def __init__(self, config: AuthConfig) -> None:
        self._config = config
        self._jwks_client: jwt.PyJWKClient | None = None
        if not config.jwt_secret and config.user_pool_id:
            self._jwks_client = jwt.PyJWKClient(f"{config.issuer}/.well-known/jwks.json")

    async def resolve(self, request: Request) -> Caller | None:
        claims = event_claims(request.scope.get("aws.event"))
        if claims:
            return claims_to_caller(claims)

        header = request.headers.get("authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        return claims_to_caller(await self.decode(token.strip()))

    async def decode(self, token: str) -> dict[str, Any] | None:
        """校验 token 并返回 claims，无效时返回 None"""
        try:
            if self._config.jwt_secret:
                return jwt.decode(
                    token,
                    self._config.jwt_secret,
                    algorithms=["HS256"],
                    options={"verify_aud": False},
                )
            if self._jwks_client is not None:
                # PyJWKClient 同步拉取 JWKS
                signing_key = await asyncio.to_thread(
                    self._jwks_client.get_signing_key_from_jwt, token
                )
                return jwt.decode(
                    token,
                    signing_key.key,
                    algorithms=["RS256"],
                    issuer=self._config.issuer,
                    options={"verify_aud": False},
                )
        except jwt.PyJWTError as exc:
            log.info("bearer_token_rejected", error=str(exc))
            return None
        log.warning("bearer_token_unverifiable", reason="未配置 JWT 密钥或 User Pool")
        return None
