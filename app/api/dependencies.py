"""
API依赖项
"""
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel

from app.ai.base import NarrativeProvider
from app.ai.prompt_composer import PromptComposer
from app.config import settings

# JWT Bearer认证
security = HTTPBearer()


class CurrentUser(BaseModel):
    """当前登录用户（身份由外部认证系统签发）"""
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    获取当前登录用户

    Args:
        credentials: JWT凭证

    Returns:
        当前用户（sub 作为用户ID）

    Raises:
        HTTPException: 认证失败
    """
    token = credentials.credentials

    # 解析JWT
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的认证凭证",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="无效的认证凭证",
        )

    return CurrentUser(
        user_id=str(user_id),
        email=payload.get("email"),
        name=payload.get("name"),
    )


def get_narrative_provider(request: Request) -> NarrativeProvider:
    """获取应用启动时创建的叙述生成Provider"""
    provider = getattr(request.app.state, "narrative_provider", None)
    if provider is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="报告生成服务未配置",
        )
    return provider


def get_prompt_composer(request: Request) -> PromptComposer:
    """获取应用启动时创建的Prompt组装器"""
    composer = getattr(request.app.state, "prompt_composer", None)
    if composer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Prompt模板未加载",
        )
    return composer
