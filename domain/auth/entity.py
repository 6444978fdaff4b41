"""
会话实体 - 登录凭证的服务端记录
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Session:
    """会话

    只保存令牌的 SHA-256 摘要；会话有效当且仅当记录存在且 now < expires_at。
    """

    id: str
    user_id: str
    token_hash: str
    expires_at: datetime
    created_at: Optional[datetime] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now
