"""
会话仓储接口
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entity import Session


class SessionRepository(ABC):
    """会话仓储抽象接口"""

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """创建会话记录"""

    @abstractmethod
    async def get_active(self, session_id: str, user_id: str, now: datetime) -> Optional[Session]:
        """获取 (session_id, user_id) 对应且 expires_at > now 的会话"""

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """删除单个会话（不存在时返回 False，不报错）"""

    @abstractmethod
    async def delete_all_for_user(self, user_id: str) -> int:
        """删除用户的全部会话"""

    @abstractmethod
    async def delete_others_for_user(self, user_id: str, keep_session_id: str) -> int:
        """删除用户除 keep_session_id 以外的全部会话"""

    @abstractmethod
    async def list_active_for_user(self, user_id: str, now: datetime) -> List[Session]:
        """用户的有效会话（按创建时间倒序）"""
