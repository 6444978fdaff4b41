"""
互动仓储接口
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from .entity import Reaction


class ReactionRepository(ABC):

    @abstractmethod
    async def find(self, user_id: str, target_type: str, target_id: str,
                   reaction_type: str) -> Optional[Reaction]:
        pass

    @abstractmethod
    async def add(self, reaction: Reaction) -> Reaction:
        pass

    @abstractmethod
    async def remove(self, reaction_id: str) -> bool:
        pass

    @abstractmethod
    async def counts(self, target_type: str, target_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
        """{target_id: {reaction_type: count}}"""

    @abstractmethod
    async def user_reactions(self, user_id: str, target_type: str,
                             target_ids: Iterable[str]) -> Dict[str, str]:
        """{target_id: reaction_type}，用于标记当前用户的状态"""

    @abstractmethod
    async def list_for_user(self, user_id: str, *, target_type: Optional[str] = None,
                            limit: int = 50, offset: int = 0) -> Tuple[List[Reaction], int]:
        """返回 (当前页, 总数)，按创建时间倒序"""

    @abstractmethod
    async def delete_for_target(self, target_type: str, target_id: str) -> int:
        pass
