"""
用户组 / 权限实体
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Group:
    """用户组"""

    id: Optional[int]
    name: str
    display_name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Right:
    """权限"""

    id: Optional[int]
    name: str
    description: Optional[str] = None
