"""
点赞等互动实体
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ReactionTarget(str, Enum):
    ARTICLE = "article"


class ReactionType(str, Enum):
    LIKE = "like"


@dataclass
class Reaction:
    id: str
    user_id: str
    target_type: ReactionTarget
    target_id: str
    reaction_type: ReactionType
    created_at: Optional[datetime] = None
