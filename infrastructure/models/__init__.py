"""Infrastructure models package exports."""
from .base import Base, metadata
from .user import UserModel
from .session import SessionModel
from .access import GroupModel, RightModel, GroupRightModel, MembershipModel
from .article import ArticleModel, ArticleTagModel
from .reaction import ReactionModel

__all__ = [
    "Base",
    "metadata",
    "UserModel",
    "SessionModel",
    "GroupModel",
    "RightModel",
    "GroupRightModel",
    "MembershipModel",
    "ArticleModel",
    "ArticleTagModel",
    "ReactionModel",
]
