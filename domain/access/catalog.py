"""默认权限目录与用户组（启动时幂等写入）"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .permissions import Rights


ADMINISTRATOR_GROUP = "administrator"
CREATOR_GROUP = "creator"
DEFAULT_GROUP = "user"


RIGHT_CATALOG: Tuple[Tuple[str, str], ...] = (
    (Rights.CREATE_CONTENT, "Create new articles"),
    (Rights.EDIT_OWN_CONTENT, "Edit own articles"),
    (Rights.EDIT_ANY_CONTENT, "Edit any article"),
    (Rights.DELETE_OWN_CONTENT, "Delete own articles"),
    (Rights.DELETE_ANY_CONTENT, "Delete any article"),
    (Rights.UPLOAD_FILES, "Upload files"),
    (Rights.PUBLISH_CONTENT, "Publish articles"),
    (Rights.READ_CONTENT, "Read published content"),
    (Rights.COMMENT, "Comment on content"),
    (Rights.LIKE, "Like content"),
    (Rights.EDIT_OWN_PROFILE, "Edit own profile"),
    (Rights.MANAGE_USERS, "Manage users"),
    (Rights.MANAGE_GROUPS, "Manage groups"),
    (Rights.MANAGE_RIGHTS, "Manage rights"),
    (Rights.VIEW_ADMIN_PANEL, "Access the admin panel"),
    (Rights.ALL, "All rights"),
)

_BASE_USER_RIGHTS = (
    Rights.READ_CONTENT,
    Rights.COMMENT,
    Rights.LIKE,
    Rights.EDIT_OWN_PROFILE,
)


@dataclass(frozen=True)
class GroupDefinition:
    name: str
    display_name: str
    description: Optional[str]
    rights: Tuple[str, ...]


DEFAULT_GROUPS: Tuple[GroupDefinition, ...] = (
    GroupDefinition(
        name=ADMINISTRATOR_GROUP,
        display_name="Administrator",
        description="Full access to every feature",
        rights=(Rights.ALL,),
    ),
    GroupDefinition(
        name=CREATOR_GROUP,
        display_name="Creator",
        description="Can write and publish articles",
        rights=_BASE_USER_RIGHTS + (
            Rights.CREATE_CONTENT,
            Rights.EDIT_OWN_CONTENT,
            Rights.DELETE_OWN_CONTENT,
            Rights.UPLOAD_FILES,
            Rights.PUBLISH_CONTENT,
        ),
    ),
    GroupDefinition(
        name=DEFAULT_GROUP,
        display_name="User",
        description="Regular registered user",
        rights=_BASE_USER_RIGHTS,
    ),
)
