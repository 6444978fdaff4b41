"""create_access_and_content_tables

Revision ID: 5c1e9a3b7d20
Revises:
Create Date: 2026-03-01 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1e9a3b7d20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False, comment='用户ID（UUID）'),
        sa.Column('username', sa.String(length=50), nullable=False, comment='用户名'),
        sa.Column('email', sa.String(length=255), nullable=False, comment='邮箱'),
        sa.Column('password_hash', sa.String(length=255), nullable=False, comment='密码哈希（bcrypt）'),
        sa.Column('display_name', sa.String(length=100), nullable=True, comment='显示名称'),
        sa.Column('avatar_url', sa.String(length=500), nullable=True, comment='头像URL'),
        sa.Column('bio', sa.Text(), nullable=True, comment='个人简介'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'sessions',
        sa.Column('id', sa.String(length=36), nullable=False, comment='会话ID（UUID，写入令牌的 sid）'),
        sa.Column('user_id', sa.String(length=36), nullable=False, comment='用户ID'),
        sa.Column('token_hash', sa.String(length=255), nullable=False, comment='令牌SHA-256哈希'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, comment='过期时间'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('user_agent', sa.String(length=500), nullable=True, comment='User-Agent'),
        sa.Column('ip_address', sa.String(length=45), nullable=True, comment='IP地址（支持IPv6）'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sessions_user_id', 'sessions', ['user_id'], unique=False)
    op.create_index('ix_sessions_user_expires', 'sessions', ['user_id', 'expires_at'], unique=False)

    op.create_table(
        'user_groups',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False, comment='用户组标识'),
        sa.Column('display_name', sa.String(length=100), nullable=False, comment='显示名称'),
        sa.Column('description', sa.Text(), nullable=True, comment='描述'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'user_rights',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False, comment='权限标识，* 表示全部权限'),
        sa.Column('description', sa.Text(), nullable=True, comment='描述'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'user_group_rights',
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('right_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['group_id'], ['user_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['right_id'], ['user_rights.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('group_id', 'right_id'),
    )
    op.create_table(
        'user_group_membership',
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False, comment='分配时间'),
        sa.Column('assigned_by', sa.String(length=36), nullable=True, comment='分配人（注册时为空）'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['user_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('user_id', 'group_id'),
    )

    op.create_table(
        'articles',
        sa.Column('id', sa.String(length=36), nullable=False, comment='文章ID（UUID）'),
        sa.Column('author_id', sa.String(length=36), nullable=False, comment='作者ID'),
        sa.Column('title', sa.String(length=200), nullable=False, comment='标题'),
        sa.Column('slug', sa.String(length=200), nullable=False, comment='URL 标识'),
        sa.Column('header_image', sa.String(length=500), nullable=True, comment='头图URL'),
        sa.Column('excerpt', sa.Text(), nullable=True, comment='摘要'),
        sa.Column('content', sa.Text(), nullable=False, comment='正文（序列化的富文本文档）'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='状态：draft/published/private'),
        sa.Column('views', sa.Integer(), nullable=False, comment='浏览次数'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True, comment='首次发布时间'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )
    op.create_index('ix_articles_author_id', 'articles', ['author_id'], unique=False)
    op.create_index('ix_articles_status_created', 'articles', ['status', 'created_at'], unique=False)

    op.create_table(
        'article_tags',
        sa.Column('article_id', sa.String(length=36), nullable=False),
        sa.Column('tag', sa.String(length=50), nullable=False, comment='标签（小写）'),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('article_id', 'tag'),
    )
    op.create_index('ix_article_tags_tag', 'article_tags', ['tag'], unique=False)

    op.create_table(
        'reactions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False, comment='用户ID'),
        sa.Column('target_type', sa.String(length=20), nullable=False, comment='目标类型：article'),
        sa.Column('target_id', sa.String(length=36), nullable=False, comment='目标ID'),
        sa.Column('reaction_type', sa.String(length=20), nullable=False, comment='互动类型：like'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'target_type', 'target_id', 'reaction_type', name='uq_reactions_user_target'),
    )
    op.create_index('ix_reactions_target', 'reactions', ['target_type', 'target_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_reactions_target', table_name='reactions')
    op.drop_table('reactions')
    op.drop_index('ix_article_tags_tag', table_name='article_tags')
    op.drop_table('article_tags')
    op.drop_index('ix_articles_status_created', table_name='articles')
    op.drop_index('ix_articles_author_id', table_name='articles')
    op.drop_table('articles')
    op.drop_table('user_group_membership')
    op.drop_table('user_group_rights')
    op.drop_table('user_rights')
    op.drop_table('user_groups')
    op.drop_index('ix_sessions_user_expires', table_name='sessions')
    op.drop_index('ix_sessions_user_id', table_name='sessions')
    op.drop_table('sessions')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
