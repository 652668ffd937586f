"""initial schema

Revision ID: initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('profile_picture', sa.String(), nullable=True),
        sa.Column('auth_provider', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('provider_account_id', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', 'auth_provider', name='uq_users_email_provider')
    )
    op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    # Create user_stats table and its buckets
    op.create_table('user_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_time_spent', sa.Integer(), nullable=False),
        sa.Column('card_reading_time', sa.Integer(), nullable=False),
        sa.Column('articles_read', sa.Integer(), nullable=False),
        sa.Column('last_activity', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_stats_id'), 'user_stats', ['id'], unique=False)
    op.create_index(op.f('ix_user_stats_user_id'), 'user_stats', ['user_id'], unique=True)

    op.create_table('category_engagement',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_stats_id', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('articles_read', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_stats_id'], ['user_stats.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_stats_id', 'category', name='uq_category_engagement')
    )
    op.create_index(op.f('ix_category_engagement_id'), 'category_engagement', ['id'], unique=False)
    op.create_index(op.f('ix_category_engagement_user_stats_id'), 'category_engagement', ['user_stats_id'], unique=False)

    op.create_table('daily_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_stats_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('articles_read', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_stats_id'], ['user_stats.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_stats_id', 'date', name='uq_daily_stats_day')
    )
    op.create_index(op.f('ix_daily_stats_id'), 'daily_stats', ['id'], unique=False)
    op.create_index(op.f('ix_daily_stats_user_stats_id'), 'daily_stats', ['user_stats_id'], unique=False)

    # Create editions and news_items tables
    op.create_table('editions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('overall_introduction', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_editions_created_at'), 'editions', ['created_at'], unique=False)
    op.create_index(op.f('ix_editions_id'), 'editions', ['id'], unique=False)
    op.create_index(op.f('ix_editions_key'), 'editions', ['key'], unique=True)

    op.create_table('news_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('edition_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=True),
        sa.Column('image', sa.String(), nullable=True),
        sa.Column('views', sa.Integer(), nullable=False),
        sa.Column('article_count', sa.Integer(), nullable=True),
        sa.Column('source_count', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['edition_id'], ['editions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('edition_id', 'item_id', name='uq_news_items_edition_item')
    )
    op.create_index(op.f('ix_news_items_category'), 'news_items', ['category'], unique=False)
    op.create_index(op.f('ix_news_items_edition_id'), 'news_items', ['edition_id'], unique=False)
    op.create_index(op.f('ix_news_items_id'), 'news_items', ['id'], unique=False)

    # Create articles table
    op.create_table('articles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('day_time_category', sa.String(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('publish_date', sa.DateTime(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('total_time_spent', sa.Integer(), nullable=False),
        sa.Column('average_read_time', sa.Float(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_articles_category'), 'articles', ['category'], unique=False)
    op.create_index(op.f('ix_articles_created_at'), 'articles', ['created_at'], unique=False)
    op.create_index(op.f('ix_articles_id'), 'articles', ['id'], unique=False)

    # Create interaction tables
    op.create_table('user_article_interactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=True),
        sa.Column('article_id', sa.Integer(), nullable=True),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('interaction_date', sa.DateTime(), nullable=True),
        sa.Column('last_position', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('(document_id IS NULL) <> (article_id IS NULL)', name='ck_interaction_single_target'),
        sa.ForeignKeyConstraint(['article_id'], ['articles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['editions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'article_id', name='uq_interaction_user_article'),
        sa.UniqueConstraint('user_id', 'document_id', name='uq_interaction_user_document')
    )
    op.create_index(op.f('ix_user_article_interactions_id'), 'user_article_interactions', ['id'], unique=False)
    op.create_index(op.f('ix_user_article_interactions_interaction_date'), 'user_article_interactions', ['interaction_date'], unique=False)
    op.create_index(op.f('ix_user_article_interactions_user_id'), 'user_article_interactions', ['user_id'], unique=False)

    op.create_table('interaction_news_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('interaction_id', sa.Integer(), nullable=False),
        sa.Column('news_item_id', sa.Integer(), nullable=False),
        sa.Column('time_spent', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('interaction_date', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['interaction_id'], ['user_article_interactions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('interaction_id', 'news_item_id', name='uq_interaction_news_item')
    )
    op.create_index(op.f('ix_interaction_news_items_id'), 'interaction_news_items', ['id'], unique=False)
    op.create_index(op.f('ix_interaction_news_items_interaction_id'), 'interaction_news_items', ['interaction_id'], unique=False)


def downgrade() -> None:
    op.drop_table('interaction_news_items')
    op.drop_table('user_article_interactions')
    op.drop_table('articles')
    op.drop_table('news_items')
    op.drop_table('editions')
    op.drop_table('daily_stats')
    op.drop_table('category_engagement')
    op.drop_table('user_stats')
    op.drop_table('users')
