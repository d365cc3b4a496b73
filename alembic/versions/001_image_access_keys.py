"""Create users, images and image_access_keys tables.

Revision ID: 001_image_access_keys
Revises:
Create Date: 2026-10-19

Access keys store only the SHA-256 of their secret (unique).  Lookups go
through (secret_hash, image_id); revocation through (image_id, grantee_id);
the retention purge through created_at.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_image_access_keys'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create gallery and access key tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(100), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False, server_default=''),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        'images',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('author_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_images_author_id', 'images', ['author_id'])

    op.create_table(
        'image_access_keys',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('image_id', sa.String(36), sa.ForeignKey('images.id', ondelete='CASCADE'), nullable=False),
        sa.Column('grantee_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('secret_hash', sa.String(64), nullable=False, unique=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_usage', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_image_access_keys_expires_at', 'image_access_keys', ['expires_at'])
    op.create_index('ix_image_access_keys_created_at', 'image_access_keys', ['created_at'])
    op.create_index('ix_image_access_keys_image_grantee', 'image_access_keys', ['image_id', 'grantee_id'])


def downgrade() -> None:
    """Drop gallery and access key tables."""
    op.drop_index('ix_image_access_keys_image_grantee', table_name='image_access_keys')
    op.drop_index('ix_image_access_keys_created_at', table_name='image_access_keys')
    op.drop_index('ix_image_access_keys_expires_at', table_name='image_access_keys')
    op.drop_table('image_access_keys')
    op.drop_index('ix_images_author_id', table_name='images')
    op.drop_table('images')
    op.drop_table('users')
