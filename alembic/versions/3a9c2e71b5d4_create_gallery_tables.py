"""create_gallery_tables

Revision ID: 3a9c2e71b5d4
Revises:
Create Date: 2026-10-19 10:12:41.408215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a9c2e71b5d4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'paintings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('medium', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('year', sa.String(length=16), nullable=False, server_default=''),
        sa.Column('image_url', sa.String(length=1024), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_paintings_id'), 'paintings', ['id'], unique=False)
    op.create_index(op.f('ix_paintings_year'), 'paintings', ['year'], unique=False)
    op.create_index(op.f('ix_paintings_is_available'), 'paintings', ['is_available'], unique=False)
    op.create_index(op.f('ix_paintings_featured'), 'paintings', ['featured'], unique=False)
    op.create_index(op.f('ix_paintings_order'), 'paintings', ['order'], unique=False)

    op.create_table(
        'painting_categories',
        sa.Column('painting_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['painting_id'], ['paintings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('painting_id', 'name')
    )
    op.create_index(op.f('ix_painting_categories_name'), 'painting_categories', ['name'], unique=False)

    op.create_table(
        'exhibitions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exhibitions_id'), 'exhibitions', ['id'], unique=False)
    op.create_index(op.f('ix_exhibitions_order'), 'exhibitions', ['order'], unique=False)

    op.create_table(
        'exhibition_photos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('exhibition_id', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=1024), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['exhibition_id'], ['exhibitions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exhibition_photos_id'), 'exhibition_photos', ['id'], unique=False)
    op.create_index(op.f('ix_exhibition_photos_exhibition_id'), 'exhibition_photos', ['exhibition_id'], unique=False)
    op.create_index(op.f('ix_exhibition_photos_order'), 'exhibition_photos', ['order'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_exhibition_photos_order'), table_name='exhibition_photos')
    op.drop_index(op.f('ix_exhibition_photos_exhibition_id'), table_name='exhibition_photos')
    op.drop_index(op.f('ix_exhibition_photos_id'), table_name='exhibition_photos')
    op.drop_table('exhibition_photos')

    op.drop_index(op.f('ix_exhibitions_order'), table_name='exhibitions')
    op.drop_index(op.f('ix_exhibitions_id'), table_name='exhibitions')
    op.drop_table('exhibitions')

    op.drop_index(op.f('ix_painting_categories_name'), table_name='painting_categories')
    op.drop_table('painting_categories')

    op.drop_index(op.f('ix_paintings_order'), table_name='paintings')
    op.drop_index(op.f('ix_paintings_featured'), table_name='paintings')
    op.drop_index(op.f('ix_paintings_is_available'), table_name='paintings')
    op.drop_index(op.f('ix_paintings_year'), table_name='paintings')
    op.drop_index(op.f('ix_paintings_id'), table_name='paintings')
    op.drop_table('paintings')
