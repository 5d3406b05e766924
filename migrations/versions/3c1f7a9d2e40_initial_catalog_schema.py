"""initial_catalog_schema

Revision ID: 3c1f7a9d2e40
Revises:
Create Date: 2026-10-19 09:12:31.448107

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1f7a9d2e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

json_document = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

product_type = sa.Enum('DIGITAL', 'DROPSHIPPED', 'PHYSICAL', 'BUNDLE', name='product_type')
availability_status = sa.Enum('IN_STOCK', 'OUT_OF_STOCK', 'PRE_ORDER', 'DISCONTINUED', name='availability_status')
product_source = sa.Enum('SCRAPED', 'MANUAL', 'API', name='product_source')
scraping_job_type = sa.Enum('FULL', 'INCREMENTAL', name='scraping_job_type')
scraping_job_status = sa.Enum('PENDING', 'RUNNING', 'COMPLETED', 'FAILED', name='scraping_job_status')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(), nullable=True),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_categories_name'), 'categories', ['name'], unique=False)
    op.create_index(op.f('ix_categories_slug'), 'categories', ['slug'], unique=True)

    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('product_type', product_type, nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('availability', availability_status, nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('source', product_source, nullable=False),
        sa.Column('source_id', sa.String(), nullable=True),
        sa.Column('source_url', sa.String(), nullable=True),
        sa.Column('botanical_name', sa.String(), nullable=True),
        sa.Column('common_name', sa.String(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('images', json_document, nullable=True, comment='Ordered list of image URLs'),
        sa.Column('metadata', json_document, nullable=True, comment='Scraped variants, specifications and other extras'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_products_name'), 'products', ['name'], unique=False)
    op.create_index(op.f('ix_products_slug'), 'products', ['slug'], unique=False)
    op.create_index(op.f('ix_products_category_id'), 'products', ['category_id'], unique=False)
    op.create_index(op.f('ix_products_source_id'), 'products', ['source_id'], unique=False)
    op.create_index(op.f('ix_products_source_url'), 'products', ['source_url'], unique=False)

    op.create_table(
        'product_categories',
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('product_id', 'category_id'),
    )

    op.create_table(
        'product_contents',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('detailed_description', sa.Text(), nullable=True),
        sa.Column('growing_requirements', sa.Text(), nullable=True),
        sa.Column('care_instructions', sa.Text(), nullable=True),
        sa.Column('uses', sa.Text(), nullable=True),
        sa.Column('benefits', sa.Text(), nullable=True),
        sa.Column('last_updated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id'),
    )

    op.create_table(
        'scraping_jobs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('job_type', scraping_job_type, nullable=False),
        sa.Column('status', scraping_job_status, nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('products_processed', sa.Integer(), nullable=False),
        sa.Column('products_created', sa.Integer(), nullable=False),
        sa.Column('products_updated', sa.Integer(), nullable=False),
        sa.Column('errors', json_document, nullable=True),
        sa.Column('metadata', json_document, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_scraping_jobs_status'), 'scraping_jobs', ['status'], unique=False)
    op.create_index(op.f('ix_scraping_jobs_created_at'), 'scraping_jobs', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_scraping_jobs_created_at'), table_name='scraping_jobs')
    op.drop_index(op.f('ix_scraping_jobs_status'), table_name='scraping_jobs')
    op.drop_table('scraping_jobs')
    op.drop_table('product_contents')
    op.drop_table('product_categories')
    op.drop_index(op.f('ix_products_source_url'), table_name='products')
    op.drop_index(op.f('ix_products_source_id'), table_name='products')
    op.drop_index(op.f('ix_products_category_id'), table_name='products')
    op.drop_index(op.f('ix_products_slug'), table_name='products')
    op.drop_index(op.f('ix_products_name'), table_name='products')
    op.drop_table('products')
    op.drop_index(op.f('ix_categories_slug'), table_name='categories')
    op.drop_index(op.f('ix_categories_name'), table_name='categories')
    op.drop_table('categories')

    bind = op.get_bind()
    for enum in (scraping_job_status, scraping_job_type, product_source, availability_status, product_type):
        enum.drop(bind, checkfirst=True)
