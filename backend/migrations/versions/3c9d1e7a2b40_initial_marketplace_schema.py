"""initial marketplace schema

Revision ID: 3c9d1e7a2b40
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9d1e7a2b40'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    bind = op.get_bind()
    tables = set(sa.inspect(bind).get_table_names())

    if 'users' not in tables:
        op.create_table(
            'users',
            sa.Column('id', sa.String(length=32), primary_key=True),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('first_name', sa.String(length=120), nullable=False, server_default=''),
            sa.Column('last_name', sa.String(length=120), nullable=False, server_default=''),
            sa.Column('business_name', sa.String(length=200), nullable=False, server_default=''),
            sa.Column('phone', sa.String(length=32), nullable=False, server_default=''),
            sa.Column('role', sa.String(length=16), nullable=False, server_default='customer'),
            sa.Column('user_type', sa.String(length=16), nullable=False, server_default='physical'),
            *_timestamps(),
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if 'regions' not in tables:
        op.create_table(
            'regions',
            sa.Column('id', sa.String(length=32), primary_key=True),
            sa.Column('slug', sa.String(length=120), nullable=False),
            sa.Column('label', sa.String(length=100), nullable=False),
            *_timestamps(),
        )
        op.create_index('ix_regions_slug', 'regions', ['slug'], unique=True)

    if 'cities' not in tables:
        op.create_table(
            'cities',
            sa.Column('id', sa.String(length=32), primary_key=True),
            sa.Column('slug', sa.String(length=120), nullable=False),
            sa.Column('label', sa.String(length=100), nullable=False),
            sa.Column('region_id', sa.String(length=32), sa.ForeignKey('regions.id'), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint('region_id', 'slug', name='uq_cities_region_slug'),
        )
        op.create_index('ix_cities_region_id', 'cities', ['region_id'])

    if 'categories' not in tables:
        op.create_table(
            'categories',
            sa.Column('id', sa.String(length=32), primary_key=True),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('slug', sa.String(length=140), nullable=False),
            sa.Column('description', sa.String(length=500), nullable=False, server_default=''),
            sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
            sa.Column('parent_id', sa.String(length=32), sa.ForeignKey('categories.id'), nullable=True),
            sa.Column('parent_scope', sa.String(length=32), nullable=False, server_default=''),
            sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('path', sa.JSON(), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint('parent_scope', 'slug', name='uq_categories_parent_scope_slug'),
        )
        op.create_index('ix_categories_slug', 'categories', ['slug'])
        op.create_index('ix_categories_active', 'categories', ['active'])
        op.create_index('ix_categories_parent_id', 'categories', ['parent_id'])
        op.create_index('ix_categories_level', 'categories', ['level'])

    if 'filters' not in tables:
        op.create_table(
            'filters',
            sa.Column('id', sa.String(length=32), primary_key=True),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('slug', sa.String(length=140), nullable=False),
            sa.Column('type', sa.String(length=16), nullable=False),
            sa.Column('options', sa.JSON(), nullable=True),
            sa.Column('unit', sa.String(length=20), nullable=False, server_default=''),
            sa.Column('category_id', sa.String(length=32), sa.ForeignKey('categories.id'), nullable=False),
            sa.Column('apply_to_children', sa.Boolean(), nullable=False, server_default=sa.text('false')),
            sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.text('false')),
            sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
            *_timestamps(),
            sa.UniqueConstraint('category_id', 'slug', name='uq_filters_category_slug'),
        )
        op.create_index('ix_filters_category_sort', 'filters', ['category_id', 'sort_order'])
        op.create_index('ix_filters_category_inherit', 'filters', ['category_id', 'apply_to_children'])
        op.create_index('ix_filters_is_active', 'filters', ['is_active'])

    if 'listings' not in tables:
        op.create_table(
            'listings',
            sa.Column('id', sa.String(length=32), primary_key=True),
            sa.Column('title', sa.String(length=200), nullable=False),
            sa.Column('slug', sa.String(length=220), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('type', sa.String(length=8), nullable=False, server_default='sell'),
            sa.Column('category_name', sa.String(length=100), nullable=False),
            sa.Column('category_slug', sa.String(length=140), nullable=False),
            sa.Column('category_id', sa.String(length=32), sa.ForeignKey('categories.id'), nullable=True),
            sa.Column('attributes', sa.JSON(), nullable=False),
            sa.Column('price', sa.Float(), nullable=False, server_default='0'),
            sa.Column('currency', sa.String(length=3), nullable=False, server_default='GEL'),
            sa.Column('price_type', sa.String(length=16), nullable=False, server_default='fixed'),
            sa.Column('rent_period', sa.String(length=8), nullable=True),
            sa.Column('images', sa.JSON(), nullable=False),
            sa.Column('thumbnail', sa.String(length=1024), nullable=True),
            sa.Column('specifications', sa.JSON(), nullable=False),
            sa.Column('location_region', sa.String(length=120), nullable=False),
            sa.Column('location_city', sa.String(length=120), nullable=False),
            sa.Column('owner_id', sa.String(length=32), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
            sa.Column('promotion_type', sa.String(length=16), nullable=False, server_default='none'),
            sa.Column('promotion_expires_at', sa.DateTime(), nullable=True),
            sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('saves', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('seo_title', sa.String(length=70), nullable=True),
            sa.Column('seo_description', sa.String(length=160), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_listings_slug', 'listings', ['slug'], unique=True)
        op.create_index('ix_listings_type', 'listings', ['type'])
        op.create_index('ix_listings_category_slug', 'listings', ['category_slug'])
        op.create_index('ix_listings_category_id', 'listings', ['category_id'])
        op.create_index('ix_listings_location_region', 'listings', ['location_region'])
        op.create_index('ix_listings_owner_id', 'listings', ['owner_id'])
        op.create_index('ix_listings_created_at', 'listings', ['created_at'])
        op.create_index(
            'ix_listings_status_type_category_created',
            'listings',
            ['status', 'type', 'category_slug', 'created_at'],
        )
        op.create_index('ix_listings_owner_status', 'listings', ['owner_id', 'status'])
        op.create_index('ix_listings_promotion', 'listings', ['promotion_type', 'promotion_expires_at'])


def downgrade():
    op.drop_table('listings')
    op.drop_table('filters')
    op.drop_table('categories')
    op.drop_table('cities')
    op.drop_table('regions')
    op.drop_table('users')
