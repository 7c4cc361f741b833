"""Create category, listing, geography and location cache tables

Revision ID: 5d2e7c91a4b3
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '5d2e7c91a4b3'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('NOW()'), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables for the category tree and location engines"""

    op.create_table('categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('icon', sa.String(100), nullable=True),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='TRUE', nullable=False),
        sa.Column('is_featured', sa.Boolean(), server_default='FALSE', nullable=False),
        sa.Column('meta_title', sa.String(255), nullable=True),
        sa.Column('meta_description', sa.Text(), nullable=True),
        sa.Column('attributes', postgresql.JSONB(), nullable=True),
        sa.Column('validation_rules', postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id']),
    )
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)
    op.create_index('ix_categories_parent_id', 'categories', ['parent_id'])
    op.create_index('ix_categories_is_active', 'categories', ['is_active'])
    op.create_index('idx_categories_ordering', 'categories', ['parent_id', 'sort_order', 'name'])

    op.create_table('listings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
    )
    op.create_index('ix_listings_category_id', 'listings', ['category_id'])
    op.create_index('ix_listings_status', 'listings', ['status'])

    op.create_table('countries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(2), nullable=False),
        sa.Column('code_alpha3', sa.String(3), nullable=True),
        sa.Column('phone_code', sa.String(10), nullable=True),
        sa.Column('currency_code', sa.String(3), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='TRUE', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_countries_name', 'countries', ['name'])

    op.create_table('states',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('country_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(10), nullable=True),
        sa.Column('type', sa.String(20), server_default='state', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='TRUE', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['country_id'], ['countries.id']),
    )
    op.create_index('ix_states_country_id', 'states', ['country_id'])

    op.create_table('cities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('state_id', sa.Integer(), nullable=False),
        sa.Column('country_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('population', sa.Integer(), nullable=True),
        sa.Column('timezone', sa.String(64), nullable=True),
        sa.Column('place_id', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='TRUE', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['state_id'], ['states.id']),
        sa.ForeignKeyConstraint(['country_id'], ['countries.id']),
    )
    op.create_index('ix_cities_name', 'cities', ['name'])
    op.create_index('ix_cities_state_id', 'cities', ['state_id'])
    op.create_index('ix_cities_country_id', 'cities', ['country_id'])
    op.create_index('ix_cities_is_active', 'cities', ['is_active'])
    op.create_index('idx_cities_population', 'cities', [sa.text('population DESC NULLS LAST')])

    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('city_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id']),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_city_id', 'users', ['city_id'])

    op.create_table('location_cache',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('cache_key', sa.String(255), nullable=False),
        sa.Column('query', sa.String(500), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('data', postgresql.JSONB(), nullable=True),
        sa.Column('source', sa.String(50), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_location_cache_cache_key', 'location_cache', ['cache_key'], unique=True)
    op.create_index('ix_location_cache_expires_at', 'location_cache', ['expires_at'])


def downgrade() -> None:
    """Drop all tables"""
    op.drop_table('location_cache')
    op.drop_table('users')
    op.drop_table('cities')
    op.drop_table('states')
    op.drop_table('countries')
    op.drop_table('listings')
    op.drop_table('categories')
