"""add recipes table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'

    # Native text array on PostgreSQL, JSON list on SQLite
    ingredients_type = sa.JSON() if is_sqlite else postgresql.ARRAY(sa.Text())
    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')

    op.create_table(
        'recipes',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('ingredients', ingredients_type, nullable=False),
        sa.Column('instructions', sa.Text(), nullable=False),
        sa.Column('cooking_time', sa.String(length=50), nullable=False),
        sa.Column('servings', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=timestamp_default),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=timestamp_default),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('servings > 0', name='ck_recipes_servings_positive'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['users.id']),
    )
    op.create_index('ix_recipes_name', 'recipes', ['name'])
    op.create_index('ix_recipes_category', 'recipes', ['category'])
    # Every listing is ORDER BY created_at DESC
    op.create_index('ix_recipes_created_at', 'recipes', ['created_at'])
    op.create_index('ix_recipes_created_by', 'recipes', ['created_by'])

    if not is_sqlite:
        op.execute("""
            CREATE TRIGGER update_recipes_updated_at
                BEFORE UPDATE ON recipes
                FOR EACH ROW
                EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name != 'sqlite':
        op.execute("DROP TRIGGER IF EXISTS update_recipes_updated_at ON recipes")
    op.drop_index('ix_recipes_created_by', table_name='recipes')
    op.drop_index('ix_recipes_created_at', table_name='recipes')
    op.drop_index('ix_recipes_category', table_name='recipes')
    op.drop_index('ix_recipes_name', table_name='recipes')
    op.drop_table('recipes')
