from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'assets',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('custom_id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('value', sa.Float, nullable=False, server_default='0'),
        sa.Column('quantity', sa.Integer, nullable=False, server_default='1'),
        sa.Column('location', sa.String(50), nullable=False, server_default='Central Warehouse'),
        sa.Column('department', sa.String(50), nullable=False, server_default='Unassigned'),
        sa.Column('assigned_user', sa.String(100), nullable=True),
        sa.Column('specifications', sa.JSON, nullable=False),
        sa.Column('history', sa.JSON, nullable=False),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint('quantity >= 0', name='ck_assets_quantity_non_negative'),
    )
    op.create_index('ix_assets_custom_id', 'assets', ['custom_id'], unique=True)

def downgrade():
    op.drop_index('ix_assets_custom_id', table_name='assets')
    op.drop_table('assets')
