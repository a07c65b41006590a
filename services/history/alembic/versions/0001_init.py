from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'history',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('asset_id', sa.String(255), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('details', sa.Text, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_history_asset_id', 'history', ['asset_id'])
    op.create_index('ix_history_timestamp', 'history', ['timestamp'])

def downgrade():
    op.drop_index('ix_history_timestamp', table_name='history')
    op.drop_index('ix_history_asset_id', table_name='history')
    op.drop_table('history')
