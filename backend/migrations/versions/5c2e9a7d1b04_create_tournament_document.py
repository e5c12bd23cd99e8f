"""create tournament document table

Revision ID: 5c2e9a7d1b04
Revises: 
Create Date: 2026-10-19 00:00:00

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d1b04'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'tournament' in set(insp.get_table_names()):
        return
    op.create_table(
        'tournament',
        sa.Column('passcode', sa.String(length=4), primary_key=True),
        sa.Column('document', sa.Text(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=False),
    )


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'tournament' in set(insp.get_table_names()):
        op.drop_table('tournament')
