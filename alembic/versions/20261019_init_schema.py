"""initial schema: users, profiles, items, conversations, messages

Revision ID: 20261019_init_schema
Revises: 
Create Date: 2026-10-19 00:00:00

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '20261019_init_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Bootstrap an empty database straight from the model metadata.
    bind = op.get_bind()
    from app.models import Base
    Base.metadata.create_all(bind)


def downgrade() -> None:
    # Teardown of the base schema is not supported.
    pass
