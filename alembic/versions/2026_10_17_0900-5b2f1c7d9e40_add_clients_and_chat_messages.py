"""add clients and chat_messages tables

Revision ID: 5b2f1c7d9e40
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b2f1c7d9e40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema: clients and chat_messages tables."""
    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("attendant_id", sa.String(length=128), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_clients_status_joined_at", "clients", ["status", "joined_at"], unique=False
    )
    op.create_index(
        "ix_clients_attendant_id", "clients", ["attendant_id"], unique=False
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("chat_id", sa.String(length=128), nullable=False),
        sa.Column("sender", sa.String(length=16), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("reply_to", sa.String(length=36), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["chat_id"], ["clients.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_chat_messages_chat_id_sent_at",
        "chat_messages",
        ["chat_id", "sent_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop clients and chat_messages tables."""
    op.drop_index("ix_chat_messages_chat_id_sent_at", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_clients_attendant_id", table_name="clients")
    op.drop_index("ix_clients_status_joined_at", table_name="clients")
    op.drop_table("clients")
