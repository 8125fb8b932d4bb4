"""initial document tables

Revision ID: 202601100900
Revises:
Create Date: 2026-01-10 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202601100900"
down_revision = None
branch_labels = None
depends_on = None


PLATFORMS = ("YouTube", "Instagram", "Freelance", "Other")
PROJECT_TYPES = ("Thumbnail", "Video Editing", "Graphic Design", "Consultation")


def upgrade():
    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("platform", sa.Enum(*PLATFORMS, name="platform"), nullable=False),
        sa.Column(
            "project_type",
            sa.Enum(*PROJECT_TYPES, name="projecttype"),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("budget", sa.Float()),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.CheckConstraint("budget IS NULL OR budget >= 0", name="ck_clients_budget"),
    )
    op.create_index("ix_clients_owner_created", "clients", ["owner_id", "created_at"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column(
            "type",
            sa.Enum("INCOME", "EXPENSE", name="transactiontype"),
            nullable=False,
        ),
        sa.Column("category", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column("client_id", sa.String(length=36)),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_owner_date", "transactions", ["owner_id", "date"])

    op.create_table(
        "credentials",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("platform_name", sa.String(length=200), nullable=False),
        sa.Column("login_name", sa.String(length=200), nullable=False),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
    )
    op.create_index(
        "ix_credentials_owner_created", "credentials", ["owner_id", "created_at"]
    )

    op.create_table(
        "workspace_tasks",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("client_id", sa.String(length=36)),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "status",
            sa.Enum("PENDING", "WORKING", "COMPLETED", name="taskstatus"),
            nullable=False,
        ),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("budget", sa.Float()),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("started_at", sa.BigInteger()),
        sa.Column("completed_at", sa.BigInteger()),
    )
    op.create_index(
        "ix_workspace_tasks_owner_created",
        "workspace_tasks",
        ["owner_id", "created_at"],
    )


def downgrade():
    op.drop_index("ix_workspace_tasks_owner_created", table_name="workspace_tasks")
    op.drop_table("workspace_tasks")
    op.drop_index("ix_credentials_owner_created", table_name="credentials")
    op.drop_table("credentials")
    op.drop_index("ix_transactions_owner_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_clients_owner_created", table_name="clients")
    op.drop_table("clients")
    sa.Enum(name="taskstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="transactiontype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="projecttype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="platform").drop(op.get_bind(), checkfirst=True)
