from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


revision = "5d6e7f8a9b0c"
down_revision = "1a2b3c4d5e6f"
branch_labels = None
depends_on = None


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()

    if not _table_exists(bind, "invites"):
        op.create_table(
            "invites",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("code", sa.String(length=16), nullable=False, unique=True),
            sa.Column("location_id", UUID(as_uuid=True), sa.ForeignKey("locations.id", ondelete="CASCADE"), nullable=False),
            sa.Column("created_by_user_id", UUID(as_uuid=True), sa.ForeignKey("portal_users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("expires_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("used_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("used_by_user_id", UUID(as_uuid=True), sa.ForeignKey("portal_users.id", ondelete="SET NULL"), nullable=True),
        )


def downgrade() -> None:
    bind = op.get_bind()

    if _table_exists(bind, "invites"):
        op.drop_table("invites")
