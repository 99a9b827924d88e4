from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


revision = "1a2b3c4d5e6f"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()

    if not _table_exists(bind, "portal_users"):
        op.create_table(
            "portal_users",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False, unique=True),
            sa.Column("name", sa.String(length=120), nullable=True),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="OWNER"),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )

    if not _table_exists(bind, "locations"):
        op.create_table(
            "locations",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("slug", sa.String(length=60), nullable=False, unique=True),
            sa.Column("address_line1", sa.String(length=255), nullable=True),
            sa.Column("city", sa.String(length=100), nullable=True),
            sa.Column("state", sa.String(length=50), nullable=True),
            sa.Column("postal_code", sa.String(length=20), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )

    if not _table_exists(bind, "user_locations"):
        op.create_table(
            "user_locations",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("portal_users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("location_id", UUID(as_uuid=True), sa.ForeignKey("locations.id", ondelete="CASCADE"), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint("user_id", "location_id", name="uq_user_locations_user_id_location_id"),
        )

    if not _table_exists(bind, "customers"):
        op.create_table(
            "customers",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("phone_e164", sa.String(length=20), nullable=False, unique=True),
            sa.Column("first_name", sa.String(length=100), nullable=False),
            sa.Column("last_name", sa.String(length=100), nullable=False, server_default=""),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )

    if not _table_exists(bind, "enrollments"):
        op.create_table(
            "enrollments",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("customer_id", UUID(as_uuid=True), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
            sa.Column("location_id", UUID(as_uuid=True), sa.ForeignKey("locations.id", ondelete="CASCADE"), nullable=False),
            sa.Column("cached_points", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("crm_contact_id", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint("customer_id", "location_id", name="uq_enrollments_customer_id_location_id"),
            sa.CheckConstraint("cached_points >= 0", name="ck_enrollments_cached_points_non_negative"),
        )

    if not _table_exists(bind, "reward_items"):
        op.create_table(
            "reward_items",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("location_id", UUID(as_uuid=True), sa.ForeignKey("locations.id", ondelete="CASCADE"), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("image_url", sa.String(length=500), nullable=True),
            sa.Column("points_required", sa.Integer(), nullable=True),
            sa.Column("type", sa.String(length=20), nullable=False, server_default="STANDARD"),
            sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("is_undeletable", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )

    insp = sa.inspect(bind)
    indexes = {ix["name"] for ix in insp.get_indexes("reward_items")}
    if "uq_reward_items_signup_gift_per_location" not in indexes:
        op.create_index(
            "uq_reward_items_signup_gift_per_location",
            "reward_items",
            ["location_id"],
            unique=True,
            postgresql_where=sa.text("type = 'SIGNUP_GIFT'"),
            sqlite_where=sa.text("type = 'SIGNUP_GIFT'"),
        )

    if not _table_exists(bind, "purchase_logs"):
        op.create_table(
            "purchase_logs",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("enrollment_id", UUID(as_uuid=True), sa.ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False),
            sa.Column("amount_cents", sa.Integer(), nullable=False),
            sa.Column("points_added", sa.Integer(), nullable=False),
            sa.Column("created_by_user_id", UUID(as_uuid=True), sa.ForeignKey("portal_users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        )

    if not _table_exists(bind, "redemption_intents"):
        op.create_table(
            "redemption_intents",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("token", sa.String(length=64), nullable=False, unique=True),
            sa.Column("enrollment_id", UUID(as_uuid=True), sa.ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False),
            sa.Column("items", sa.JSON(), nullable=False),
            sa.Column("points_spent", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("expires_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("used_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("redeemed_by_user_id", UUID(as_uuid=True), sa.ForeignKey("portal_users.id", ondelete="SET NULL"), nullable=True),
        )


def downgrade() -> None:
    bind = op.get_bind()

    for table_name in (
        "redemption_intents",
        "purchase_logs",
        "reward_items",
        "enrollments",
        "customers",
        "user_locations",
        "locations",
        "portal_users",
    ):
        if _table_exists(bind, table_name):
            op.drop_table(table_name)
