"""users, reviews, review_comments, remembered_addresses"""

from alembic import op
import sqlalchemy as sa

# ========= IDs =========
revision = "initial_reviews_schema_20261019"
down_revision = None
branch_labels = None
depends_on = None


def _bool_default(value: bool):
    """Boolean server default that works on both SQLite and PostgreSQL."""
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        return sa.text("true" if value else "false")
    return sa.text("1" if value else "0")


def upgrade():
    # ===== users =====
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=_bool_default(True)),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=_bool_default(False)),
        sa.Column("email_verification_code", sa.String(length=6), nullable=True),
        sa.Column("email_verification_expires", sa.DateTime(), nullable=True),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=_bool_default(True)),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ===== reviews (all four kinds) =====
    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("kind", sa.String(length=24), nullable=False, server_default="property"),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("street", sa.String(length=200), nullable=True),
        sa.Column("building", sa.String(length=50), nullable=True),
        sa.Column("floor", sa.Integer(), nullable=True),
        sa.Column("apartment_number", sa.String(length=20), nullable=True),
        sa.Column("number_of_rooms", sa.Integer(), nullable=True),
        sa.Column("residential_complex", sa.String(length=100), nullable=True),
        sa.Column("landlord_name", sa.String(length=100), nullable=True),
        sa.Column("tenant_full_name", sa.String(length=100), nullable=True),
        sa.Column("tenant_id_last_four", sa.String(length=4), nullable=True),
        sa.Column("tenant_phone_last_four", sa.String(length=4), nullable=True),
        sa.Column("from_month", sa.Integer(), nullable=True),
        sa.Column("from_year", sa.Integer(), nullable=True),
        sa.Column("to_month", sa.Integer(), nullable=True),
        sa.Column("to_year", sa.Integer(), nullable=True),
        sa.Column("review_text", sa.Text(), nullable=False),
        sa.Column("ratings", sa.JSON(), nullable=True),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=_bool_default(False)),
        sa.Column("is_reported", sa.Boolean(), nullable=False, server_default=_bool_default(False)),
        sa.Column("report_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_reviews_id", "reviews", ["id"])
    op.create_index("ix_reviews_kind", "reviews", ["kind"])
    op.create_index("ix_reviews_author_id", "reviews", ["author_id"])
    op.create_index("ix_reviews_is_approved", "reviews", ["is_approved"])
    op.create_index("ix_reviews_is_reported", "reviews", ["is_reported"])
    op.create_index("ix_reviews_created_at", "reviews", ["created_at"])
    op.create_index("ix_reviews_address", "reviews", ["city", "street", "building"])
    op.create_index(
        "ix_reviews_tenant_identity", "reviews",
        ["tenant_full_name", "tenant_id_last_four", "tenant_phone_last_four"],
    )

    # ===== review_comments =====
    op.create_table(
        "review_comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("review_id", sa.Integer(), sa.ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("text", sa.String(length=1000), nullable=False),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=_bool_default(False)),
        sa.Column("is_reported", sa.Boolean(), nullable=False, server_default=_bool_default(False)),
        sa.Column("report_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_review_comments_id", "review_comments", ["id"])
    op.create_index("ix_review_comments_review_id", "review_comments", ["review_id"])
    op.create_index("ix_review_comments_author_id", "review_comments", ["author_id"])
    op.create_index("ix_review_comments_is_reported", "review_comments", ["is_reported"])
    op.create_index("ix_review_comments_created_at", "review_comments", ["created_at"])

    # ===== remembered_addresses =====
    op.create_table(
        "remembered_addresses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("street", sa.String(length=200), nullable=False),
        sa.Column("building", sa.String(length=50), nullable=False),
        sa.Column("residential_complex", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_used", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("city", "street", "building", name="uq_remembered_address_triple"),
    )
    op.create_index("ix_remembered_addresses_id", "remembered_addresses", ["id"])
    op.create_index("ix_remembered_addresses_city", "remembered_addresses", ["city"])
    op.create_index("ix_remembered_addresses_usage", "remembered_addresses", ["usage_count", "last_used"])


def downgrade():
    op.drop_table("remembered_addresses")
    op.drop_table("review_comments")
    op.drop_table("reviews")
    op.drop_table("users")
