"""
Users + videos.

- `users`: credentials with unique username/email.
- `videos`: one row per stored object, owned by a user, expiring 5 days
  after upload (`ix_videos_expires_at` backs the reaper's scan).
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic.
revision = "20261019_01_users_and_videos"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("length(trim(username)) > 0", name="ck_users_username_not_blank"),
        sa.CheckConstraint("length(trim(email)) > 0", name="ck_users_email_not_blank"),
    )

    op.create_table(
        "videos",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("storage_key", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(length=127), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_videos"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_videos_user_id_users"),
        sa.UniqueConstraint("storage_key", name="uq_videos_storage_key"),
    )
    op.create_index("ix_videos_user_id", "videos", ["user_id"], unique=False)
    op.create_index("ix_videos_expires_at", "videos", ["expires_at"], unique=False)
    op.create_index("ix_videos_user_created", "videos", ["user_id", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_videos_user_created", table_name="videos")
    op.drop_index("ix_videos_expires_at", table_name="videos")
    op.drop_index("ix_videos_user_id", table_name="videos")
    op.drop_table("videos")
    op.drop_table("users")
