"""V0.1 materials, quiz attempts, users, upload usage, jobs

Revision ID: 5a1c0e7d9b21
Revises:
Create Date: 2026-10-19 10:12:31.402117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5a1c0e7d9b21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("email", sa.String(length=320), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=32), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("owner_key", sa.String(length=320), nullable=True),
        sa.Column("job_type", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_index("ix_jobs_owner_key", "jobs", ["owner_key"])

    op.create_table(
        "materials",
        sa.Column("id", sa.String(length=32), primary_key=True, nullable=False),
        sa.Column("owner_key", sa.String(length=320), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("file_type", sa.String(length=255), nullable=False),
        sa.Column("file_url", sa.Text(), nullable=False),
        sa.Column("file_key", sa.Text(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("extracted_text", sa.Text(), nullable=False),
        sa.Column("detected_language", sa.Text(), nullable=True),
        sa.Column("suggested_title", sa.Text(), nullable=True),
        sa.Column("thematic_category", sa.Text(), nullable=True),
        sa.Column("content_json", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index("ix_materials_owner_key", "materials", ["owner_key"])
    op.create_index("ix_materials_status", "materials", ["status"])
    op.create_index("ix_materials_thematic_category", "materials", ["thematic_category"])

    op.create_table(
        "quiz_attempts",
        sa.Column("id", sa.BigInteger(), primary_key=True, nullable=False),
        sa.Column(
            "material_id",
            sa.String(length=32),
            sa.ForeignKey("materials.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("taken_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("correct_answers", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
    )
    op.create_index("ix_quiz_attempts_material_id", "quiz_attempts", ["material_id"])

    op.create_table(
        "upload_counters",
        sa.Column("owner_key", sa.String(length=320), primary_key=True, nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False),
    )

    op.create_table(
        "subscriptions",
        sa.Column("owner_key", sa.String(length=320), primary_key=True, nullable=False),
        sa.Column("is_premium", sa.Boolean(), nullable=False),
        sa.Column("subscribed_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("subscriptions")
    op.drop_table("upload_counters")
    op.drop_index("ix_quiz_attempts_material_id", table_name="quiz_attempts")
    op.drop_table("quiz_attempts")
    op.drop_index("ix_materials_thematic_category", table_name="materials")
    op.drop_index("ix_materials_status", table_name="materials")
    op.drop_index("ix_materials_owner_key", table_name="materials")
    op.drop_table("materials")
    op.drop_index("ix_jobs_owner_key", table_name="jobs")
    op.drop_table("jobs")
    op.drop_table("users")
