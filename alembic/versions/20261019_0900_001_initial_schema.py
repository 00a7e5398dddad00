"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- users --
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("profile_image_url", sa.String(512), nullable=True),
        sa.Column("provider", sa.String(32), server_default="google"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # -- predictions --
    op.create_table(
        "predictions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("airtable_id", sa.String(32), nullable=True, unique=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("prediction_text", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("confidence_level", sa.Integer(), nullable=False),
        sa.Column("target_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("prediction_date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("outcome", sa.String(16), server_default="pending"),
        sa.Column("is_public", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_predictions_user_id", "predictions", ["user_id"])
    op.create_index("ix_predictions_created_at", "predictions", ["created_at"])
    op.create_index("ix_predictions_user_public", "predictions", ["user_id", "is_public"])

    # -- categories --
    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("airtable_id", sa.String(32), nullable=True, unique=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("color", sa.String(16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # -- user_stats --
    op.create_table(
        "user_stats",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False, unique=True
        ),
        sa.Column("total_predictions", sa.Integer(), server_default="0"),
        sa.Column("correct_predictions", sa.Integer(), server_default="0"),
        sa.Column("incorrect_predictions", sa.Integer(), server_default="0"),
        sa.Column("pending_predictions", sa.Integer(), server_default="0"),
        sa.Column("accuracy", sa.Numeric(5, 2), server_default="0"),
        sa.Column("brier_score", sa.Numeric(5, 4), server_default="0"),
        sa.Column("last_calculated", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # -- likes --
    op.create_table(
        "likes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "prediction_id", sa.String(36), sa.ForeignKey("predictions.id"), nullable=False
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "prediction_id", name="uq_likes_user_prediction"),
    )
    op.create_index("ix_likes_prediction_id", "likes", ["prediction_id"])

    # -- comments --
    op.create_table(
        "comments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "prediction_id", sa.String(36), sa.ForeignKey("predictions.id"), nullable=False
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_comments_prediction_id", "comments", ["prediction_id"])

    # -- community_content --
    op.create_table(
        "community_content",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("content", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # -- api_keys --
    op.create_table(
        "api_keys",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(64), nullable=False, unique=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("revoked", sa.Boolean(), server_default=sa.false()),
    )
    op.create_index("ix_api_keys_key", "api_keys", ["key"])


def downgrade() -> None:
    op.drop_table("api_keys")
    op.drop_table("community_content")
    op.drop_table("comments")
    op.drop_table("likes")
    op.drop_table("user_stats")
    op.drop_table("categories")
    op.drop_table("predictions")
    op.drop_table("users")
