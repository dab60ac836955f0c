"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("language", sa.String(5), nullable=True, server_default="zh"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)

    # Pets table
    op.create_table(
        "pets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("species", sa.String(10), nullable=False),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_pets_id"), "pets", ["id"], unique=False)
    op.create_index(op.f("ix_pets_user_id"), "pets", ["user_id"], unique=False)

    # AI vet consultations table
    op.create_table(
        "ai_vet_consultations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("pet_id", sa.Integer(), nullable=False),
        sa.Column("main_symptom", sa.String(50), nullable=False),
        sa.Column("duration", sa.String(20), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("additional_symptoms", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("additional_notes", sa.Text(), nullable=True),
        sa.Column("urgency_level", sa.String(50), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("full_response", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["pet_id"], ["pets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_ai_vet_consultations_id"), "ai_vet_consultations", ["id"], unique=False)
    op.create_index(op.f("ix_ai_vet_consultations_user_id"), "ai_vet_consultations", ["user_id"], unique=False)
    op.create_index(op.f("ix_ai_vet_consultations_pet_id"), "ai_vet_consultations", ["pet_id"], unique=False)
    op.create_index(op.f("ix_ai_vet_consultations_created_at"), "ai_vet_consultations", ["created_at"], unique=False)

    # Recovery plans table
    op.create_table(
        "recovery_plans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("pet_id", sa.Integer(), nullable=False),
        sa.Column("source_type", sa.String(20), nullable=False),
        sa.Column("source_id", sa.Integer(), nullable=True),
        sa.Column("main_symptom", sa.String(255), nullable=False),
        sa.Column("severity_level", sa.String(20), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("recovery_trend", sa.String(20), nullable=True),
        sa.Column("suggestion", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["pet_id"], ["pets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("duration_days >= 1", name="ck_recovery_plans_duration_positive"),
    )
    op.create_index(op.f("ix_recovery_plans_id"), "recovery_plans", ["id"], unique=False)
    op.create_index(op.f("ix_recovery_plans_user_id"), "recovery_plans", ["user_id"], unique=False)
    op.create_index(op.f("ix_recovery_plans_pet_id"), "recovery_plans", ["pet_id"], unique=False)
    op.create_index(op.f("ix_recovery_plans_created_at"), "recovery_plans", ["created_at"], unique=False)
    op.create_index(
        "uq_recovery_plans_active_pet",
        "recovery_plans",
        ["pet_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    # Recovery checkins table
    op.create_table(
        "recovery_checkins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("plan_id", sa.Integer(), nullable=False),
        sa.Column("day_index", sa.Integer(), nullable=False),
        sa.Column("appetite", sa.String(20), nullable=False),
        sa.Column("energy", sa.String(20), nullable=False),
        sa.Column("symptom_status", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["plan_id"], ["recovery_plans.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("plan_id", "day_index", name="uq_recovery_checkins_plan_day"),
    )
    op.create_index(op.f("ix_recovery_checkins_id"), "recovery_checkins", ["id"], unique=False)
    op.create_index(op.f("ix_recovery_checkins_plan_id"), "recovery_checkins", ["plan_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_recovery_checkins_plan_id"), table_name="recovery_checkins")
    op.drop_index(op.f("ix_recovery_checkins_id"), table_name="recovery_checkins")
    op.drop_table("recovery_checkins")

    op.drop_index("uq_recovery_plans_active_pet", table_name="recovery_plans")
    op.drop_index(op.f("ix_recovery_plans_created_at"), table_name="recovery_plans")
    op.drop_index(op.f("ix_recovery_plans_pet_id"), table_name="recovery_plans")
    op.drop_index(op.f("ix_recovery_plans_user_id"), table_name="recovery_plans")
    op.drop_index(op.f("ix_recovery_plans_id"), table_name="recovery_plans")
    op.drop_table("recovery_plans")

    op.drop_index(op.f("ix_ai_vet_consultations_created_at"), table_name="ai_vet_consultations")
    op.drop_index(op.f("ix_ai_vet_consultations_pet_id"), table_name="ai_vet_consultations")
    op.drop_index(op.f("ix_ai_vet_consultations_user_id"), table_name="ai_vet_consultations")
    op.drop_index(op.f("ix_ai_vet_consultations_id"), table_name="ai_vet_consultations")
    op.drop_table("ai_vet_consultations")

    op.drop_index(op.f("ix_pets_user_id"), table_name="pets")
    op.drop_index(op.f("ix_pets_id"), table_name="pets")
    op.drop_table("pets")

    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
