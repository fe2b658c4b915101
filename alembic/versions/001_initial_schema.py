"""Initial schema: users, exams, registrations, notifications.

Revision ID: 001
Revises:
Create Date: 2025-04-20

Enums are stored as VARCHAR (non-native) so the same schema runs on SQLite
in tests.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        postgresql.TIMESTAMP(timezone=True),
        server_default=sa.text("now()"),
        nullable=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column(
            "email_notifications_enabled",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=True,
        ),
        sa.Column(
            "sms_notifications_enabled",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=True,
        ),
        sa.Column(
            "in_app_notifications_enabled",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=True,
        ),
        sa.Column(
            "reminder_frequency",
            sa.String(length=7),
            server_default="daily",
            nullable=True,
        ),
        sa.Column("calendar_refresh_token", sa.Text(), nullable=True),
        sa.Column(
            "calendar_connected_at", postgresql.TIMESTAMP(timezone=True), nullable=True
        ),
        sa.Column(
            "is_admin", sa.Boolean(), server_default=sa.text("false"), nullable=True
        ),
        _created_at(),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_users")),
    )
    op.create_index("idx_users_email", "users", ["email"], unique=False)

    op.create_table(
        "exams",
        sa.Column("exam_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("exam_date", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("venue", sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("exam_id", name=op.f("pk_exams")),
    )
    op.create_index("idx_exams_exam_date", "exams", ["exam_date"], unique=False)

    op.create_table(
        "exam_materials",
        sa.Column("material_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column("material", sa.Text(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["exam_id"],
            ["exams.exam_id"],
            name=op.f("fk_exam_materials_exam_id_exams"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("material_id", name=op.f("pk_exam_materials")),
    )
    op.create_index(
        "idx_exam_materials_exam_id", "exam_materials", ["exam_id"], unique=False
    )

    op.create_table(
        "exam_announcements",
        sa.Column("announcement_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column("announcement", sa.Text(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["exam_id"],
            ["exams.exam_id"],
            name=op.f("fk_exam_announcements_exam_id_exams"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("announcement_id", name=op.f("pk_exam_announcements")),
    )
    op.create_index(
        "idx_exam_announcements_exam_id",
        "exam_announcements",
        ["exam_id"],
        unique=False,
    )

    op.create_table(
        "exam_registrations",
        sa.Column("registration_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column(
            "registered_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_exam_registrations_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["exam_id"],
            ["exams.exam_id"],
            name=op.f("fk_exam_registrations_exam_id_exams"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "registration_id", name=op.f("pk_exam_registrations")
        ),
        sa.UniqueConstraint(
            "user_id", "exam_id", name="uq_exam_registrations_user_exam"
        ),
    )
    op.create_index(
        "idx_exam_registrations_exam_id",
        "exam_registrations",
        ["exam_id"],
        unique=False,
    )

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", sa.String(length=12), nullable=False),
        sa.Column("reminder_offset_days", sa.Integer(), nullable=True),
        sa.Column(
            "scheduled_at", postgresql.TIMESTAMP(timezone=True), nullable=False
        ),
        sa.Column(
            "delivered", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("delivered_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_notifications_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["exam_id"],
            ["exams.exam_id"],
            name=op.f("fk_notifications_exam_id_exams"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("notification_id", name=op.f("pk_notifications")),
        sa.UniqueConstraint(
            "user_id",
            "exam_id",
            "reminder_offset_days",
            name="uq_notifications_reminder_offset",
        ),
    )
    op.create_index(
        "idx_notifications_user_id", "notifications", ["user_id"], unique=False
    )
    op.create_index(
        "idx_notifications_delivered", "notifications", ["delivered"], unique=False
    )

    op.create_table(
        "notification_log",
        sa.Column("log_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("notification_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("channel", sa.String(length=6), nullable=False),
        sa.Column("status", sa.String(length=6), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(
            ["notification_id"],
            ["notifications.notification_id"],
            name=op.f("fk_notification_log_notification_id_notifications"),
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.user_id"],
            name=op.f("fk_notification_log_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("log_id", name=op.f("pk_notification_log")),
    )
    op.create_index(
        "idx_notification_log_notification_id",
        "notification_log",
        ["notification_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_notification_log_notification_id", table_name="notification_log")
    op.drop_table("notification_log")
    op.drop_index("idx_notifications_delivered", table_name="notifications")
    op.drop_index("idx_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("idx_exam_registrations_exam_id", table_name="exam_registrations")
    op.drop_table("exam_registrations")
    op.drop_index("idx_exam_announcements_exam_id", table_name="exam_announcements")
    op.drop_table("exam_announcements")
    op.drop_index("idx_exam_materials_exam_id", table_name="exam_materials")
    op.drop_table("exam_materials")
    op.drop_index("idx_exams_exam_date", table_name="exams")
    op.drop_table("exams")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
