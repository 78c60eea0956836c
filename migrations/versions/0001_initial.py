"""Initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:30:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _enum_column(name: str, length: int = 50, **kwargs) -> sa.Column:
    return sa.Column(name, sa.String(length), **kwargs)


def upgrade() -> None:
    op.create_table(
        "regions",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_regions"),
        sa.UniqueConstraint("slug", name="uq_regions_slug"),
    )

    op.create_table(
        "topics",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("core_question", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_topics"),
        sa.UniqueConstraint("slug", name="uq_topics_slug"),
    )
    op.create_index("ix_topics_updated_at", "topics", ["updated_at"])

    op.create_table(
        "topic_regions",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("region_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_topic_regions"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_topic_regions_topic_id_topics", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["region_id"], ["regions.id"], name="fk_topic_regions_region_id_regions", ondelete="CASCADE"),
    )
    op.create_index("ix_topic_regions_topic_id", "topic_regions", ["topic_id"])
    op.create_index("ix_topic_regions_region_id", "topic_regions", ["region_id"])

    op.create_table(
        "sources",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("reliability", sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_sources"),
    )

    op.create_table(
        "articles",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("source_id", sa.Integer(), nullable=False),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_recent", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_articles"),
        sa.ForeignKeyConstraint(["source_id"], ["sources.id"], name="fk_articles_source_id_sources"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_articles_topic_id_topics", ondelete="CASCADE"),
    )
    op.create_index("ix_articles_topic_id", "articles", ["topic_id"])

    op.create_table(
        "claims",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("statement", sa.Text(), nullable=False),
        _enum_column("category", nullable=False),
        sa.Column("article_ids", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("is_conflicting", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("conflicting_claim_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_claims"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_claims_topic_id_topics", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["conflicting_claim_id"],
            ["claims.id"],
            name="fk_claims_conflicting_claim_id_claims",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_claims_topic_id", "claims", ["topic_id"])
    op.create_index("ix_claims_created_at", "claims", ["created_at"])

    op.create_table(
        "viewpoints",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("group_name", sa.String(200), nullable=False),
        sa.Column("position", sa.Text(), nullable=False),
        sa.Column("arguments", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("incentives", sa.Text(), nullable=True),
        sa.Column("constraints", sa.Text(), nullable=True),
        sa.Column("article_ids", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_viewpoints"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_viewpoints_topic_id_topics", ondelete="CASCADE"),
    )

    op.create_table(
        "scenarios",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        _enum_column("likelihood", nullable=True),
        sa.Column("triggers", sa.Text(), nullable=True),
        sa.Column("implications", sa.Text(), nullable=True),
        sa.Column("article_ids", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_scenarios"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_scenarios_topic_id_topics", ondelete="CASCADE"),
    )

    op.create_table(
        "timeline_events",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        _enum_column("significance", nullable=True),
        sa.Column("is_recent", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("article_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_timeline_events"),
        sa.ForeignKeyConstraint(
            ["topic_id"], ["topics.id"], name="fk_timeline_events_topic_id_topics", ondelete="CASCADE"
        ),
    )

    op.create_table(
        "stakeholders",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("article_ids", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_stakeholders"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_stakeholders_topic_id_topics", ondelete="CASCADE"),
    )

    op.create_table(
        "watch_signals",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("topic_id", sa.Integer(), nullable=False),
        sa.Column("signal", sa.Text(), nullable=False),
        sa.Column("implication", sa.Text(), nullable=True),
        sa.Column("scenario_id", sa.Integer(), nullable=True),
        sa.Column("article_ids", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_watch_signals"),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"], name="fk_watch_signals_topic_id_topics", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["scenario_id"], ["scenarios.id"], name="fk_watch_signals_scenario_id_scenarios", ondelete="SET NULL"
        ),
    )

    op.create_table(
        "user_follows",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("session_id", sa.String(100), nullable=False),
        _enum_column("follow_type", nullable=False),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_follows"),
    )
    op.create_index(
        "ix_user_follows_session_type_target",
        "user_follows",
        ["session_id", "follow_type", "target_id"],
    )

    op.create_table(
        "user_goals",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("session_id", sa.String(100), nullable=False),
        _enum_column("goal", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_goals"),
    )
    op.create_index("ix_user_goals_session_id", "user_goals", ["session_id"])


def downgrade() -> None:
    op.drop_index("ix_user_goals_session_id", table_name="user_goals")
    op.drop_table("user_goals")
    op.drop_index("ix_user_follows_session_type_target", table_name="user_follows")
    op.drop_table("user_follows")
    op.drop_table("watch_signals")
    op.drop_table("stakeholders")
    op.drop_table("timeline_events")
    op.drop_table("scenarios")
    op.drop_table("viewpoints")
    op.drop_index("ix_claims_created_at", table_name="claims")
    op.drop_index("ix_claims_topic_id", table_name="claims")
    op.drop_table("claims")
    op.drop_index("ix_articles_topic_id", table_name="articles")
    op.drop_table("articles")
    op.drop_table("sources")
    op.drop_index("ix_topic_regions_region_id", table_name="topic_regions")
    op.drop_index("ix_topic_regions_topic_id", table_name="topic_regions")
    op.drop_table("topic_regions")
    op.drop_index("ix_topics_updated_at", table_name="topics")
    op.drop_table("topics")
    op.drop_table("regions")
