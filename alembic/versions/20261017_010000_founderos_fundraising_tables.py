"""Fundraising and traction workspace tables

Revision ID: 20261017_010000
Revises: 20261017_000000
Create Date: 2026-10-17 01:00:00.000000

Adds the tables read by the fundraising and product-market-fit agents:
- team_members, funding_rounds, investors, marketing_platforms
- investor_type / investor_category columns on contacts

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261017_010000"
down_revision: Union[str, None] = "20261017_000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create fundraising tables and extend contacts."""

    op.add_column("contacts", sa.Column("investor_type", sa.String(64), nullable=True))
    op.add_column("contacts", sa.Column("investor_category", sa.String(64), nullable=True))

    # Create team_members table
    op.create_table(
        "team_members",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(255), nullable=True),
        sa.Column("equity_percent", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_team_members_user_id", "user_id"),
    )

    # Create funding_rounds table
    op.create_table(
        "funding_rounds",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("round_name", sa.String(128), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="planned"),
        sa.Column("target_amount", sa.Float(), nullable=True),
        sa.Column("amount_raised", sa.Float(), nullable=True),
        sa.Column("valuation", sa.Float(), nullable=True),
        sa.Column("lead_investor", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_funding_rounds_user_id", "user_id"),
    )

    # Create investors table
    op.create_table(
        "investors",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("firm", sa.String(255), nullable=True),
        sa.Column("investor_type", sa.String(64), nullable=True),
        sa.Column("amount", sa.Float(), nullable=True),
        sa.Column("commitment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("investment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_investors_user_id", "user_id"),
    )

    # Create marketing_platforms table
    op.create_table(
        "marketing_platforms",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("platform", sa.String(64), nullable=False),
        sa.Column("reach", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("engagement_rate", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_marketing_platforms_user_id", "user_id"),
    )


def downgrade() -> None:
    """Drop the tables and columns added in upgrade."""
    op.drop_table("marketing_platforms")
    op.drop_table("investors")
    op.drop_table("funding_rounds")
    op.drop_table("team_members")
    with op.batch_alter_table("contacts") as batch_op:
        batch_op.drop_column("investor_category")
        batch_op.drop_column("investor_type")
