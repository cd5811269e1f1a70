"""rooms, room_slots, characters, battles

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rooms",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("pass_hash", sa.String(), nullable=False),
        sa.Column("max_char_length", sa.Integer(), nullable=False),
        sa.Column("story_min_length", sa.Integer(), nullable=False),
        sa.Column("story_max_length", sa.Integer(), nullable=False),
        # battle lock: NULL = unlocked
        sa.Column("battle_status", sa.String(), nullable=True),
        sa.Column("battle_started_at", sa.String(), nullable=True),
        sa.Column("created_at", sa.String(), nullable=False),
    )
    op.create_index("ix_rooms_code", "rooms", ["code"], unique=True)

    op.create_table(
        "room_slots",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("room_id", sa.String(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(), nullable=False, unique=True),
        sa.Column("created_at", sa.String(), nullable=False),
        sa.UniqueConstraint("room_id", "slot", name="uq_room_slots_room_id_slot"),
    )
    op.create_index("ix_room_slots_room_id", "room_slots", ["room_id"], unique=False)

    op.create_table(
        "characters",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("room_id", sa.String(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("player_name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("style_id", sa.String(), nullable=False),
        sa.Column("style_label", sa.String(), nullable=False),
        sa.Column("image_path", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("attack", sa.Integer(), nullable=False),
        sa.Column("defense", sa.Integer(), nullable=False),
        sa.Column("magic", sa.Integer(), nullable=False),
        sa.Column("mana", sa.Integer(), nullable=False),
        sa.Column("speed", sa.Integer(), nullable=False),
        sa.Column("summary", sa.String(), nullable=False),
        sa.Column("is_editing", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.String(), nullable=False),
        sa.Column("updated_at", sa.String(), nullable=False),
        sa.UniqueConstraint("room_id", "slot", name="uq_characters_room_id_slot"),
    )
    op.create_index("ix_characters_room_id", "characters", ["room_id"], unique=False)
    op.create_index("ix_characters_created_at", "characters", ["created_at"], unique=False)

    op.create_table(
        "battles",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("room_id", sa.String(), sa.ForeignKey("rooms.id"), nullable=False, unique=True),
        sa.Column("winner_slot", sa.Integer(), nullable=False),
        sa.Column("winner_character_id", sa.String(), nullable=False),
        sa.Column("story", sa.String(), nullable=False),
        sa.Column("battle_image_path", sa.String(), nullable=False),
        sa.Column("battle_image_url", sa.String(), nullable=False),
        sa.Column("result_image_path", sa.String(), nullable=False),
        sa.Column("result_image_url", sa.String(), nullable=False),
        sa.Column("created_at", sa.String(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("battles")
    op.drop_index("ix_characters_created_at", table_name="characters")
    op.drop_index("ix_characters_room_id", table_name="characters")
    op.drop_table("characters")
    op.drop_index("ix_room_slots_room_id", table_name="room_slots")
    op.drop_table("room_slots")
    op.drop_index("ix_rooms_code", table_name="rooms")
    op.drop_table("rooms")
