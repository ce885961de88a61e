"""
ReelShare core schema.

- orgs (with the cached storage counter)
- videos (stored original + transcoder rendition, soft delete)
- galleries + gallery_videos (ordered membership, raw stack JSON)
- comments (timecoded, threaded by parent_id)
- share_links (token scope, permissions, expiry)
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic.
revision = "20260301_01_reelshare_core"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    video_status = sa.Enum("UPLOADING", "PROCESSING", "READY", "FAILED", name="video_status")
    share_view = sa.Enum("VIEW_ONLY", "REVIEW_DOWNLOAD", name="share_view")
    comment_role = sa.Enum("OWNER", "CLIENT", name="comment_role")
    comment_status = sa.Enum("OPEN", "RESOLVED", name="comment_status")

    # --- orgs ---
    op.create_table(
        "orgs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), server_default=sa.text("''"), nullable=False),
        sa.Column("storage_used_bytes", sa.Numeric(20, 0), server_default=sa.text("0"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("storage_used_bytes >= 0", name="ck_orgs_storage_used_non_negative"),
        sa.PrimaryKeyConstraint("id", name="pk_orgs"),
    )

    # --- videos ---
    op.create_table(
        "videos",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("org_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=300), server_default=sa.text("''"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", video_status, server_default="UPLOADING", nullable=False),
        sa.Column("original_key", sa.String(length=1024), nullable=True),
        sa.Column("original_size", sa.Numeric(20, 0), nullable=True),
        sa.Column("transcoder_asset_id", sa.String(length=128), nullable=True),
        sa.Column("playback_id", sa.String(length=128), nullable=True),
        sa.Column("thumbnail_url", sa.String(length=1024), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["orgs.id"], name="fk_videos_org_id_orgs", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_videos"),
    )
    op.create_index("ix_videos_org_id", "videos", ["org_id"])
    op.create_index("ix_videos_transcoder_asset_id", "videos", ["transcoder_asset_id"])
    op.create_index("ix_videos_deleted_at", "videos", ["deleted_at"])
    op.create_index("ix_videos_org_live", "videos", ["org_id", "deleted_at"])

    # --- galleries ---
    op.create_table(
        "galleries",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("org_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=300), server_default=sa.text("''"), nullable=False),
        sa.Column("stacks_json", sa.Text(), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["orgs.id"], name="fk_galleries_org_id_orgs", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_galleries"),
    )
    op.create_index("ix_galleries_org_id", "galleries", ["org_id"])

    op.create_table(
        "gallery_videos",
        sa.Column("gallery_id", sa.String(length=36), nullable=False),
        sa.Column("video_id", sa.String(length=36), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.ForeignKeyConstraint(["gallery_id"], ["galleries.id"], name="fk_gallery_videos_gallery_id_galleries", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], name="fk_gallery_videos_video_id_videos", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("gallery_id", "video_id", name="pk_gallery_videos"),
    )
    op.create_index("ix_gallery_videos_video_id", "gallery_videos", ["video_id"])

    # --- comments ---
    op.create_table(
        "comments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("org_id", sa.String(length=36), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=True),
        sa.Column("video_id", sa.String(length=36), nullable=False),
        sa.Column("timecode_ms", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("author", sa.String(length=120), nullable=True),
        sa.Column("role", comment_role, server_default="CLIENT", nullable=False),
        sa.Column("status", comment_status, server_default="OPEN", nullable=False),
        sa.Column("parent_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("timecode_ms >= 0", name="ck_comments_timecode_non_negative"),
        sa.ForeignKeyConstraint(["org_id"], ["orgs.id"], name="fk_comments_org_id_orgs", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], name="fk_comments_video_id_videos", ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
    )
    op.create_index("ix_comments_org_id", "comments", ["org_id"])
    op.create_index("ix_comments_token", "comments", ["token"])
    op.create_index("ix_comments_video_id", "comments", ["video_id"])
    op.create_index("ix_comments_parent_id", "comments", ["parent_id"])
    op.create_index("ix_comments_video_token", "comments", ["video_id", "token"])

    # --- share_links ---
    op.create_table(
        "share_links",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("org_id", sa.String(length=36), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("video_id", sa.String(length=36), nullable=True),
        sa.Column("gallery_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=300), nullable=True),
        sa.Column("allowed_video_ids_json", sa.Text(), nullable=True),
        sa.Column("stacks_json", sa.Text(), nullable=True),
        sa.Column("view", share_view, server_default="REVIEW_DOWNLOAD", nullable=False),
        sa.Column("allow_comments", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("allow_download", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contact_id", sa.String(length=64), nullable=True),
        sa.Column("conversation_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["orgs.id"], name="fk_share_links_org_id_orgs", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["video_id"], ["videos.id"], name="fk_share_links_video_id_videos", ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["gallery_id"], ["galleries.id"], name="fk_share_links_gallery_id_galleries", ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id", name="pk_share_links"),
        sa.UniqueConstraint("token", name="uq_share_links_token"),
    )
    op.create_index("ix_share_links_org_id", "share_links", ["org_id"])
    op.create_index("ix_share_links_video_id", "share_links", ["video_id"])
    op.create_index("ix_share_links_gallery_id", "share_links", ["gallery_id"])


def downgrade() -> None:
    op.drop_table("share_links")
    op.drop_table("comments")
    op.drop_table("gallery_videos")
    op.drop_table("galleries")
    op.drop_table("videos")
    op.drop_table("orgs")

    bind = op.get_bind()
    for name in ("comment_status", "comment_role", "share_view", "video_status"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
