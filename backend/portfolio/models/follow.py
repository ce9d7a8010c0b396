"""Follow edge between two users."""

from sqlalchemy import Column, ForeignKey, UniqueConstraint, CheckConstraint, Index, Uuid

from portfolio.models.base import Base, TimestampMixin, UUIDMixin


class Follow(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "follows"

    follower_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    following_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
        Index("idx_follows_following", "following_id"),
    )
