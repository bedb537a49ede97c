"""
Community Service
=================
Pseudonymous community feed: posts, likes and comments.

Authors are never identified; every post and comment gets a generated
pseudonym made of one adjective and one noun.
"""

from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from app.constants import Messages
from app.domain.community import Comment, CommunityPost
from app.domain.exceptions import NotFoundError, ValidationError
from app.utils.time import coerce_datetime, iso_now, utc_now
from infrastructure.database.pagination import PaginatedResponse, paginate

if TYPE_CHECKING:
    from infrastructure.database.repositories.community import CommunityPostRepository

logger = logging.getLogger(__name__)

PSEUDONYM_ADJECTIVES = ("باغبان", "کشاورز", "علاقه‌مند", "دوستدار", "پرورش‌دهنده")
PSEUDONYM_NOUNS = ("گل", "گیاه", "طبیعت", "سبز", "روستا")

def time_since(created_at: str, *, now=None) -> str:
    """Localized age of a timestamp, e.g. ``"2 ساعت پیش"``.

    A unit is used once strictly more than one of it has elapsed, so exactly
    one hour still reads in minutes.
    """
    moment = coerce_datetime(created_at)
    if moment is None:
        return ""
    seconds = ((now or utc_now()) - moment).total_seconds()
    for unit_seconds, unit in Messages.TIME_UNITS:
        if seconds / unit_seconds > 1:
            return Messages.TIME_AGO.format(count=int(seconds // unit_seconds), unit=unit)
    return Messages.JUST_NOW


def seed_posts(now=None) -> list[CommunityPost]:
    """The two example posts installed into an empty feed."""
    now = now or utc_now()
    first_created = now - timedelta(hours=2)
    return [
        CommunityPost(
            id="1",
            author_name="باغبان علاقه‌مند",
            text="گوجه‌فرنگی‌های من برگ‌های زرد با لکه‌های قهوه‌ای دارند. کسی می‌داند مشکل چیست؟",
            created_at=first_created.isoformat(),
            likes=5,
            comments=(
                Comment(
                    id="c1",
                    author_name="دوستدار طبیعت",
                    text="ممکن است بیماری لکه برگی باشد. از ابزار تشخیص بیماری همین برنامه استفاده کنید.",
                    created_at=(first_created + timedelta(minutes=30)).isoformat(),
                ),
            ),
        ),
        CommunityPost(
            id="2",
            author_name="کشاورز سبز",
            text="اولین برداشت خیار امسال! تجربه شما از کاشت خیار در گلخانه چیست؟",
            created_at=(now - timedelta(days=1)).isoformat(),
            image_ref="https://images.unsplash.com/photo-1604977042946-1eecc30f269e?w=800",
            likes=12,
        ),
    ]


class CommunityService:
    """Service for the community feed."""

    def __init__(self, community_repo: "CommunityPostRepository", rng: random.Random | None = None):
        """
        Initialize service.

        Args:
            community_repo: Community post repository
            rng: Random source for pseudonyms; injectable for deterministic tests
        """
        self.repo = community_repo
        self.rng = rng or random.Random()

    def pseudonym(self) -> str:
        return f"{self.rng.choice(PSEUDONYM_ADJECTIVES)} {self.rng.choice(PSEUDONYM_NOUNS)}"

    def seed_if_empty(self) -> bool:
        """Install the example posts if nothing was ever stored. Returns True when seeded."""
        if not self.repo.is_empty_store():
            return False
        self.repo.install(seed_posts())
        return True

    def list_posts(self, limit: int | None = None, offset: int | None = None) -> PaginatedResponse:
        return paginate(self.repo.list_posts(), limit=limit, offset=offset)

    def get_post(self, post_id: str) -> CommunityPost:
        post = self.repo.get_post(post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found")
        return post

    def create_post(self, text: str, image_ref: str | None = None) -> CommunityPost:
        if not text or not text.strip():
            raise ValidationError("Post text is required")
        post = CommunityPost(
            id=self.repo.next_id(),
            author_name=self.pseudonym(),
            text=text.strip(),
            created_at=iso_now(),
            image_ref=image_ref or None,
        )
        return self.repo.create_post(post)

    def like(self, post_id: str) -> CommunityPost:
        return self.repo.like(post_id)

    def add_comment(self, post_id: str, text: str) -> CommunityPost:
        if not text or not text.strip():
            raise ValidationError("Comment text is required")
        comment = Comment(
            id=self.repo.next_id(),
            author_name=self.pseudonym(),
            text=text.strip(),
            created_at=iso_now(),
        )
        return self.repo.add_comment(post_id, comment)

    @staticmethod
    def serialize(post: CommunityPost) -> dict[str, Any]:
        """API view of a post with relative ages attached."""
        data = post.to_dict()
        data["time_since"] = time_since(post.created_at)
        for comment in data["comments"]:
            comment["time_since"] = time_since(comment["created_at"])
        return data
