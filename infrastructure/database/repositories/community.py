"""Repository for community posts and their comments."""

from __future__ import annotations

import logging
from typing import Any, Callable

from app.constants import COMMUNITY_POSTS_KEY
from app.domain.community import Comment, CommunityPost
from app.domain.exceptions import NotFoundError
from app.utils.concurrency import synchronized
from app.utils.time import timestamp_sort_key
from infrastructure.database.repositories.base import CollectionRepository

logger = logging.getLogger(__name__)


class CommunityPostRepository(CollectionRepository[CommunityPost]):
    storage_key = COMMUNITY_POSTS_KEY

    def _decode(self, data: dict[str, Any]) -> CommunityPost:
        return CommunityPost.from_dict(data)

    def _encode(self, item: CommunityPost) -> dict[str, Any]:
        return item.to_dict()

    @synchronized
    def list_posts(self) -> list[CommunityPost]:
        """Posts sorted by creation time, newest first."""
        return sorted(self._collection(), key=lambda post: timestamp_sort_key(post.created_at), reverse=True)

    @synchronized
    def get_post(self, post_id: str) -> CommunityPost | None:
        return next((post for post in self._collection() if post.id == post_id), None)

    @synchronized
    def is_empty_store(self) -> bool:
        """True when nothing was ever stored under the posts key."""
        return self._store.get(self.storage_key) is None

    @synchronized
    def install(self, posts: list[CommunityPost]) -> None:
        """Replace the whole collection (seeding)."""
        self._replace_all(list(posts))
        logger.info("Installed %d community posts", len(posts))

    @synchronized
    def create_post(self, post: CommunityPost) -> CommunityPost:
        self._replace_all([post, *self._collection()])
        logger.info("Created community post %s", post.id)
        return post

    def like(self, post_id: str) -> CommunityPost:
        return self._update(post_id, lambda post: post.liked())

    def add_comment(self, post_id: str, comment: Comment) -> CommunityPost:
        return self._update(post_id, lambda post: post.with_comment(comment))

    @synchronized
    def _update(self, post_id: str, change: Callable[[CommunityPost], CommunityPost]) -> CommunityPost:
        posts = self._collection()
        for index, post in enumerate(posts):
            if post.id == post_id:
                updated = change(post)
                self._replace_all([*posts[:index], updated, *posts[index + 1:]])
                return updated
        raise NotFoundError(f"Community post {post_id} not found")
