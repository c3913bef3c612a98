"""Post listing: tag filter, free-text filter and sort.

Each stage is a pure function over a sequence of posts and never mutates its
input.  :func:`derive_listing` chains them in a fixed order (tag, text,
sort) and :class:`ListingCache` memoizes the result for a single consumer.
"""

import locale
from typing import List, Literal, Optional, Sequence, Tuple

from blogcore.models.post import Post

ALL_TAGS = "All"

SortOrder = Literal["newest", "oldest", "title"]


def filter_by_tag(posts: Sequence[Post], tag: Optional[str]) -> List[Post]:
    """Keep posts carrying *tag* (exact, case-sensitive); ``"All"`` keeps everything."""
    if not tag or tag == ALL_TAGS:
        return list(posts)
    return [post for post in posts if post.tags and tag in post.tags]


def _matches(post: Post, needle: str) -> bool:
    if needle in post.title.lower():
        return True
    if post.description and needle in post.description.lower():
        return True
    return any(needle in tag.lower() for tag in post.tags or ())


def filter_by_query(posts: Sequence[Post], query: str) -> List[Post]:
    """Keep posts whose title, description or any tag contains *query*, ignoring case."""
    if not query:
        return list(posts)
    needle = query.lower()
    return [post for post in posts if _matches(post, needle)]


def _date_key(post: Post) -> int:
    # Undated posts count as epoch 0: last under "newest", first under "oldest".
    return post.published_date or 0


def _title_key(post: Post) -> Tuple[str, str]:
    return locale.strxfrm(post.title.casefold()), locale.strxfrm(post.title)


def sort_posts(posts: Sequence[Post], sort_order: SortOrder) -> List[Post]:
    """Return *posts* stably sorted by *sort_order*.

    Raises:
        ValueError: if *sort_order* is not ``"newest"``, ``"oldest"`` or ``"title"``.
    """
    if sort_order == "newest":
        return sorted(posts, key=_date_key, reverse=True)
    if sort_order == "oldest":
        return sorted(posts, key=_date_key)
    if sort_order == "title":
        return sorted(posts, key=_title_key)
    raise ValueError(f"Unknown sort order: {sort_order!r}")


def derive_listing(
    posts: Sequence[Post],
    sort_order: SortOrder = "newest",
    query: str = "",
    tag_filter: Optional[str] = ALL_TAGS,
) -> List[Post]:
    """Return the display listing for *posts*: tag filter, then text filter, then sort."""
    return sort_posts(filter_by_query(filter_by_tag(posts, tag_filter), query), sort_order)


def collect_tags(posts: Sequence[Post]) -> List[str]:
    """Return ``"All"`` followed by every distinct tag in first-seen order."""
    seen: dict = {}
    for post in posts:
        for tag in post.tags or ():
            seen.setdefault(tag, None)
    seen.pop(ALL_TAGS, None)
    return [ALL_TAGS, *seen]


class ListingCache:
    """Memo of the last :func:`derive_listing` call.

    *posts* is compared by identity, so a freshly extracted list always
    recomputes; the other inputs are compared by value.  The returned list
    is shared between hits and must be treated as read-only.
    """

    def __init__(self) -> None:
        self._posts: Optional[Sequence[Post]] = None
        self._params: Optional[Tuple[str, str, Optional[str]]] = None
        self._result: List[Post] = []
        self._computations = 0

    def get(
        self,
        posts: Sequence[Post],
        sort_order: SortOrder = "newest",
        query: str = "",
        tag_filter: Optional[str] = ALL_TAGS,
    ) -> List[Post]:
        params = (sort_order, query, tag_filter)
        if self._posts is posts and self._params == params:
            return self._result

        self._result = derive_listing(posts, sort_order, query, tag_filter)
        self._posts = posts
        self._params = params
        self._computations += 1
        return self._result

    def clear(self) -> None:
        self._posts = None
        self._params = None
        self._result = []
