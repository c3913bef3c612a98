"""Post and header extraction from a Notion page graph.

Posts are the pages of the database embedded in the root page: blocks of
type ``page`` whose parent table is ``collection``.  The root page's text
paragraphs above that database form the page header.
"""

import logging
from typing import Any, List, NamedTuple, Optional

from blogcore.models.post import Post
from blogcore.services.reader import (
    Block,
    PageGraph,
    get_block_title,
    get_page_property,
    get_text_content,
    map_image_url,
    parse_page_id,
)

logger = logging.getLogger(__name__)

PUBLISHED_PROPERTY = "Published"
DESCRIPTION_PROPERTY = "Description"
TAGS_PROPERTY = "Tags"


class ExtractedPage(NamedTuple):
    header: List[str]
    posts: List[Post]


def _is_post_block(block_id: str, block: Block, root_id: str) -> bool:
    return (
        block.get("type") == "page"
        and block.get("parent_table") == "collection"
        and block_id != root_id
        and block.get("id", block_id) != root_id
    )


def _as_timestamp(value: Any) -> Optional[int]:
    # bool is an int subclass; a checkbox named "Published" is not a date
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return None


def _as_tags(value: Any) -> Optional[List[str]]:
    if isinstance(value, list):
        return [str(tag) for tag in value]
    if isinstance(value, str) and value:
        return [value]
    return None


def _block_to_post(block_id: str, block: Block, graph: PageGraph) -> Optional[Post]:
    """Build a :class:`Post` from a database page, or ``None`` if it has no title."""
    title = get_block_title(block, graph)
    if not title:
        logger.debug("Skipping untitled database page %s", block_id)
        return None

    description = get_page_property(DESCRIPTION_PROPERTY, block, graph)
    fmt = block.get("format")
    cover = fmt.get("page_cover") if isinstance(fmt, dict) else None

    return Post(
        id=block_id,
        title=title,
        published_date=_as_timestamp(get_page_property(PUBLISHED_PROPERTY, block, graph)),
        description=description if isinstance(description, str) else None,
        tags=_as_tags(get_page_property(TAGS_PROPERTY, block, graph)),
        cover_image=map_image_url(cover if isinstance(cover, str) else None, block),
    )


def extract_posts(graph: PageGraph, root_id: str) -> List[Post]:
    """Return every titled database page below *root_id*.

    Order follows the record map and carries no meaning; sort before
    display.  A graph without the root page yields no posts.
    """
    if root_id not in graph:
        return []

    posts: List[Post] = []
    for block_id, block in graph.iter_blocks():
        if not _is_post_block(block_id, block, root_id):
            continue
        try:
            post = _block_to_post(block_id, block, graph)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.debug("Skipping malformed database page %s: %s", block_id, exc)
            continue
        if post is not None:
            posts.append(post)
    return posts


def extract_page_header(graph: PageGraph, root_id: str) -> List[str]:
    """Return the text paragraphs of the root page above its first database view."""
    root = graph.block(root_id)
    content = root.get("content") if root is not None else None
    if not isinstance(content, list):
        return []

    header: List[str] = []
    for child_id in content:
        child = graph.block(child_id)
        if child is None:
            continue
        if child.get("type") == "collection_view":
            break
        if child.get("type") != "text":
            continue
        properties = child.get("properties")
        title = properties.get("title") if isinstance(properties, dict) else None
        if title:
            header.append(get_text_content(title))
    return header


def extract_page(graph: PageGraph, root_id: str) -> ExtractedPage:
    """Extract header and posts for the root page *root_id*.

    *root_id* may be a bare 32-character id or a page URL; it is normalised
    to the dashed form used as record map keys when that form is present.
    """
    if root_id not in graph:
        normalised = parse_page_id(root_id)
        if normalised in graph:
            root_id = normalised
        else:
            logger.warning("Root page %s not found in record map", root_id)
            return ExtractedPage(header=[], posts=[])

    header = extract_page_header(graph, root_id)
    posts = extract_posts(graph, root_id)
    logger.info(
        "Extracted page",
        extra={"root_page_id": root_id, "posts": len(posts), "header_lines": len(header)},
    )
    return ExtractedPage(header=header, posts=posts)
