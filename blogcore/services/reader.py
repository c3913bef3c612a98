"""Read-only accessors over a Notion record map.

A record map is the JSON snapshot Notion returns for a page and everything
reachable from it:

    {"block": {<id>: {"value": {...}}}, "collection": {<id>: {"value": {...}}}}

Blocks refer to each other by id only, so every parent / child / collection
access goes through :class:`PageGraph` lookups.  Nothing here raises on
malformed content; unreadable values come back as ``""`` or ``None``.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlencode
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

NOTION_HOST = "https://www.notion.so"

Block = Dict[str, Any]

_PAGE_ID_RE = re.compile(r"\b([0-9a-f]{32})\b")
_DASHED_ID_RE = re.compile(
    r"\b([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})\b"
)


class PageGraph:
    """Immutable id-indexed view of a record map."""

    def __init__(self, record_map: Dict[str, Any]):
        self._blocks: Dict[str, Any] = record_map.get("block") or {}
        self._collections: Dict[str, Any] = record_map.get("collection") or {}

    @staticmethod
    def _unwrap(entry: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(entry, dict):
            return None
        value = entry.get("value")
        return value if isinstance(value, dict) else None

    def __contains__(self, block_id: object) -> bool:
        return isinstance(block_id, str) and self.block(block_id) is not None

    def __len__(self) -> int:
        return len(self._blocks)

    def block(self, block_id: str) -> Optional[Block]:
        if not isinstance(block_id, str):
            return None
        return self._unwrap(self._blocks.get(block_id))

    def collection(self, collection_id: str) -> Optional[Dict[str, Any]]:
        if not isinstance(collection_id, str):
            return None
        return self._unwrap(self._collections.get(collection_id))

    def iter_blocks(self) -> Iterator[Tuple[str, Block]]:
        """Yield ``(id, block)`` pairs in the record map's own order."""
        for block_id in self._blocks:
            block = self.block(block_id)
            if block is not None:
                yield block_id, block


def parse_page_id(raw: str) -> str:
    """Return *raw* as a dashed Notion id when it contains one, else unchanged.

    Accepts bare 32-hex ids and page URLs / slugs ending in one
    (``my-post-0123abcd...``).
    """
    lowered = raw.strip().lower()
    dashed = _DASHED_ID_RE.search(lowered)
    if dashed:
        return dashed.group(1)
    match = _PAGE_ID_RE.search(lowered.replace("-", " "))
    if not match:
        return raw
    h = match.group(1)
    return f"{h[:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:]}"


def get_text_content(rich_text: Any) -> str:
    """Concatenate the text of every segment of a rich-text value."""
    if not isinstance(rich_text, list):
        return ""
    parts: List[str] = []
    for segment in rich_text:
        if isinstance(segment, list) and segment and isinstance(segment[0], str):
            parts.append(segment[0])
        elif isinstance(segment, str):
            parts.append(segment)
    return "".join(parts)


def _properties(block: Block) -> Dict[str, Any]:
    properties = block.get("properties")
    return properties if isinstance(properties, dict) else {}


def get_block_title(block: Block, graph: PageGraph) -> str:
    """Return the display title of *block*, or ``""`` when it has none.

    Collection views have no title of their own and borrow the name of the
    collection they display.
    """
    properties = _properties(block)
    title = get_text_content(properties.get("title"))
    if title:
        return title
    if block.get("type") in ("collection_view", "collection_view_page"):
        collection = graph.collection(block.get("collection_id") or "")
        if collection:
            return get_text_content(collection.get("name"))
    return ""


def _date_decoration(rich_text: Any) -> Optional[Dict[str, Any]]:
    """Return the payload of the first ``["d", {...}]`` decoration."""
    if not isinstance(rich_text, list):
        return None
    for segment in rich_text:
        if not (isinstance(segment, list) and len(segment) > 1):
            continue
        if not isinstance(segment[1], list):
            continue
        for decoration in segment[1]:
            if (
                isinstance(decoration, list)
                and len(decoration) > 1
                and decoration[0] == "d"
                and isinstance(decoration[1], dict)
            ):
                return decoration[1]
    return None


def _to_millis(parsed: datetime, tz_name: Optional[str] = None) -> int:
    if parsed.tzinfo is None:
        tz = timezone.utc
        if isinstance(tz_name, str) and tz_name:
            try:
                tz = ZoneInfo(tz_name)
            except (ZoneInfoNotFoundError, ValueError):
                logger.debug("Unknown time zone %r, assuming UTC", tz_name)
        parsed = parsed.replace(tzinfo=tz)
    return int(parsed.timestamp() * 1000)


def _parse_date_value(value: Dict[str, Any]) -> Optional[int]:
    start_date = value.get("start_date")
    if not isinstance(start_date, str) or not start_date:
        return None
    text = start_date
    start_time = value.get("start_time")
    if value.get("type") in ("datetime", "datetimerange") and start_time:
        text = f"{start_date}T{start_time}"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _to_millis(parsed, value.get("time_zone"))


def _parse_date_text(text: str) -> Optional[int]:
    try:
        return _to_millis(datetime.fromisoformat(text.strip()))
    except ValueError:
        return None


def get_page_property(name: str, block: Block, graph: PageGraph) -> Any:
    """Look up the collection property called *name* on a database page.

    The property is located through the schema of the page's parent
    collection (names compare case-insensitively) and decoded by its
    schema type:

    * ``date`` – epoch milliseconds, UTC unless the value names a time zone
    * ``multi_select`` – list of option names
    * ``checkbox`` – bool
    * ``created_time`` / ``last_edited_time`` – the block's own timestamp
    * anything else – plain text

    Returns ``None`` when the page is not in a collection, the schema has no
    such property, or the page carries no value for it.
    """
    properties = _properties(block)
    if not properties:
        return None

    collection = graph.collection(block.get("parent_id") or "")
    if collection is None:
        return None

    wanted = name.lower()
    schema = collection.get("schema")
    if not isinstance(schema, dict):
        return None
    prop_id = next(
        (
            key
            for key, prop in schema.items()
            if isinstance(prop, dict) and str(prop.get("name", "")).lower() == wanted
        ),
        None,
    )
    if prop_id is None:
        return None

    prop_type = schema[prop_id].get("type")
    if prop_type in ("created_time", "last_edited_time"):
        return block.get(prop_type)

    raw = properties.get(prop_id)
    if raw is None:
        return None
    content = get_text_content(raw)

    if prop_type == "multi_select":
        options = [option.strip() for option in content.split(",")]
        return [option for option in options if option] or None
    if prop_type == "date":
        value = _date_decoration(raw)
        if value is not None:
            return _parse_date_value(value)
        return _parse_date_text(content) if content else None
    if prop_type == "checkbox":
        return content == "Yes"
    return content or None


def map_image_url(url: Optional[str], block: Block) -> Optional[str]:
    """Map a stored image reference to a URL a browser can load.

    Notion-hosted files go through the Notion image proxy, signed with the
    owning block.  ``data:`` URIs and Unsplash images are used as-is.
    """
    if not url:
        return None
    if url.startswith(("data:", "https://images.unsplash.com")):
        return url

    if url.startswith("/images"):
        url = f"{NOTION_HOST}{url}"
    path = url if url.startswith("/image") else f"/image/{quote(url, safe='')}"

    table = block.get("parent_table") or "block"
    if table in ("space", "collection", "team"):
        table = "block"
    path, _, existing = path.partition("?")
    params = dict(parse_qsl(existing, keep_blank_values=True))
    params.update({"table": table, "id": block.get("id", ""), "cache": "v2"})
    return f"{NOTION_HOST}{path}?{urlencode(params)}"
