"""
Typed view of the yacysearch.json response and the pagination arithmetic.

Only the first channel of a response is consumed. The service sends the
numeric channel fields as decimal strings ("totalResults": "25"), so they are
coerced here, at the response boundary; everything else in the channel is
passed to the templates untouched.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from errors import MalformedResponse


def page_count(total_results: int, items_per_page: int) -> int:
    """Number of result pages; always at least 1."""
    return total_results // items_per_page + 1


def current_page(start_record: int, items_per_page: int) -> int:
    """1-based page number that contains *start_record*."""
    return start_record // items_per_page + 1


def results_summary(total_results: int, items_per_page: int, start_record: int) -> str:
    """The "N hits, page P of T" paragraph shown above the result list."""
    if total_results == 0:
        return ""
    return (f"<p>{total_results} hits, page {current_page(start_record, items_per_page)}"
            f" of {page_count(total_results, items_per_page)}</p>")


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


# =============================================================================
# Pagination items
# =============================================================================

@dataclass
class PageNavItem:
    """One pagination control: "&lt;", a page number, or "&gt;"."""

    start_record: int
    page: str
    same: bool = False    # True for the page currently shown

    @property
    def is_previous(self) -> bool:
        return self.page in ("&lt;", "<")

    @property
    def is_next(self) -> bool:
        return self.page in ("&gt;", ">")

    @classmethod
    def from_dict(cls, raw: Dict) -> Optional["PageNavItem"]:
        if not isinstance(raw, dict):
            return None
        start = _to_int(raw.get("startRecord"))
        if start is None:
            return None
        return cls(start_record=start, page=str(raw.get("page", "")), same=bool(raw.get("same", False)))


# =============================================================================
# Response
# =============================================================================

@dataclass
class Channel:
    """First channel of a search response, validated."""

    total_results: int
    items_per_page: int
    pagenav: Optional[List[Dict]] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def pages(self) -> int:
        return page_count(self.total_results, self.items_per_page)

    def page_of(self, start_record: int) -> int:
        return current_page(start_record, self.items_per_page)

    def summary(self, start_record: int) -> str:
        return results_summary(self.total_results, self.items_per_page, start_record)

    def nav_items(self) -> List[PageNavItem]:
        items = []
        for raw in self.pagenav or []:
            item = PageNavItem.from_dict(raw)
            if item is not None:
                items.append(item)
        return items

    def result_context(self, start_record: int) -> Dict[str, Any]:
        """The channel plus the derived "results" summary, as a fresh dict."""
        context = dict(self.raw)
        context["results"] = self.summary(start_record)
        return context

    def pagination_context(self) -> Dict[str, Any]:
        return {"items": self.pagenav}


@dataclass
class SearchResponse:
    """A decoded response; *channel* is channels[0], already validated."""

    channel: Channel
    channels: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "SearchResponse":
        """Validate a decoded JSON body; raises MalformedResponse."""
        if not isinstance(payload, dict):
            raise MalformedResponse(f"expected a JSON object, got {type(payload).__name__}", payload)
        channels = payload.get("channels")
        if not isinstance(channels, list) or not channels:
            raise MalformedResponse("response has no channels", payload)
        return cls(channel=_parse_channel(channels[0]), channels=channels)


def _parse_channel(raw: Any) -> Channel:
    if not isinstance(raw, dict):
        raise MalformedResponse("channels[0] is not an object", raw)

    total = _to_int(raw.get("totalResults"))
    if total is None or total < 0:
        raise MalformedResponse(f"invalid totalResults: {raw.get('totalResults')!r}", raw)

    per_page = _to_int(raw.get("itemsPerPage"))
    if per_page is None or per_page <= 0:
        raise MalformedResponse(f"invalid itemsPerPage: {raw.get('itemsPerPage')!r}", raw)

    pagenav = raw.get("pagenav")
    if pagenav is not None and not isinstance(pagenav, list):
        raise MalformedResponse("pagenav is not a list", raw)

    return Channel(total_results=total, items_per_page=per_page, pagenav=pagenav, raw=raw)
