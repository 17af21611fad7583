"""
SearchController – turns query field input into rendered search results.

On Enter the query and start offset are read from the page, the search runs
on a worker thread, and the response is rendered through the page's result
and pagination templates into the two containers.

Every search takes a generation token; only the most recently issued search
may write to the page, so a slow response can never overwrite a newer one.
"""

import html
import re
import threading
from typing import Optional, Tuple

from errors import PageError, RenderError, SearchError
from logging_util import log
from page import (
    PAGINATION_CONTAINER,
    PAGINATION_TEMPLATE,
    QUERY_FIELD,
    RESULT_CONTAINER,
    RESULT_TEMPLATE,
    START_FIELD,
    SearchPage,
)
from search_client import SearchClient
from search_response import Channel, PageNavItem, SearchResponse
from web.template_engine import Template

ENTER_KEYS = ("Enter", "Return", 13, "\r", "\n")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_start_record(text) -> Optional[int]:
    """parseInt semantics: the leading integer of *text*, or None."""
    m = _LEADING_INT.match(str(text))
    return int(m.group(1)) if m else None


class SearchController:
    """Binds the search page to the search API."""

    def __init__(self, client: SearchClient, page: SearchPage):
        self.client = client
        self.page = page
        self.last_channel: Optional[Channel] = None
        self.last_error: Optional[SearchError] = None
        self.last_start_record = 0
        self._generation = 0
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def on_key_up(self, key) -> Optional[threading.Thread]:
        """Key-up on the query field; only Enter starts a search."""
        if key not in ENTER_KEYS:
            return None
        return self.submit()

    def submit(self) -> threading.Thread:
        """Search with the current contents of the query and startRecord fields."""
        query = self.page.field_value(QUERY_FIELD)
        raw_start = self.page.field_value(START_FIELD)
        start = parse_start_record(raw_start)
        if start is None:
            log("warning", f"startRecord '{raw_start}' is not a number, using 0")
            start = 0
        return self.execute_search(query, start)

    def navigate(self, item: PageNavItem) -> threading.Thread:
        """Follow a pagination item: move the start offset and search again."""
        self.page.set_field_value(START_FIELD, item.start_record)
        return self.submit()

    # ------------------------------------------------------------------
    # Search cycle
    # ------------------------------------------------------------------

    def execute_search(self, query_text: str, start_record: int) -> threading.Thread:
        """Start a search in the background and return its worker thread."""
        with self._lock:
            self._generation += 1
            token = self._generation
        worker = threading.Thread(
            target=self._run, args=(token, query_text, start_record), daemon=True
        )
        self._worker = worker
        worker.start()
        return worker

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the most recently started search; False if it is still running."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def render(self, response: SearchResponse, start_record: int) -> Tuple[str, str]:
        """Render (result markup, pagination markup) for *response*."""
        channel = response.channel
        result = Template(self.page.template(RESULT_TEMPLATE))
        pagination = Template(self.page.template(PAGINATION_TEMPLATE))
        return (result.render(channel.result_context(start_record)),
                pagination.render(channel.pagination_context()))

    def _run(self, token: int, query_text: str, start_record: int) -> None:
        try:
            response = self.client.search(query_text, start_record)
        except SearchError as e:
            self._on_error(token, query_text, e)
            return
        self._on_load(token, query_text, response, start_record)

    def _on_load(self, token: int, query_text: str, response: SearchResponse,
                 start_record: int) -> None:
        channel = response.channel
        with self._lock:
            if token != self._generation:
                log("debug", f"Discarding stale response #{token} (latest #{self._generation})")
                return
            try:
                result_html, pagination_html = self.render(response, start_record)
                self.page.set_inner_html(RESULT_CONTAINER, result_html)
                self.page.set_inner_html(PAGINATION_CONTAINER, pagination_html)
            except PageError as e:
                self._show_error(query_text, RenderError(f"cannot render results: {e}"))
                return
            self.last_channel = channel
            self.last_error = None
            self.last_start_record = start_record
        log("info", f"'{query_text}': {channel.total_results} hits, "
                    f"page {channel.page_of(start_record)} of {channel.pages}")

    def _on_error(self, token: int, query_text: str, error: SearchError) -> None:
        with self._lock:
            if token != self._generation:
                log("debug", f"Discarding stale failure #{token}: {error}")
                return
            self._show_error(query_text, error)

    def _show_error(self, query_text: str, error: SearchError) -> None:
        # caller holds self._lock
        self.last_channel = None
        self.last_error = error
        log("warning", f"Search for '{query_text}' failed: {error}")
        try:
            self.page.set_inner_html(
                RESULT_CONTAINER, f'<p class="error">Search failed: {html.escape(str(error))}</p>'
            )
            self.page.set_inner_html(PAGINATION_CONTAINER, "")
        except PageError as e:
            log("error", f"Cannot show search error: {e}")
