"""
The search page the widget reads from and writes into.

Stands in for the browser DOM: two input fields (query, startRecord), two
template elements holding raw t.js markup and two containers whose markup is
replaced after every search. Elements are addressed by id.
"""

import threading
from pathlib import Path
from typing import Union

from bs4 import BeautifulSoup

from errors import PageError

QUERY_FIELD = "query"
START_FIELD = "startRecord"
RESULT_TEMPLATE = "resulttemplate"
PAGINATION_TEMPLATE = "paginationtemplate"
RESULT_CONTAINER = "result"
PAGINATION_CONTAINER = "pagination"


class SearchPage:
    """BeautifulSoup document with the element accessors the controller needs.

    Container writes come from search worker threads and are serialized by
    a lock; the document is otherwise a plain html.parser tree.
    """

    def __init__(self, markup: str):
        self.soup = BeautifulSoup(markup, "html.parser")
        self._lock = threading.RLock()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SearchPage":
        return cls(Path(path).read_text(encoding="utf-8"))

    def _element(self, element_id: str):
        el = self.soup.find(id=element_id)
        if el is None:
            raise PageError(element_id)
        return el

    # ------------------------------------------------------------------
    # Input fields
    # ------------------------------------------------------------------

    def field_value(self, element_id: str) -> str:
        with self._lock:
            el = self._element(element_id)
            if el.name == "textarea":
                return el.get_text()
            return el.get("value", "")

    def set_field_value(self, element_id: str, value) -> None:
        with self._lock:
            self._element(element_id)["value"] = str(value)

    # ------------------------------------------------------------------
    # Templates and containers
    # ------------------------------------------------------------------

    def template(self, element_id: str) -> str:
        """Inner markup of a template element (verbatim for <script> templates)."""
        with self._lock:
            return self._element(element_id).decode_contents()

    def inner_html(self, element_id: str) -> str:
        with self._lock:
            return self._element(element_id).decode_contents()

    def set_inner_html(self, element_id: str, markup: str) -> None:
        """Replace the element's children with *markup*."""
        with self._lock:
            el = self._element(element_id)
            el.clear()
            if markup:
                el.append(BeautifulSoup(markup, "html.parser"))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def html(self) -> str:
        with self._lock:
            return str(self.soup)

    def write(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.html(), encoding="utf-8")
