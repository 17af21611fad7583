"""
Tests for SearchController: the search cycle from Enter key to page update.

The search client is a MagicMock; pages are real SearchPage documents.
"""

import os
import sys
import threading
import unittest
from unittest.mock import MagicMock

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from controller import SearchController, parse_start_record
from errors import MalformedResponse, RenderError, SearchHTTPError, SearchTransportError
from page import PAGINATION_CONTAINER, RESULT_CONTAINER, START_FIELD, SearchPage
from search_client import SearchClient
from search_response import PageNavItem, SearchResponse


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------

RESULT_TPL = '{{=results}}{{@items}}<a href="{{%_val.link}}">{{%_val.title}}</a>{{/@items}}'
PAGINATION_TPL = '{{@items}}<li{{_val.same}} class="active"{{/_val.same}}>{{=_val.page}}</li>{{/@items}}'


def make_page(with_templates=True) -> SearchPage:
    templates = ""
    if with_templates:
        templates = (f'<script type="text/template" id="resulttemplate">{RESULT_TPL}</script>'
                     f'<script type="text/template" id="paginationtemplate">{PAGINATION_TPL}</script>')
    return SearchPage(
        '<html><body>'
        '<input type="text" id="query" value="help">'
        '<input type="hidden" id="startRecord" value="10">'
        '<div id="result"><p>previous</p></div>'
        '<ul id="pagination"><li>old</li></ul>'
        f'{templates}</body></html>'
    )


def make_response(total="25", title="A & B", link="http://a/?x=1&y=2") -> SearchResponse:
    return SearchResponse.from_json({"channels": [{
        "totalResults": total,
        "itemsPerPage": "10",
        "items": [{"title": title, "link": link}] if total != "0" else [],
        "pagenav": [
            {"startRecord": 0, "page": "&lt;", "same": False},
            {"startRecord": 0, "page": "1", "same": False},
            {"startRecord": 10, "page": "2", "same": True},
            {"startRecord": 20, "page": "3", "same": False},
            {"startRecord": 20, "page": "&gt;", "same": False},
        ],
    }]})


def make_controller(page=None, response=None):
    client = MagicMock(spec=SearchClient)
    client.search.return_value = response or make_response()
    return SearchController(client, page or make_page()), client


EXPECTED_RESULT = '<p>25 hits, page 2 of 3</p><a href="http://a/?x=1&amp;y=2">A &amp; B</a>'
EXPECTED_PAGINATION = ('<li>&lt;</li><li>1</li><li class="active">2</li>'
                       '<li>3</li><li>&gt;</li>')


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------

class TestTriggers(unittest.TestCase):

    def test_non_enter_key_is_ignored(self):
        ctrl, client = make_controller()
        self.assertIsNone(ctrl.on_key_up("a"))
        self.assertIsNone(ctrl.on_key_up(40))
        client.search.assert_not_called()

    def test_enter_reads_fields(self):
        ctrl, client = make_controller()
        for key in ("Enter", 13):
            with self.subTest(key=key):
                ctrl.on_key_up(key).join(5)
                client.search.assert_called_with("help", 10)

    def test_non_numeric_start_falls_back_to_zero(self):
        ctrl, client = make_controller()
        ctrl.page.set_field_value(START_FIELD, "abc")
        ctrl.submit().join(5)
        client.search.assert_called_once_with("help", 0)

    def test_navigate_moves_start_record(self):
        ctrl, client = make_controller()
        ctrl.navigate(PageNavItem(start_record=20, page="3")).join(5)
        client.search.assert_called_once_with("help", 20)
        self.assertEqual(ctrl.page.field_value(START_FIELD), "20")

    def test_parse_start_record(self):
        self.assertEqual(parse_start_record(" 42"), 42)
        self.assertEqual(parse_start_record("-5"), -5)
        self.assertEqual(parse_start_record("7.9"), 7)
        self.assertEqual(parse_start_record("10abc"), 10)
        self.assertIsNone(parse_start_record("x"))
        self.assertIsNone(parse_start_record(""))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestRendering(unittest.TestCase):

    def test_render_both_templates(self):
        ctrl, _ = make_controller()
        result, pagination = ctrl.render(make_response(), 10)
        self.assertEqual(result, EXPECTED_RESULT)
        self.assertEqual(pagination, EXPECTED_PAGINATION)

    def test_containers_are_replaced(self):
        ctrl, _ = make_controller()
        ctrl.execute_search("help", 10)
        self.assertTrue(ctrl.wait(5))
        self.assertEqual(ctrl.page.inner_html(RESULT_CONTAINER), EXPECTED_RESULT)
        self.assertEqual(ctrl.page.inner_html(PAGINATION_CONTAINER), EXPECTED_PAGINATION)
        self.assertNotIn("previous", ctrl.page.html())
        self.assertEqual(ctrl.last_channel.total_results, 25)
        self.assertEqual(ctrl.last_start_record, 10)
        self.assertIsNone(ctrl.last_error)

    def test_zero_results(self):
        ctrl, _ = make_controller(response=make_response(total="0"))
        ctrl.execute_search("nothing", 0)
        self.assertTrue(ctrl.wait(5))
        self.assertEqual(ctrl.page.inner_html(RESULT_CONTAINER), "")

    def test_missing_template_shows_error(self):
        ctrl, _ = make_controller(page=make_page(with_templates=False))
        ctrl.execute_search("help", 0)
        self.assertTrue(ctrl.wait(5))
        result = ctrl.page.inner_html(RESULT_CONTAINER)
        self.assertIn('class="error"', result)
        self.assertIn("resulttemplate", result)
        self.assertNotIn("previous", result)
        self.assertEqual(ctrl.page.inner_html(PAGINATION_CONTAINER), "")
        self.assertIsInstance(ctrl.last_error, RenderError)
        self.assertIsNone(ctrl.last_channel)

    def test_wait_without_search(self):
        ctrl, _ = make_controller()
        self.assertTrue(ctrl.wait(0))


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class TestFailures(unittest.TestCase):

    def test_errors_become_visible(self):
        for error in (SearchTransportError("refused"), SearchHTTPError(503),
                      MalformedResponse("no channels")):
            with self.subTest(error=error):
                ctrl, client = make_controller()
                client.search.side_effect = error
                ctrl.execute_search("help", 0)
                self.assertTrue(ctrl.wait(5))
                result = ctrl.page.inner_html(RESULT_CONTAINER)
                self.assertIn('class="error"', result)
                self.assertIn(str(error), result)
                self.assertEqual(ctrl.page.inner_html(PAGINATION_CONTAINER), "")
                self.assertIs(ctrl.last_error, error)
                self.assertIsNone(ctrl.last_channel)

    def test_error_message_is_escaped(self):
        ctrl, client = make_controller()
        client.search.side_effect = MalformedResponse("bad <tag>")
        ctrl.execute_search("help", 0)
        self.assertTrue(ctrl.wait(5))
        self.assertIn("bad &lt;tag&gt;", ctrl.page.inner_html(RESULT_CONTAINER))


# ---------------------------------------------------------------------------
# Overlapping searches
# ---------------------------------------------------------------------------

class TestStaleResponses(unittest.TestCase):

    def _controller_with_slow_search(self, slow_outcome):
        release = threading.Event()

        def search(query, start_record):
            if query == "slow":
                release.wait(5)
                if isinstance(slow_outcome, Exception):
                    raise slow_outcome
                return slow_outcome
            return make_response(title="fresh")

        ctrl, client = make_controller()
        client.search.side_effect = search
        return ctrl, release

    def test_stale_response_is_discarded(self):
        ctrl, release = self._controller_with_slow_search(make_response(title="stale"))
        slow = ctrl.execute_search("slow", 0)
        fast = ctrl.execute_search("fast", 0)
        fast.join(5)
        release.set()
        slow.join(5)
        result = ctrl.page.inner_html(RESULT_CONTAINER)
        self.assertIn("fresh", result)
        self.assertNotIn("stale", result)

    def test_stale_failure_is_discarded(self):
        ctrl, release = self._controller_with_slow_search(SearchTransportError("timeout"))
        slow = ctrl.execute_search("slow", 0)
        fast = ctrl.execute_search("fast", 0)
        fast.join(5)
        release.set()
        slow.join(5)
        self.assertIn("fresh", ctrl.page.inner_html(RESULT_CONTAINER))
        self.assertIsNone(ctrl.last_error)


if __name__ == "__main__":
    unittest.main()
