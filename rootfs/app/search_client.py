"""
Searchlab search API client.

Issues GET <search_api>?startRecord=<n>&query=<q> and returns the validated
response. Every failure is raised as a SearchError subclass; no retries.
"""

from urllib.parse import quote_plus

import requests
import urllib3

from config import Config
from errors import MalformedResponse, SearchHTTPError, SearchTransportError
from logging_util import log
from search_response import SearchResponse


class SearchClient:
    """Thin wrapper around the yacysearch.json endpoint."""

    def __init__(self, cfg: Config):
        self.base_url = cfg.search_api
        self.timeout = cfg.request_timeout_sec
        self.percent_encode_query = cfg.percent_encode_query
        self.sess = requests.Session()
        self.sess.headers.update({"Content-type": "application/json"})
        self.sess.verify = cfg.verify_ssl
        if not cfg.verify_ssl:
            # self-signed certs on a local searchlab instance
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def build_url(self, query: str, start_record: int) -> str:
        """Request target; the query goes in as-is unless percent_encode_query is set."""
        if self.percent_encode_query:
            query = quote_plus(query)
        return f"{self.base_url}?startRecord={start_record}&query={query}"

    def search(self, query: str, start_record: int = 0) -> SearchResponse:
        """Run one search; raises SearchTransportError, SearchHTTPError or MalformedResponse."""
        url = self.build_url(query, start_record)
        log("debug", f"GET {url}")
        try:
            r = self.sess.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SearchTransportError(f"search API unreachable: {e}") from e

        if not 200 <= r.status_code < 300:
            raise SearchHTTPError(r.status_code, url, r.text[:200])

        try:
            payload = r.json()
        except ValueError as e:
            raise MalformedResponse(f"response is not JSON: {e}") from e

        response = SearchResponse.from_json(payload)
        channel = response.channel
        log("debug", f"'{query}' @ {start_record}: {channel.total_results} hits, "
                     f"{channel.items_per_page} per page")
        return response

    def close(self):
        self.sess.close()
