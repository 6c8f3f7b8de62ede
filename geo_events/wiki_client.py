"""
wiki_client.py - Minimal MediaWiki API client.

Wraps the three encyclopedia calls used for city metadata: title search,
category lookup and page details (canonical URL plus thumbnail). Requests are
throttled and retried with tenacity on transport errors, 403, 429 and 5xx
responses using an incrementing wait.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from .geo_config import GeoConfig

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {403, 408, 429, 500, 502, 503, 504}


class WikiRequestError(Exception):
    """Raised when an encyclopedia request fails for good."""


class RetryableWikiError(WikiRequestError):
    """Transient failure, retried before surfacing as WikiRequestError."""


class WikiClient:
    """
    MediaWiki API client.

    Attributes:
        api_url (str): Endpoint, e.g. https://en.wikipedia.org/w/api.php.
        session (requests.Session): HTTP session.
        stats (Dict[str, int]): requests and retries counters.
    """

    def __init__(
        self,
        geo_config: Optional[GeoConfig] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.geo_config = geo_config if geo_config else GeoConfig()
        self.api_url = self.geo_config.wiki_api_url
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({'User-Agent': self.geo_config.user_agent, 'Accept': 'application/json'})
        self.sleep = sleep
        self.stats: Dict[str, int] = {'requests': 0, 'retries': 0}

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'WikiClient':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get_json_once(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if self.geo_config.wiki_request_interval > 0:
            self.sleep(self.geo_config.wiki_request_interval)
        self.stats['requests'] += 1
        try:
            response = self.session.get(self.api_url, params=params, timeout=self.geo_config.wiki_timeout)
        except requests.RequestException as e:
            raise RetryableWikiError(f"Request to {self.api_url} failed: {e}") from e

        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableWikiError(f"Retryable HTTP status {status} from {self.api_url}")
        if status >= 400:
            raise WikiRequestError(f"HTTP status {status} from {self.api_url}")
        try:
            payload = response.json()
        except ValueError as e:
            raise WikiRequestError(f"Invalid JSON payload from {self.api_url}") from e
        if 'error' in payload:
            raise WikiRequestError(f"API error: {payload['error'].get('info', payload['error'])}")
        return payload

    def _before_retry(self, retry_state) -> None:
        self.stats['retries'] += 1
        logger.warning(
            f"Retrying wiki request (attempt {retry_state.attempt_number + 1}) "
            f"after: {retry_state.outcome.exception()}"
        )

    def get_json(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one GET request to the API, retrying transient failures.

        Args:
            params (Dict[str, Any]): Query parameters, 'format' is added.

        Returns:
            Dict[str, Any]: Decoded JSON payload.

        Raises:
            WikiRequestError: On a permanent failure or when retries run out.
        """
        query = {'format': 'json', 'formatversion': 2, **params}
        retrying = Retrying(
            stop=stop_after_attempt(max(1, self.geo_config.wiki_max_attempts)),
            wait=wait_incrementing(start=1, increment=1),
            retry=retry_if_exception_type(RetryableWikiError),
            before_sleep=self._before_retry,
            sleep=self.sleep,
            reraise=True,
        )
        return retrying(self._get_json_once, query)

    def search_titles(self, query: str, limit: int = 10) -> List[str]:
        """Article titles for a full text search, in search rank order."""
        payload = self.get_json({
            'action': 'query',
            'list': 'search',
            'srsearch': query,
            'srlimit': limit,
            'srnamespace': 0,
        })
        return [hit['title'] for hit in payload.get('query', {}).get('search', [])]

    def categories(self, title: str) -> List[str]:
        """Category titles of an article, hidden categories included."""
        payload = self.get_json({
            'action': 'query',
            'prop': 'categories',
            'titles': title,
            'cllimit': 'max',
            'redirects': 1,
        })
        categories: List[str] = []
        for page in payload.get('query', {}).get('pages', []):
            categories.extend(c['title'] for c in page.get('categories', []))
        return categories

    def page_details(self, title: str, thumbnail_size: int = 400) -> Tuple[str, str]:
        """
        Canonical article URL and thumbnail URL for a title.

        Returns:
            Tuple[str, str]: (article_url, thumbnail_url); either may be empty.
        """
        payload = self.get_json({
            'action': 'query',
            'prop': 'pageimages|info',
            'inprop': 'url',
            'titles': title,
            'pithumbsize': thumbnail_size,
            'redirects': 1,
        })
        pages = payload.get('query', {}).get('pages', [])
        if not pages:
            return '', ''
        page = pages[0]
        return page.get('fullurl', '') or '', (page.get('thumbnail') or {}).get('source', '') or ''
