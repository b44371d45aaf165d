import json
import logging
import time
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

import requests

from .config import SOURCE
from .exceptions import CycleCancelled, FetchError, ParseError


class LightningSource:
    """Client for the upstream lightning page and for published snapshots"""

    def __init__(self, settings: Optional[Dict] = None, session: Optional[requests.Session] = None):
        """Initialize the source client"""
        self.config = dict((settings or {}).get('source', SOURCE))
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': self.config['user_agent']})
        self.logger = logging.getLogger(__name__)
        self.clock = time.monotonic

    def build_url(self, slug: str) -> str:
        """Publish path of the page for a time slug"""
        return self.config['url_template'].format(slug=slug)

    def _make_request(
        self,
        url: str,
        params: Optional[Dict] = None,
        cancel=None
    ) -> bytes:
        """GET a URL and read its body in chunks so the read can be abandoned"""
        self.logger.info(f"Making request to: {url}")
        self.logger.debug(f"Parameters: {params}")
        try:
            with self.session.get(
                url,
                params=params,
                timeout=self.config['timeout'],
                stream=True
            ) as response:
                response.raise_for_status()
                deadline = self.clock() + self.config['timeout']
                chunks = []
                for chunk in response.iter_content(chunk_size=self.config['chunk_size']):
                    if cancel is not None and cancel.cancelled:
                        raise CycleCancelled(f"Request to {url} abandoned for a newer cycle")
                    if self.clock() > deadline:
                        raise FetchError(
                            f"Request to {url} exceeded {self.config['timeout']}s while reading the body"
                        )
                    chunks.append(chunk)
                return b''.join(chunks)

        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request failed: {e}")
            raise FetchError(f"Request to {url} failed: {e}") from e

    def fetch_html(self, slug: str, use_proxy: Optional[bool] = None, cancel=None) -> str:
        """
        Download the lightning page for a time slug

        Args:
            slug: Time slug of the page
            use_proxy: Route through the CORS relay; defaults to the configured value
            cancel: Optional CancelToken checked while the body is read

        Returns:
            Page markup
        """
        url = self.build_url(slug)
        if use_proxy is None:
            use_proxy = self.config['use_proxy']

        if not use_proxy:
            body = self._make_request(url, cancel=cancel)
            try:
                return body.decode('utf-8')
            except UnicodeDecodeError as e:
                raise ParseError(f"Page {url} is not valid UTF-8: {e}") from e

        body = self._make_request(self.config['proxy_url'], params={'url': url}, cancel=cancel)
        try:
            envelope = json.loads(body)
        except ValueError as e:
            raise FetchError(f"Relay returned a non-JSON response for {url}") from e

        if not isinstance(envelope, dict):
            raise FetchError(f"Relay returned an unexpected response for {url}")

        status = envelope.get('status') or {}
        code = status.get('http_code') if isinstance(status, dict) else None
        if code is not None and not (isinstance(code, int) and 200 <= code < 300):
            raise FetchError(f"Upstream returned HTTP {code} for {url}")

        contents = envelope.get('contents')
        if not contents:
            raise FetchError(f"Relay returned no contents for {url} (status: {status})")
        return contents

    def fetch_snapshot(self, location: Optional[str] = None, cancel=None) -> List[Dict]:
        """
        Read a published snapshot from a URL or a local path

        URLs get a ``t=<epoch ms>`` parameter so caches never serve an old copy.
        """
        location = location or self.config.get('snapshot_url')
        if not location:
            raise FetchError("No snapshot location configured")

        if urlparse(str(location)).scheme in ('http', 'https'):
            body = self._make_request(
                location,
                params={'t': int(time.time() * 1000)},
                cancel=cancel
            )
        else:
            try:
                body = Path(location).read_bytes()
            except OSError as e:
                raise FetchError(f"Could not read snapshot {location}: {e}") from e

        try:
            records = json.loads(body)
        except ValueError as e:
            raise ParseError(f"Snapshot {location} is not valid JSON: {e}") from e
        if not isinstance(records, list):
            raise ParseError(f"Snapshot {location} is not a JSON array")
        return records
