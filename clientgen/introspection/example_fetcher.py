"""
Example Fetcher - Fetches the web service catalog and response examples.

Features:
- Catalog discovery from /api/webservices/list
- Response examples from /api/webservices/response_example
- Non-JSON examples wrapped into a {format, example} envelope
- File cache of raw examples with TTL
"""

import json
import logging
import threading
import time
from typing import Any, Dict, Optional
from pathlib import Path
import hashlib

import requests

from clientgen.schema.errors import FetchError, UnsupportedFormat

from .models import WebServiceCatalog

logger = logging.getLogger(__name__)

# Formats delivered as raw text; only "json" is decoded
OPAQUE_FORMATS = ("txt", "xml", "svg", "log", "proto")


class ExampleFetcher:
    """
    Reads the self-describing metadata of a server

    Usage:
    ```python
    fetcher = ExampleFetcher(host="http://localhost:9000", auth="Basic YWRtaW46YWRtaW4=")
    catalog = fetcher.fetch_catalog()
    example = fetcher.fetch_example("issues", "search")
    ```
    """

    WEBSERVICES_PATH = "/api/webservices/list"
    RESPONSE_EXAMPLE_PATH = "/api/webservices/response_example"

    # Cache TTL in seconds (1 hour)
    CACHE_TTL = 3600

    def __init__(
        self,
        host: str,
        auth: Optional[str] = None,
        timeout: int = 10,
        cache_dir: Optional[Path] = None,
        cache_ttl: int = CACHE_TTL,
    ):
        """
        Initialize Example Fetcher

        Args:
            host: Server base URL (e.g., http://localhost:9000)
            auth: Raw Authorization header value (e.g., "Basic ...")
            timeout: HTTP request timeout in seconds
            cache_dir: Directory for caching raw examples (disabled when None)
            cache_ttl: Cache lifetime in seconds
        """
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.cache_dir = cache_dir
        self.cache_ttl = cache_ttl
        if self.cache_dir is not None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.auth = auth
        # requests.Session is not thread-safe; each worker thread gets its own
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """HTTP session of the calling thread"""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"Accept": "application/json"})
            if self.auth:
                session.headers.update({"Authorization": self.auth})
            self._local.session = session
        return session

    def fetch_catalog(self, include_internals: bool = False) -> WebServiceCatalog:
        """
        Fetch the list of web services

        Raises:
            FetchError: Request failed, was unauthorized, or is not JSON
        """
        url = f"{self.host}{self.WEBSERVICES_PATH}"
        params = {"include_internals": "true"} if include_internals else None
        logger.debug(f"Fetching web services from {url}")

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            if response.status_code == 401:
                raise FetchError(f"Authorization failed for {url}")
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Could not fetch web services from {url}: {e}") from e
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}") from e

        return WebServiceCatalog.from_dict(data)

    def fetch_example(self, endpoint: str, action_key: str) -> Any:
        """
        Fetch and decode the response example of one action

        Returns:
            Decoded JSON value, or {"format": tag, "example": text} for
            non-JSON formats

        Raises:
            FetchError: Transport failure, empty or invalid example
            UnsupportedFormat: Format tag outside the known set
        """
        document = self._load_document(endpoint, action_key)

        try:
            decoded = self.decode_example(document)
        except (FetchError, UnsupportedFormat) as e:
            raise e.with_context(endpoint, action_key)
        return decoded

    @staticmethod
    def decode_example(document: Dict[str, Any]) -> Any:
        """Turn a raw {format, example} document into the parser's input"""
        format_tag = document.get("format", "")
        example = document.get("example", "")

        if format_tag == "json":
            if not example or not str(example).strip():
                raise FetchError("Empty JSON example")
            try:
                # the example is itself a JSON string
                return json.loads(example)
            except json.JSONDecodeError as e:
                raise FetchError(f"Could not decode JSON example: {e}") from e

        if format_tag in OPAQUE_FORMATS:
            return {"format": format_tag, "example": example}

        raise UnsupportedFormat(format_tag)

    def _load_document(self, endpoint: str, action_key: str) -> Dict[str, Any]:
        controller = f"api/{endpoint}"

        cached = self._try_load_file_cache(controller, action_key)
        if cached is not None:
            return cached

        url = f"{self.host}{self.RESPONSE_EXAMPLE_PATH}"
        params = {"action": action_key, "controller": controller}
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            document = response.json()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Could not fetch example: {e}", endpoint=endpoint, action=action_key) from e
        except ValueError as e:
            raise FetchError(f"Could not decode example body: {e}", endpoint=endpoint, action=action_key) from e

        if not isinstance(document, dict):
            raise FetchError("Example body is not an object", endpoint=endpoint, action=action_key)

        self._save_file_cache(controller, action_key, document)
        return document

    def _try_load_file_cache(self, controller: str, action_key: str) -> Optional[Dict[str, Any]]:
        """Try to load a cached example document"""
        if self.cache_dir is None:
            return None

        cache_file = self._get_cache_file_path(controller, action_key)
        if not cache_file.exists():
            return None

        if time.time() - cache_file.stat().st_mtime > self.cache_ttl:
            logger.debug(f"Cache file expired: {cache_file}")
            return None

        try:
            with open(cache_file, "r") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Error loading cache file {cache_file}: {e}")
            return None

    def _save_file_cache(self, controller: str, action_key: str, document: Dict[str, Any]) -> None:
        if self.cache_dir is None:
            return

        cache_file = self._get_cache_file_path(controller, action_key)
        try:
            with open(cache_file, "w") as f:
                json.dump(document, f, indent=2, sort_keys=True)
            logger.debug(f"Saved example to cache file: {cache_file}")
        except OSError as e:
            logger.warning(f"Error saving cache file: {e}")

    def _get_cache_file_path(self, controller: str, action_key: str) -> Path:
        """Cache file path based on host, controller and action"""
        # Hash the host to avoid filesystem issues
        host_hash = hashlib.md5(self.host.encode()).hexdigest()[:8]
        safe_controller = controller.replace("/", "_")
        return self.cache_dir / f"example_{host_hash}_{safe_controller}_{action_key}.json"
