"""
Source map document locator and reader.

Finds the map for a generated script by, in order:
1. ``SourceMap`` / ``X-SourceMap`` response header of the script
2. trailing ``//# sourceMappingURL=...`` comment in the script
3. the ``<script_url>.map`` naming convention

and reads it from an inline ``data:`` URL, local storage (a directory
mirroring the served bundles, or ``file://`` URLs below that directory) or
the network.

Script URLs arrive in client reports, so every network read, including each
redirect hop, is checked against the configured host allow list.
"""

import asyncio
import base64
import binascii
import re
import time
from pathlib import Path
from typing import Iterable, Mapping, Optional, Tuple
from urllib.parse import ParseResult, unquote, urljoin, urlparse

import httpx

from symbolicator.services.map_store import MapUnavailable
from symbolicator.utils.logging import get_logger, log_error_with_context, log_map_fetch
from symbolicator.utils.resilience import retry_with_backoff


logger = get_logger(__name__)

SOURCE_MAPPING_URL_RE = re.compile(
    r"(?://|/\*)\s*[#@]\s*sourceMappingURL=(?P<url>[^\s'\"*]+)\s*(?:\*/)?\s*$",
    re.MULTILINE,
)
SOURCE_MAP_HEADERS = ("SourceMap", "X-SourceMap")
MAP_SUFFIX = ".map"
MAX_REDIRECTS = 5
ANY_HOST = "*"


def is_host_allowed(host: Optional[str], allowed_hosts: Iterable[str]) -> bool:
    """
    Match a host name against allow-list entries.

    Entries are exact host names, ``*.example.com`` for any subdomain of
    ``example.com``, or ``*`` for every host.
    """
    if not host:
        return False
    host = host.lower().rstrip(".")
    for pattern in allowed_hosts:
        pattern = pattern.strip().lower()
        if pattern == ANY_HOST or host == pattern:
            return True
        if pattern.startswith("*.") and host.endswith(pattern[1:]):
            return True
    return False


def find_source_mapping_url(script_text: str) -> Optional[str]:
    """Return the last ``sourceMappingURL`` reference in a script, if any."""
    url = None
    for match in SOURCE_MAPPING_URL_RE.finditer(script_text):
        url = match.group("url")
    return url


def decode_data_url(url: str) -> str:
    """
    Decode an inline ``data:`` source map URL.

    Raises:
        MapUnavailable: If the URL is not a well-formed data URL
    """
    header, separator, payload = url.partition(",")
    if not separator or not header.startswith("data:"):
        raise MapUnavailable("data:", "malformed data URL")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True).decode("utf-8")
        return unquote(payload)
    except (binascii.Error, UnicodeDecodeError) as e:
        raise MapUnavailable("data:", f"undecodable data URL: {e}") from e


class SourceMapFetcher:
    """
    Reads source map documents for generated scripts.

    Owns an ``httpx.AsyncClient`` unless one is injected (tests inject a
    client backed by ``httpx.MockTransport``).
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        map_root: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        allowed_hosts: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            client: HTTP client to use; a new one is created when omitted
            map_root: Local directory mirroring served script/map paths; the
                only place ``file://`` URLs may point into
            timeout: Per-request timeout in seconds for an owned client
            max_retries: Attempts for transient network errors
            retry_delay: Base delay for exponential backoff between attempts
            allowed_hosts: Hosts the network may be read from (see
                :func:`is_host_allowed`); None allows every host
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._map_root = Path(map_root).resolve() if map_root else None
        self._allowed_hosts = list(allowed_hosts) if allowed_hosts is not None else [ANY_HOST]
        self._http_get = retry_with_backoff(
            max_retries=max_retries,
            base_delay=retry_delay,
            exceptions=(httpx.TransportError,),
        )(self._client.get)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "SourceMapFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def locate(self, script_url: str) -> str:
        """
        Determine where the map for ``script_url`` lives.

        Falls back to the ``.map`` convention when the script itself cannot
        be read or carries no reference.

        Raises:
            MapUnavailable: If the script names a map URL that cannot be parsed
        """
        try:
            script_text, headers = await self._read(script_url)
        except MapUnavailable as e:
            logger.debug(f"Script unreadable, using naming convention: {e}")
            return script_url + MAP_SUFFIX

        reference = None
        for header in SOURCE_MAP_HEADERS:
            if headers.get(header):
                reference = headers[header].strip()
                break
        if reference is None:
            reference = find_source_mapping_url(script_text)

        if not reference:
            return script_url + MAP_SUFFIX
        if reference.startswith("data:"):
            return reference
        try:
            return urljoin(script_url, reference)
        except ValueError as e:
            raise MapUnavailable(script_url, f"unparseable map reference {reference!r}: {e}") from e

    async def fetch(self, script_url: str) -> str:
        """
        Locate and read the map document for a generated script.

        Returns:
            Raw JSON text of the source map

        Raises:
            MapUnavailable: If the document cannot be located or read, for
                whatever reason
        """
        start_time = time.time()
        map_url: Optional[str] = None

        try:
            map_url = await self.locate(script_url)
            if map_url.startswith("data:"):
                document = decode_data_url(map_url)
            else:
                document, _ = await self._read(map_url)
        except MapUnavailable as e:
            log_map_fetch(
                logger,
                script_url=script_url,
                map_url=_loggable(map_url),
                duration_ms=(time.time() - start_time) * 1000,
                error=e.reason,
            )
            raise MapUnavailable(script_url, e.reason) from e
        except Exception as e:
            log_error_with_context(
                logger,
                f"Unexpected error reading source map for {script_url}",
                e,
                script_url=script_url,
            )
            raise MapUnavailable(script_url, f"unexpected error: {e}") from e

        log_map_fetch(
            logger,
            script_url=script_url,
            map_url=_loggable(map_url),
            duration_ms=(time.time() - start_time) * 1000,
        )
        return document

    async def _read(self, url: str) -> Tuple[str, Mapping[str, str]]:
        """Read a script or map from local storage or the network."""
        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise MapUnavailable(url, f"unparseable URL: {e}") from e

        if parsed.scheme == "file":
            return await self._read_file(url, self._file_path(url, parsed)), {}
        if parsed.scheme not in ("http", "https"):
            raise MapUnavailable(url, f"unsupported URL scheme '{parsed.scheme}'")

        mirrored = self._mirrored_path(url, parsed)
        if mirrored is not None and mirrored.is_file():
            return await self._read_file(url, mirrored), {}

        response = await self._get(url)
        return response.text, response.headers

    async def _get(self, url: str) -> httpx.Response:
        """GET ``url``, following redirects only to allowed hosts."""
        for _ in range(MAX_REDIRECTS + 1):
            self._check_host(url)
            try:
                response = await self._http_get(url, follow_redirects=False)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise MapUnavailable(url, f"request failed: {e}") from e

            if not response.is_redirect:
                if response.status_code != 200:
                    raise MapUnavailable(url, f"HTTP {response.status_code}")
                return response

            try:
                url = urljoin(url, response.headers["Location"])
            except ValueError as e:
                raise MapUnavailable(url, f"unparseable redirect: {e}") from e

        raise MapUnavailable(url, f"more than {MAX_REDIRECTS} redirects")

    def _check_host(self, url: str) -> None:
        try:
            host = urlparse(url).hostname
        except ValueError as e:
            raise MapUnavailable(url, f"unparseable URL: {e}") from e
        if not is_host_allowed(host, self._allowed_hosts):
            raise MapUnavailable(url, f"host '{host}' is not allowed")

    async def _read_file(self, url: str, path: Path) -> str:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, lambda: path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise MapUnavailable(url, "file not found") from e
        except (OSError, UnicodeDecodeError) as e:
            raise MapUnavailable(url, f"unreadable local file: {e}") from e

    def _file_path(self, url: str, parsed: ParseResult) -> Path:
        """Local path of a ``file://`` URL, which must lie below the map root."""
        if self._map_root is None:
            raise MapUnavailable(url, "file URLs require a map root")
        return self._below_map_root(url, Path(unquote(parsed.path)))

    def _mirrored_path(self, url: str, parsed: ParseResult) -> Optional[Path]:
        """Copy of an http(s) URL's path under the map root, if one is configured."""
        if self._map_root is None:
            return None
        return self._below_map_root(url, self._map_root / unquote(parsed.path).lstrip("/"))

    def _below_map_root(self, url: str, path: Path) -> Path:
        try:
            candidate = path.resolve()
        except (OSError, ValueError) as e:
            raise MapUnavailable(url, f"unusable local path: {e}") from e
        if not candidate.is_relative_to(self._map_root):
            raise MapUnavailable(url, "path escapes the map root")
        return candidate


def _loggable(map_url: Optional[str]) -> Optional[str]:
    """Map URL for log records; inline documents are not logged."""
    if map_url is not None and map_url.startswith("data:"):
        return "data:"
    return map_url
