"""MediaWiki Action API adapter.

Implements the core host ports (titles, users, log store, file repository) and
the recent-changes feed against a wiki's api.php. All requests are plain GETs
with ``format=json&formatversion=2``.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime
from typing import Any, Optional

from adapters.mediawiki_mapper import log_entry_from_api, to_mw_timestamp
from core.errors import ResolutionError, WikiApiError
from core.models import LogEntry, UserProfile

LOGGER = logging.getLogger(__name__)

# Same set MediaWiki leaves unencoded in titles (wfUrlencode).
TITLE_SAFE_CHARS = ";@$!*(),/~:"

RC_PROPS = "title|ids|sizes|flags|user|comment|timestamp|loginfo"
LOG_PROPS = "ids|title|type|user|timestamp|comment|details"
LOG_LOOKUP_LIMIT = 50


class MediaWikiClient:
    """Thin Action API client that satisfies the core host ports."""

    def __init__(self, api_url: str, user_agent: str, timeout: float = 10.0) -> None:
        self._api_url = api_url
        self._user_agent = user_agent
        self._timeout = timeout
        self._site_info: Optional[dict[str, Any]] = None

    @property
    def api_url(self) -> str:
        return self._api_url

    def _get(self, params: dict[str, str]) -> dict[str, Any]:
        query = {"action": "query", "format": "json", "formatversion": "2", **params}
        url = f"{self._api_url}?{urllib.parse.urlencode(query)}"
        request = urllib.request.Request(url, method="GET")
        request.add_header("User-Agent", self._user_agent)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                body = response.read()
        except urllib.error.HTTPError as e:
            raise WikiApiError(f"API request failed: HTTP {e.code} {e.reason}") from e
        except urllib.error.URLError as e:
            raise WikiApiError(f"API connection failed: {e.reason}") from e
        except (OSError, http.client.HTTPException) as e:
            # Read timeouts, resets and truncated bodies after the connect.
            raise WikiApiError(f"API request failed: {e}") from e

        try:
            data = json.loads(body)
        except ValueError as e:
            raise WikiApiError("API returned a non-JSON response") from e

        if "error" in data:
            error = data["error"]
            code = error.get("code")
            raise WikiApiError(f"API error {code}: {error.get('info', '')}", code=code)
        for warning in (data.get("warnings") or {}).values():
            LOGGER.debug("API warning: %s", warning)
        return data

    def site_info(self) -> dict[str, Any]:
        """Return (and cache) the ``general`` siteinfo block."""

        if self._site_info is None:
            data = self._get({"meta": "siteinfo", "siprop": "general"})
            self._site_info = data["query"]["general"]
        return self._site_info

    def _server(self) -> str:
        server = self.site_info()["server"]
        if server.startswith("//"):
            # Protocol-relative $wgServer: reuse the scheme we reach the API with.
            scheme = urllib.parse.urlparse(self._api_url).scheme or "https"
            server = f"{scheme}:{server}"
        return server

    # TitlePort

    def prefixed_text(self, title: str) -> str:
        if not title or not title.strip():
            raise ResolutionError("Change has no resolvable title")
        return title.replace("_", " ").strip()

    def full_url(self, title: str, query: str = "") -> str:
        """Absolute URL of ``title``, optionally with a query string."""

        dbkey = urllib.parse.quote(self.prefixed_text(title).replace(" ", "_"), safe=TITLE_SAFE_CHARS)
        general = self.site_info()
        if not query:
            return self._server() + general["articlepath"].replace("$1", dbkey)
        return f"{self._server()}{general['script']}?title={dbkey}&{query}"

    # UserPort

    def profile(self, user_name: Optional[str]) -> UserProfile:
        if not user_name:
            raise ResolutionError("Change has no resolvable performer")
        return UserProfile(name=user_name, url=self.full_url(f"User:{user_name}"))

    # LogStorePort

    def get_log_entry(
        self, log_id: int, log_type: Optional[str] = None, title: Optional[str] = None
    ) -> Optional[LogEntry]:
        """Find a log entry by id; hidden or suppressed entries count as missing.

        The API has no lookup by log id, so the type and title narrow the
        ``list=logevents`` query and the id picks the row.
        """

        params = {"list": "logevents", "leprop": LOG_PROPS, "lelimit": str(LOG_LOOKUP_LIMIT)}
        if log_type:
            params["letype"] = log_type
        if title:
            params["letitle"] = title
        data = self._get(params)
        for row in data.get("query", {}).get("logevents", []):
            if row.get("logid") != log_id:
                continue
            if row.get("actionhidden") or row.get("suppressed"):
                return None
            return log_entry_from_api(row)
        return None

    # FileRepositoryPort

    def file_url(self, title: str) -> str:
        data = self._get({"prop": "imageinfo", "iiprop": "url", "titles": title})
        pages = data.get("query", {}).get("pages", [])
        imageinfo = pages[0].get("imageinfo") if pages else None
        if not imageinfo:
            raise ResolutionError(f"No file found for {title}")
        return imageinfo[0]["url"]

    # Recent changes feed

    def recent_changes(
        self, since: Optional[datetime] = None, after_rc_id: int = 0, limit: int = 50
    ) -> list[dict[str, Any]]:
        """Return up to ``limit`` changes after ``(since, after_rc_id)``, oldest first."""

        params = {"list": "recentchanges", "rcprop": RC_PROPS, "rcdir": "newer", "rclimit": str(limit)}
        if since is not None:
            # rccontinue resumes at an exact (timestamp, rcid) position.
            params["rccontinue"] = f"{to_mw_timestamp(since)}|{after_rc_id + 1}"
        data = self._get(params)
        rows = data.get("query", {}).get("recentchanges", [])
        return [row for row in rows if int(row.get("rcid", 0)) > after_rc_id]

    def latest_changes(self, count: int) -> list[dict[str, Any]]:
        """Return the newest ``count`` changes, oldest first."""

        params = {"list": "recentchanges", "rcprop": RC_PROPS, "rcdir": "older", "rclimit": str(count)}
        data = self._get(params)
        return list(reversed(data.get("query", {}).get("recentchanges", [])))
