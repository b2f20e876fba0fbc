"""
SoundCloud API operations.

Resolves curated set URLs to track lists and tracks to playable stream URLs
using the public api-v2 endpoints and a web client_id.
"""

from typing import Any, Optional

import requests
from loguru import logger

from .exceptions import (
    AuthenticationError,
    PlaylistUnavailableError,
    RateLimitedError,
    SoundCloudError,
    TrackUnavailableError,
)
from .models import StreamInfo, Track, Transcoding

# api-v2 rejects /tracks?ids= lookups with more ids than this
TRACK_BATCH_SIZE = 50

# Preferred stream transports, best first
PROTOCOL_PREFERENCE = ("hls", "progressive")


class SoundCloudClient:
    """Thin client over SoundCloud's api-v2.

    All methods are blocking (requests); the playback engine calls them
    through the async adapters in ``providers``.
    """

    def __init__(
        self,
        client_id: str,
        oauth_token: Optional[str] = None,
        api_base: str = "https://api-v2.soundcloud.com",
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.oauth_token = oauth_token or None
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def _params(self, extra: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        params: dict[str, Any] = {"client_id": self.client_id}
        if self.oauth_token:
            params["oauth_token"] = self.oauth_token
        if extra:
            params.update(extra)
        return params

    def _get(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        not_found: type[SoundCloudError] = SoundCloudError,
    ) -> Any:
        """GET a JSON document, mapping HTTP failures onto SoundCloud errors.

        Args:
            url: Absolute URL or path relative to the API base
            params: Extra query parameters (credentials are always added)
            not_found: Exception class raised for HTTP 404

        Raises:
            SoundCloudError: (or a subclass) on any HTTP or network failure
        """
        if not url.startswith("http"):
            url = f"{self.api_base}/{url.lstrip('/')}"

        try:
            response = requests.get(url, params=self._params(params), timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status in (401, 403):
                raise AuthenticationError(
                    "Authentication failed. The client_id may be invalid or expired.", status
                ) from e
            if status == 404:
                raise not_found(f"Resource not found: {url}", status) from e
            if status == 429:
                raise RateLimitedError("SoundCloud rate limit reached", status) from e
            raise SoundCloudError(f"API error: HTTP {status}", status) from e
        except requests.RequestException as e:
            raise SoundCloudError(f"Network error: {e}") from e
        except ValueError as e:
            raise SoundCloudError(f"Invalid JSON from {url}") from e

    def resolve(self, url: str) -> dict[str, Any]:
        """Resolve a public soundcloud.com URL to its API resource."""
        return self._get("/resolve", {"url": url}, not_found=PlaylistUnavailableError)

    def get_tracks(self, track_ids: list[int]) -> list[Track]:
        """Fetch full track payloads by id, preserving the requested order."""
        by_id: dict[int, Track] = {}
        for start in range(0, len(track_ids), TRACK_BATCH_SIZE):
            batch = track_ids[start : start + TRACK_BATCH_SIZE]
            data = self._get("/tracks", {"ids": ",".join(str(i) for i in batch)})
            for item in data or []:
                track = Track.from_api(item)
                by_id[track.id] = track
        return [by_id[i] for i in track_ids if i in by_id]

    def resolve_playlist_tracks(self, playlist_url: str) -> list[Track]:
        """Resolve a set URL to its ordered track list.

        Sets only embed full metadata for their first few entries; the rest
        come back as id-only stubs and are hydrated with /tracks lookups.
        """
        resolved = self.resolve(playlist_url)
        if not isinstance(resolved, dict) or "tracks" not in resolved:
            raise PlaylistUnavailableError(f"Not a playlist: {playlist_url}")

        entries = resolved.get("tracks") or []
        full: dict[int, Track] = {}
        stub_ids: list[int] = []
        for entry in entries:
            if "title" in entry and "media" in entry:
                track = Track.from_api(entry)
                full[track.id] = track
            elif "id" in entry:
                stub_ids.append(int(entry["id"]))

        if stub_ids:
            logger.debug(f"Hydrating {len(stub_ids)} stub tracks for {playlist_url}")
            for track in self.get_tracks(stub_ids):
                full[track.id] = track

        ordered = [full[int(e["id"])] for e in entries if "id" in e and int(e["id"]) in full]
        logger.info(f"Resolved {len(ordered)} tracks from {playlist_url}")
        return ordered

    @staticmethod
    def pick_transcoding(track: Track) -> Optional[Transcoding]:
        """Choose the transcoding to stream, preferring HLS over progressive."""
        for protocol in PROTOCOL_PREFERENCE:
            for transcoding in track.transcodings:
                if transcoding.protocol == protocol and transcoding.url:
                    return transcoding
        return None

    def get_stream_url(self, track: Track) -> Optional[StreamInfo]:
        """Resolve a track to a playable stream URL.

        Returns:
            StreamInfo, or None when the track offers no usable transcoding
        """
        transcoding = self.pick_transcoding(track)
        if transcoding is None:
            return None

        data = self._get(transcoding.url, not_found=TrackUnavailableError)
        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            return None
        return StreamInfo(url=url, protocol=transcoding.protocol)
