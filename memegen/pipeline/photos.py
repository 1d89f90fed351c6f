"""Photo selection.

Maps a mood to a stock photo. The photo handed to composition has always passed
an existence check, or is the default photo.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import httpx
from loguru import logger

from memegen.errors import AssetNotFoundError
from memegen.models.meme import MoodLabel, PhotoAsset

PHOTO_TABLE: dict[MoodLabel, str] = {
    MoodLabel.TIRED: "duck23.jpeg",
    MoodLabel.EXCITED: "duck87.jpeg",
    MoodLabel.PROUD: "duck88.jpeg",
    MoodLabel.ENERGETIC: "duck89.jpeg",
    MoodLabel.DEFAULT: "duck76.jpeg",
}


class AssetStore(Protocol):
    async def exists(self, path: str) -> bool: ...

    async def load(self, path: str) -> bytes: ...


class LocalAssetStore:
    """Photos stored in a local directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self._root / path

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    async def load(self, path: str) -> bytes:
        resolved = self._resolve(path)
        if not resolved.is_file():
            raise AssetNotFoundError(str(resolved))
        return resolved.read_bytes()


class HttpAssetStore:
    """Photos served from a static HTTP location. Probes with HEAD, loads with GET."""

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def exists(self, path: str) -> bool:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                resp = await client.head(self._url(path))
            except httpx.HTTPError as e:
                logger.warning(f"Asset existence check failed for {path}: {e}")
                return False
        return resp.is_success

    async def load(self, path: str) -> bytes:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.get(self._url(path))
        if resp.status_code == 404:
            raise AssetNotFoundError(self._url(path))
        resp.raise_for_status()
        return resp.content


class PhotoSelector:
    def __init__(self, store: AssetStore, table: dict[MoodLabel, str] | None = None) -> None:
        self._store = store
        self._table = table or PHOTO_TABLE

    async def select(self, mood: MoodLabel) -> PhotoAsset:
        """Resolve a mood to a verified photo, demoting to the default photo if missing."""
        default_path = self._table[MoodLabel.DEFAULT]
        path = self._table.get(mood, default_path)

        if await self._store.exists(path):
            logger.info("Selected photo", mood=mood.value, path=path)
            return PhotoAsset(mood=mood, path=path, verified=True)

        logger.warning(
            f"Photo for mood '{mood.value}' not found at {path}, using default photo {default_path}",
            mood=mood.value,
            path=path,
        )
        verified = path != default_path and await self._store.exists(default_path)
        return PhotoAsset(mood=mood, path=default_path, verified=verified, demoted=path != default_path)
