"""
Thin asynchronous wrapper around the yt-dlp command-line tool.

All media work is delegated to the external binary; this module only runs it,
interprets its exit status and locates the files it produced.
"""

import asyncio
import hashlib
import logging
import shutil
import weakref
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from media_roller.exceptions import InvalidMediaUrlError, MediaFetchError

log = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"
# Files yt-dlp leaves behind while a download is in progress
_PARTIAL_SUFFIXES = (".part", ".ytdl", ".temp", ".tmp")


@dataclass
class FetchResult:
    """The files downloaded for a single URL."""

    media_id: str
    directory: Path
    files: list[Path] = field(default_factory=list)
    cached: bool = False


def media_id_for(url: str) -> str:
    """Derives the stable download directory name for a URL."""
    return hashlib.sha1(url.encode("utf-8")).hexdigest()  # noqa: S324


def list_media_files(directory: Path) -> list[Path]:
    """Lists completed media files in a download directory."""
    if not directory.is_dir():
        return []
    return sorted(
        p
        for p in directory.iterdir()
        if p.is_file() and not p.name.endswith(_PARTIAL_SUFFIXES)
    )


class YtDlp:
    """Runs the yt-dlp binary for version checks, self-updates, and downloads."""

    def __init__(
        self,
        binary: str = "yt-dlp",
        update_channel: str = "nightly",
        command_timeout: float = 30.0,
        update_timeout: float = 300.0,
        fetch_timeout: float = 600.0,
    ):
        self.binary = binary
        self.update_channel = update_channel
        self.command_timeout = command_timeout
        self.update_timeout = update_timeout
        self.fetch_timeout = fetch_timeout
        # Entries vanish once no fetch for that id holds or awaits the lock
        self._fetch_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def _run(self, *args: str, timeout: float) -> tuple[int, str, str]:
        """
        Runs yt-dlp with the given arguments.

        Returns:
            A (returncode, stdout, stderr) tuple.

        Raises:
            FileNotFoundError: If the binary cannot be found.
            asyncio.TimeoutError: If the process outlives the timeout; it is killed.
        """
        log.debug(f"Running: {self.binary} {' '.join(args)}")
        process = await asyncio.create_subprocess_exec(
            self.binary,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise
        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace").strip(),
            stderr.decode("utf-8", errors="replace").strip(),
        )

    async def version(self) -> str:
        """Returns the installed yt-dlp version, or 'unknown' if it cannot be read."""
        try:
            returncode, stdout, stderr = await self._run(
                "--version", timeout=self.command_timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            log.warning(f"Could not read yt-dlp version: {e}")
            return UNKNOWN_VERSION

        if returncode != 0 or not stdout:
            log.warning(f"yt-dlp --version exited with {returncode}: {stderr}")
            return UNKNOWN_VERSION
        return stdout.splitlines()[0]

    async def update(self) -> bool:
        """
        Updates yt-dlp to the latest build of the configured channel.

        Returns:
            True if yt-dlp reported a successful update (or was already current).
        """
        log.info(f"Updating yt-dlp ({self.update_channel} channel)...")
        try:
            returncode, stdout, stderr = await self._run(
                "--update-to", self.update_channel, timeout=self.update_timeout
            )
        except FileNotFoundError:
            log.error(f"[red]yt-dlp binary not found: '{self.binary}'[/red]")
            return False
        except asyncio.TimeoutError:
            log.error(
                f"[red]yt-dlp update timed out after {self.update_timeout:.0f}s[/red]"
            )
            return False
        except OSError as e:
            log.error(f"[red]Failed to run yt-dlp update: {e}[/red]")
            return False

        if returncode != 0:
            log.warning(
                f"[yellow]yt-dlp update failed (exit {returncode}): "
                f"{stderr or stdout}[/yellow]"
            )
            return False

        log.debug(stdout)
        return True

    async def fetch(self, url: str, download_dir: Path) -> FetchResult:
        """
        Downloads the media behind a URL into its own directory.

        Previously fetched URLs are answered from disk without running yt-dlp.

        Raises:
            InvalidMediaUrlError: If the URL is not an http(s) URL.
            MediaFetchError: If yt-dlp fails or produces no files.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidMediaUrlError(f"Not a valid media URL: '{url}'")

        media_id = media_id_for(url)
        directory = download_dir / media_id
        lock = self._fetch_locks.setdefault(media_id, asyncio.Lock())

        async with lock:
            existing = await asyncio.to_thread(list_media_files, directory)
            if existing:
                log.info(f"Serving cached download for {url}")
                return FetchResult(media_id, directory, existing, cached=True)

            await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
            log.info(f"Fetching media: [cyan]{url}[/cyan]")
            try:
                returncode, stdout, stderr = await self._run(
                    "--no-progress",
                    "--restrict-filenames",
                    "--output",
                    str(directory / "%(title)s.%(ext)s"),
                    url,
                    timeout=self.fetch_timeout,
                )
            except FileNotFoundError as e:
                await asyncio.to_thread(shutil.rmtree, directory, True)
                raise MediaFetchError(f"yt-dlp binary not found: '{self.binary}'") from e
            except asyncio.TimeoutError as e:
                await asyncio.to_thread(shutil.rmtree, directory, True)
                raise MediaFetchError(
                    f"Download timed out after {self.fetch_timeout:.0f}s."
                ) from e

            files = await asyncio.to_thread(list_media_files, directory)
            if returncode != 0 or not files:
                await asyncio.to_thread(shutil.rmtree, directory, True)
                detail = stderr.splitlines()[-1] if stderr else "no files produced"
                raise MediaFetchError(f"yt-dlp failed for '{url}': {detail}")

            log.info(f"Fetched {len(files)} file(s) for {url}")
            return FetchResult(media_id, directory, files)
