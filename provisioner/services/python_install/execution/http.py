"""
L4 Execution — HTTP fetch.

``get_text`` for small text documents (feeds, patches, version
lists) and ``download_file`` for release tarballs.  No retries here;
failures raise ``HttpError`` and the caller decides.
"""

from __future__ import annotations

import http.client
import logging
import os
import urllib.error
import urllib.request
from pathlib import Path

from provisioner import __version__
from provisioner.services.python_install.data.constants import (
    DOWNLOAD_TIMEOUT,
    HTTP_TIMEOUT,
)

logger = logging.getLogger(__name__)

_USER_AGENT = f"provisioner/{__version__}"
_CHUNK = 64 * 1024


class HttpError(Exception):
    """A fetch failed (network, HTTP status, or local write)."""


def _request(url: str) -> urllib.request.Request:
    return urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})


def get_text(url: str, *, timeout: float = HTTP_TIMEOUT) -> str:
    """GET ``url`` and return the body decoded as UTF-8.

    Raises:
        HttpError: On any network or HTTP failure.
    """
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(_request(url), timeout=timeout) as resp:
            return resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        raise HttpError(f"GET {url} failed: HTTP {e.code}") from e
    except (urllib.error.URLError, OSError, http.client.HTTPException, UnicodeDecodeError) as e:
        raise HttpError(f"GET {url} failed: {e}") from e


def download_file(url: str, dest: Path, *, timeout: float = DOWNLOAD_TIMEOUT) -> Path:
    """Stream ``url`` to ``dest``.

    Writes to ``dest.part`` first and renames on completion, so a
    crashed download never leaves a truncated file under ``dest``.

    Raises:
        HttpError: On any network, HTTP or filesystem failure.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".part")
    logger.debug("Downloading %s → %s", url, dest)

    try:
        with urllib.request.urlopen(_request(url), timeout=timeout) as resp:
            with open(partial, "wb") as f:
                while True:
                    chunk = resp.read(_CHUNK)
                    if not chunk:
                        break
                    f.write(chunk)
        os.replace(partial, dest)
    except urllib.error.HTTPError as e:
        partial.unlink(missing_ok=True)
        raise HttpError(f"Download {url} failed: HTTP {e.code}") from e
    except (urllib.error.URLError, OSError, http.client.HTTPException) as e:
        partial.unlink(missing_ok=True)
        raise HttpError(f"Download {url} failed: {e}") from e

    return dest
