"""
L1 Domain — Version catalog shaping (pure).

Parses the precompiled feed, projects it to versions, picks the
artifact for an install, and orders python-build definitions.
No I/O, no subprocess.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from provisioner.core.models.install import PrecompiledEntry
from provisioner.services.python_install.data.constants import PRECOMPILED_FILENAME_RE
from provisioner.services.python_install.domain.platform_tag import PlatformTag

_FILENAME_RE = re.compile(PRECOMPILED_FILENAME_RE)
_DIGIT_LEADING_RE = re.compile(r"^\d+")


def parse_precompiled_feed(
    raw: str,
    platform: PlatformTag | None = None,
) -> list[PrecompiledEntry]:
    """Turn the feed (one artifact filename per line) into entries.

    Lines that are not cpython artifacts are dropped, and so are lines
    for other platforms when ``platform`` is given.  Feed order is
    preserved.
    """
    entries: list[PrecompiledEntry] = []
    for line in raw.splitlines():
        line = line.strip()
        if not line or (platform is not None and not platform.matches(line)):
            continue
        match = _FILENAME_RE.match(line)
        if match is None:
            continue
        entries.append(
            PrecompiledEntry(
                version=match.group(1),
                tag=match.group(2),
                filename=match.group(0),
            )
        )
    return entries


def for_platform(
    entries: Iterable[PrecompiledEntry],
    platform: PlatformTag,
) -> list[PrecompiledEntry]:
    """Entries whose filename carries the platform tag, feed order kept."""
    return [e for e in entries if platform.matches(e.filename)]


def unique_versions(entries: Iterable[PrecompiledEntry]) -> list[str]:
    """Versions in first-seen order, each once.

    One version shows up once per upstream release that rebuilt it.
    """
    seen: dict[str, None] = {}
    for entry in entries:
        seen.setdefault(entry.version, None)
    return list(seen)


def select_precompiled(
    entries: Sequence[PrecompiledEntry],
    version: str,
    platform: PlatformTag,
) -> PrecompiledEntry | None:
    """Pick the artifact to install for ``version`` on ``platform``.

    The **last** match in feed order wins: the feed lists releases
    oldest-first, so the last entry is the newest rebuild.
    """
    for entry in reversed(entries):
        if entry.version == version and platform.matches(entry.filename):
            return entry
    return None


def artifact_url(template: str, entry: PrecompiledEntry) -> str:
    """Fill the download URL template with the entry's tag and filename."""
    return template.format(tag=entry.tag, filename=entry.filename)


def sort_definitions(lines: Iterable[str]) -> list[str]:
    """Order ``python-build --definitions`` output.

    Stable partition: definitions starting with a digit (CPython
    releases) first, everything else (anaconda, pypy, *-dev …) after,
    each group keeping its original relative order.
    """
    versions = [line.strip() for line in lines if line.strip()]
    return sorted(versions, key=lambda v: _DIGIT_LEADING_RE.match(v) is None)
