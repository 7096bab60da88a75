"""URL helpers.

toolkeeper deals with two kinds of URLs:

- the catalog backend, configured as a bare host or a full URL
  (``localhost:7420``, ``http://127.0.0.1:7420/``)
- GitHub repositories added as sources, which users paste in many shapes
  (``https://github.com/owner/repo``, ``github.com/owner/repo.git``, a link to
  a file under ``/blob/main/...``)

These helpers normalize both so the rest of the code never string-munges URLs.
"""

from __future__ import annotations

from typing import Optional, Tuple
from urllib.parse import urlparse


def _ensure_scheme(url: str) -> str:
    url = (url or "").strip()
    if not url:
        return url
    # Allow "localhost:7420" style inputs.
    if "://" not in url:
        return "http://" + url
    return url


def root_url(base_url: str) -> str:
    """Return the server root URL: scheme://host:port

    Any path component is discarded; the backend API lives at the root.
    """
    if not (base_url or "").strip():
        return ""
    u = urlparse(_ensure_scheme(base_url))
    scheme = u.scheme or "http"
    netloc = u.netloc or u.path  # handle edge cases where netloc is empty
    return f"{scheme}://{netloc}".rstrip("/")


def parse_github_url(url: str) -> Optional[Tuple[str, str]]:
    """Extract ``(owner, repo)`` from a GitHub repository URL.

    Returns None when the URL does not point inside github.com or lacks either
    segment.
    """
    url = (url or "").strip().rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]

    parts = url.split("/")
    if "github.com" not in parts:
        return None

    pos = parts.index("github.com")
    if len(parts) <= pos + 2:
        return None

    owner, repo = parts[pos + 1], parts[pos + 2]
    if not owner or not repo:
        return None
    return owner, repo


def github_raw_url(url: str) -> str:
    """Turn a ``github.com/.../blob/<ref>/<path>`` link into its raw content URL.

    Anything else is returned unchanged.
    """
    if "github.com" not in url or "/blob/" not in url:
        return url
    return url.replace("github.com", "raw.githubusercontent.com", 1).replace("/blob/", "/", 1)
