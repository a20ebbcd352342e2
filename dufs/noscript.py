"""Plain HTML directory listings for clients without JavaScript."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

_NOSCRIPT_AGENTS = (
    "lynx/", "w3m/", "links ", "elinks/", "curl/", "wget/", "httpie/", "aria2/",
)
_UNITS = ("B", "KB", "MB", "GB", "TB")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_STYLE = """<style>
  td {
    padding: 0.2rem;
    text-align: left;
  }
  td:nth-child(3) {
    text-align: right;
  }
</style>
"""


@dataclass
class PathItem:
    """One entry of a directory listing."""

    name: str
    is_dir: bool
    mtime: int
    size: int


def _escape_pcdata(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _encode_uri(value: str) -> str:
    return "/".join(quote(part, safe="") for part in value.split("/"))


def detect_noscript(user_agent: str) -> bool:
    """Whether the user agent is a text-mode client."""
    return user_agent.startswith(_NOSCRIPT_AGENTS)


def format_mtime(mtime: int) -> str | None:
    """Format milliseconds since the epoch as UTC ISO 8601, or ``None`` if out of range."""
    try:
        moment = _EPOCH + timedelta(milliseconds=mtime)
    except OverflowError:
        return None
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def format_size(size: int, is_dir: bool, max_subpaths: int) -> str:
    """Human readable size, or item count for directories."""
    if is_dir:
        unit = "item" if size == 1 else "items"
        num = f">{max_subpaths - 1}" if size >= max_subpaths else str(size)
        return f"{num} {unit}"
    if size == 0:
        return "0 B"
    index = math.floor(math.log2(size) / 10.0)
    if index >= len(_UNITS):
        return f"{size / 1024.0 ** 5:.2f} PB"
    return f"{size / 1024.0 ** index:.2f} {_UNITS[index]}"


def _render_parent() -> str:
    value = "../"
    return f'<tr><td><a href="{value}?noscript">{value}</a></td><td></td><td></td></tr>'


def _render_path_item(item: PathItem, max_subpaths: int) -> str:
    href = _encode_uri(item.name)
    name = _escape_pcdata(item.name)
    if item.is_dir:
        href += "/?noscript"
        name += "/"
    mtime = format_mtime(item.mtime) or ""
    size = format_size(item.size, item.is_dir, max_subpaths)
    return f'<tr><td><a href="{href}">{name}</a></td><td>{mtime}</td><td>{size}</td></tr>'


def generate_noscript_html(href: str, paths: list[PathItem], max_subpaths: int) -> str:
    """Render the listing of ``href`` as a simple HTML table."""
    title = f"Index of {_escape_pcdata(href)}"
    parts = [
        "<html>\n",
        "<head>\n",
        f"<title>{title}</title>\n",
        _STYLE,
        "</head>\n",
        "<body>\n",
        f"<h1>{title}</h1>\n",
        "<table>\n",
        "  <tbody>\n",
        f"    {_render_parent()}\n",
    ]
    parts.extend(f"    {_render_path_item(item, max_subpaths)}\n" for item in paths)
    parts.extend(["  </tbody>\n", "</table>\n", "</body>\n"])
    return "".join(parts)