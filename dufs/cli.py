"""Command-line definition, bind addresses and archive compression levels."""

from __future__ import annotations

import argparse
import enum
import ipaddress
import os
import zipfile
from collections.abc import Iterable

PROG = "dufs"
VERSION = "0.45.0"
DESCRIPTION = "Dufs is a distinctive utility file server"
DEFAULT_BIND = ("0.0.0.0", "::")
DEFAULT_PORT = 5000
SHELLS = ("bash", "elvish", "fish", "powershell", "zsh")

IpAddr = ipaddress.IPv4Address | ipaddress.IPv6Address
BindAddr = IpAddr | str

# Option destinations that may also be supplied through the environment.
ENV_VARS = {
    "serve_path": "DUFS_SERVE_PATH",
    "config": "DUFS_CONFIG",
    "bind": "DUFS_BIND",
    "port": "DUFS_PORT",
    "path_prefix": "DUFS_PATH_PREFIX",
    "hidden": "DUFS_HIDDEN",
    "auth": "DUFS_AUTH",
    "auth_method": "DUFS_AUTH_METHOD",
    "allow_all": "DUFS_ALLOW_ALL",
    "allow_upload": "DUFS_ALLOW_UPLOAD",
    "allow_delete": "DUFS_ALLOW_DELETE",
    "allow_search": "DUFS_ALLOW_SEARCH",
    "allow_symlink": "DUFS_ALLOW_SYMLINK",
    "allow_archive": "DUFS_ALLOW_ARCHIVE",
    "allow_hash": "DUFS_ALLOW_HASH",
    "enable_cors": "DUFS_ENABLE_CORS",
    "render_index": "DUFS_RENDER_INDEX",
    "render_try_index": "DUFS_RENDER_TRY_INDEX",
    "render_spa": "DUFS_RENDER_SPA",
    "assets": "DUFS_ASSETS",
    "log_format": "DUFS_LOG_FORMAT",
    "log_file": "DUFS_LOG_FILE",
    "compress": "DUFS_COMPRESS",
    "tls_cert": "DUFS_TLS_CERT",
    "tls_key": "DUFS_TLS_KEY",
}

_SUPPORTS_UNIX_SOCKETS = os.name == "posix"


class Compress(str, enum.Enum):
    """Compression level used when serving folders as zip archives."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    def __str__(self) -> str:
        return self.value

    def to_compression(self) -> int:
        """The matching ``zipfile`` compression method."""
        return {
            Compress.NONE: zipfile.ZIP_STORED,
            Compress.LOW: zipfile.ZIP_DEFLATED,
            Compress.MEDIUM: zipfile.ZIP_BZIP2,
            Compress.HIGH: zipfile.ZIP_LZMA,
        }[self]


def _port(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port `{text}`") from None
    if not 0 <= value <= 65535:
        raise argparse.ArgumentTypeError(f"port `{text}` is not in 0..=65535")
    return value


def _comma_list(text: str) -> list[str]:
    return text.split(",")


def _compress(text: str) -> Compress:
    try:
        return Compress(text)
    except ValueError:
        choices = ", ".join(c.value for c in Compress)
        raise argparse.ArgumentTypeError(
            f"invalid value `{text}` (choose from {choices})"
        ) from None


def build_cli() -> argparse.ArgumentParser:
    """Build the command-line parser; unset options parse to ``None`` or ``False``."""
    parser = argparse.ArgumentParser(
        prog=PROG, description=f"{DESCRIPTION}"
    )
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "serve_path", nargs="?", default=None, metavar="serve-path",
        help="Specific path to serve [default: .]",
    )
    parser.add_argument("-c", "--config", metavar="file", help="Specify configuration file")
    parser.add_argument(
        "-b", "--bind", action="extend", type=_comma_list, metavar="addrs",
        help="Specify bind address or unix socket",
    )
    parser.add_argument(
        "-p", "--port", type=_port, metavar="port",
        help="Specify port to listen on [default: 5000]",
    )
    parser.add_argument("--path-prefix", metavar="path", help="Specify a path prefix")
    parser.add_argument(
        "--hidden", action="extend", type=_comma_list, metavar="value",
        help="Hide paths from directory listings, e.g. tmp,*.log,*.lock",
    )
    parser.add_argument(
        "-a", "--auth", action="append", metavar="rules",
        help="Add auth roles, e.g. user:pass@/dir1:rw,/dir2",
    )
    parser.add_argument(
        "--auth-method", choices=("basic", "digest"), default="digest",
        metavar="value", help=argparse.SUPPRESS,
    )
    flags = [
        ("-A", "--allow-all", "Allow all operations"),
        (None, "--allow-upload", "Allow upload files/folders"),
        (None, "--allow-delete", "Allow delete files/folders"),
        (None, "--allow-search", "Allow search files/folders"),
        (None, "--allow-symlink", "Allow symlink to files/folders outside root directory"),
        (None, "--allow-archive", "Allow download folders as archive file"),
        (None, "--allow-hash", "Allow ?hash query to get file sha256 hash"),
        (None, "--enable-cors", "Enable CORS, sets `Access-Control-Allow-Origin: *`"),
        (None, "--render-index",
         "Serve index.html when requesting a directory, returns 404 if not found index.html"),
        (None, "--render-try-index",
         "Serve index.html when requesting a directory, "
         "returns directory listing if not found index.html"),
        (None, "--render-spa", "Serve SPA(Single Page Application)"),
    ]
    for short, long, text in flags:
        names = [short, long] if short else [long]
        parser.add_argument(*names, action="store_true", help=text)
    parser.add_argument(
        "--assets", metavar="path",
        help="Set the path to the assets directory for overriding the built-in assets",
    )
    parser.add_argument("--log-format", metavar="format", help="Customize http log format")
    parser.add_argument(
        "--log-file", metavar="file",
        help="Specify the file to save logs to, other than stdout/stderr",
    )
    parser.add_argument(
        "--compress", type=_compress, metavar="level",
        help="Set zip compress level [default: low]",
    )
    parser.add_argument(
        "--completions", choices=SHELLS, metavar="shell",
        help="Print shell completion script for <shell>",
    )
    parser.add_argument(
        "--tls-cert", metavar="path",
        help="Path to an SSL/TLS certificate to serve with HTTPS",
    )
    parser.add_argument(
        "--tls-key", metavar="path", help="Path to the SSL/TLS certificate's private key"
    )
    return parser


def parse_addrs(addrs: Iterable[str]) -> list[BindAddr]:
    """Parse IP addresses; other values are unix socket paths where supported."""
    bind_addrs: list[BindAddr] = []
    invalid: list[str] = []
    for addr in addrs:
        try:
            bind_addrs.append(ipaddress.ip_address(addr))
        except ValueError:
            if _SUPPORTS_UNIX_SOCKETS:
                bind_addrs.append(addr)
            else:
                invalid.append(addr)
    if invalid:
        raise ValueError(f"Invalid bind address `{','.join(invalid)}`")
    return bind_addrs


def default_addrs() -> list[BindAddr]:
    """The addresses bound when none are given: every IPv4 and IPv6 interface."""
    return parse_addrs(DEFAULT_BIND)