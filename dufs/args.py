"""Server settings merged from a YAML config file, the environment and the command line."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import quote

import yaml

from dufs.cli import (
    DEFAULT_PORT,
    ENV_VARS,
    BindAddr,
    Compress,
    build_cli,
    default_addrs,
    parse_addrs,
)
from dufs.http_logger import HttpLogger

_FLAGS = frozenset(
    {
        "allow_all",
        "allow_upload",
        "allow_delete",
        "allow_search",
        "allow_symlink",
        "allow_archive",
        "allow_hash",
        "enable_cors",
        "render_index",
        "render_try_index",
        "render_spa",
    }
)

_OPTIONAL_PATHS = {
    "assets": "assets",
    "log-file": "log_file",
    "tls-cert": "tls_cert",
    "tls-key": "tls_key",
}


@dataclass
class Args:
    """Effective server settings."""

    serve_path: Path = field(default_factory=lambda: Path("."))
    addrs: list[BindAddr] = field(default_factory=default_addrs)
    port: int = DEFAULT_PORT
    path_is_file: bool = False
    path_prefix: str = ""
    uri_prefix: str = ""
    hidden: list[str] = field(default_factory=list)
    auth: list[str] = field(default_factory=list)
    allow_all: bool = False
    allow_upload: bool = False
    allow_delete: bool = False
    allow_search: bool = False
    allow_symlink: bool = False
    allow_archive: bool = False
    allow_hash: bool = False
    render_index: bool = False
    render_spa: bool = False
    render_try_index: bool = False
    enable_cors: bool = False
    assets: Path | None = None
    http_logger: HttpLogger = field(default_factory=HttpLogger)
    log_file: Path | None = None
    compress: Compress = Compress.LOW
    tls_cert: Path | None = None
    tls_key: Path | None = None


def _encode_uri(value: str) -> str:
    return quote(value, safe="/")


def sanitize_path(path: str | os.PathLike) -> Path:
    """Resolve ``path`` against the working directory, requiring that it exists."""
    original = Path(path)
    if not original.exists():
        raise FileNotFoundError(f"Path `{os.fspath(path)}` doesn't exist")
    try:
        return (Path.cwd() / original).resolve(strict=True)
    except OSError as exc:
        raise OSError(f"Failed to access path `{os.fspath(path)}`") from exc


def sanitize_assets_path(path: str | os.PathLike) -> Path:
    """Resolve an assets directory, which must hold an ``index.html``."""
    resolved = sanitize_path(path)
    if not (resolved / "index.html").exists():
        raise ValueError(f"Path `{resolved}` doesn't contains index.html")
    return resolved


def _expect_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"`{key}` must be a boolean")
    return value


def _expect_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"`{key}` must be a string")
    return value


def _expect_port(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 65535:
        raise ValueError(f"`{key}` must be an integer in 0..=65535")
    return value


def _string_or_list(key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"`{key}` must be a string or list of strings")


def _string_list(key: str, value: Any) -> list[str]:
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"`{key}` must be a list of strings")


def _args_from_mapping(data: Mapping[str, Any]) -> Args:
    args = Args()
    for key, value in data.items():
        if not isinstance(key, str):
            continue
        attr = key.replace("-", "_")
        if key == "serve-path":
            args.serve_path = Path(_expect_str(key, value))
        elif key == "bind":
            args.addrs = parse_addrs(_string_or_list(key, value))
        elif key == "port":
            args.port = _expect_port(key, value)
        elif key == "path-prefix":
            args.path_prefix = _expect_str(key, value)
        elif key == "hidden":
            args.hidden = _string_or_list(key, value)
        elif key == "auth":
            args.auth = _string_list(key, value)
        elif attr in _FLAGS:
            setattr(args, attr, _expect_bool(key, value))
        elif key in _OPTIONAL_PATHS:
            path = None if value is None else Path(_expect_str(key, value))
            setattr(args, _OPTIONAL_PATHS[key], path)
        elif key == "log-format":
            args.http_logger = HttpLogger.parse(_expect_str(key, value))
        elif key == "compress":
            try:
                args.compress = Compress(_expect_str(key, value))
            except ValueError as exc:
                raise ValueError(f"`{key}` has an unknown level `{value}`") from exc
    return args


def load_config(path: str | os.PathLike) -> Args:
    """Read settings from a YAML file; missing keys keep their defaults."""
    shown = os.fspath(path)
    try:
        contents = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise OSError(f"Failed to read config at {shown}") from exc
    try:
        data = yaml.safe_load(contents)
        if data is None:
            return Args()
        if not isinstance(data, dict):
            raise ValueError("expected a mapping at the top level")
        return _args_from_mapping(data)
    except (yaml.YAMLError, ValueError) as exc:
        raise ValueError(f"Failed to load config at {shown}") from exc


def _env_value(dest: str, var: str, raw: str) -> Any:
    if dest in _FLAGS:
        if raw == "true":
            return True
        if raw == "false":
            return False
        raise ValueError(f"Invalid value `{raw}` for {var}: expected `true` or `false`")
    if dest == "port":
        try:
            port = int(raw)
        except ValueError:
            port = -1
        if not 0 <= port <= 65535:
            raise ValueError(f"Invalid value `{raw}` for {var}: expected a port number")
        return port
    if dest in ("bind", "hidden"):
        return raw.split(",")
    if dest == "auth":
        return [raw]
    if dest == "compress":
        try:
            return Compress(raw)
        except ValueError:
            raise ValueError(f"Invalid value `{raw}` for {var}") from None
    return raw


def _apply_environ(namespace: Any, environ: Mapping[str, str]) -> None:
    for dest, var in ENV_VARS.items():
        if dest == "auth_method" or var not in environ:
            continue
        if getattr(namespace, dest, None) not in (None, False):
            continue
        setattr(namespace, dest, _env_value(dest, var, environ[var]))


def parse_args(
    argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None
) -> Args:
    """Build the effective settings; command-line values win over the config file."""
    environ = os.environ if environ is None else environ
    ns = build_cli().parse_args(argv)
    _apply_environ(ns, environ)

    args = load_config(ns.config) if ns.config is not None else Args()

    if ns.serve_path is not None:
        args.serve_path = Path(ns.serve_path)
    args.serve_path = sanitize_path(args.serve_path)

    if ns.port is not None:
        args.port = ns.port

    if ns.bind is not None:
        args.addrs = parse_addrs(ns.bind)

    args.path_is_file = args.serve_path.is_file()
    if ns.path_prefix is not None:
        args.path_prefix = ns.path_prefix
    args.path_prefix = args.path_prefix.strip("/")
    args.uri_prefix = f"/{_encode_uri(args.path_prefix)}/" if args.path_prefix else "/"

    if ns.hidden is not None:
        args.hidden = list(ns.hidden)
    else:
        args.hidden = [part for entry in args.hidden for part in entry.split(",")]

    args.enable_cors = args.enable_cors or ns.enable_cors

    if ns.auth is not None:
        args.auth = list(ns.auth)

    args.allow_all = args.allow_all or ns.allow_all
    allow_all = args.allow_all
    for name in (
        "allow_upload",
        "allow_delete",
        "allow_search",
        "allow_symlink",
        "allow_hash",
        "allow_archive",
    ):
        if not getattr(args, name):
            setattr(args, name, allow_all or getattr(ns, name))

    args.render_index = args.render_index or ns.render_index
    args.render_try_index = args.render_try_index or ns.render_try_index
    args.render_spa = args.render_spa or ns.render_spa

    if ns.assets is not None:
        args.assets = Path(ns.assets)
    if args.assets is not None:
        args.assets = sanitize_assets_path(args.assets)

    if ns.log_format is not None:
        args.http_logger = HttpLogger.parse(ns.log_format)

    if ns.log_file is not None:
        args.log_file = Path(ns.log_file)

    if ns.compress is not None:
        args.compress = ns.compress

    if ns.tls_cert is not None:
        args.tls_cert = Path(ns.tls_cert)
    if ns.tls_key is not None:
        args.tls_key = Path(ns.tls_key)
    if args.tls_cert is not None and args.tls_key is None:
        raise ValueError("No tls-key set")
    if args.tls_key is not None and args.tls_cert is None:
        raise ValueError("No tls-cert set")

    return args