import ipaddress
from pathlib import Path

import pytest

from dufs.args import (
    Args,
    load_config,
    parse_args,
    sanitize_assets_path,
    sanitize_path,
)
from dufs.cli import Compress, default_addrs
from dufs.http_logger import HttpLogger


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write_config(directory: Path, contents: str) -> Path:
    config = directory / "config.yaml"
    config.write_text(contents, encoding="utf-8")
    return config


def test_default(in_tmp):
    args = parse_args([], environ={})
    assert args.serve_path == sanitize_path(Path.cwd())
    assert args.port == 5000
    assert args.addrs == default_addrs()
    assert args.uri_prefix == "/"
    assert args.compress is Compress.LOW
    assert args.path_is_file is False


def test_args_from_cli1(in_tmp, tmp_path_factory):
    served = tmp_path_factory.mktemp("served")
    args = parse_args(["--hidden", "tmp,*.log,*.lock", str(served)], environ={})
    assert args.serve_path == sanitize_path(served)
    assert args.hidden == ["tmp", "*.log", "*.lock"]


def test_args_from_cli2(in_tmp):
    args = parse_args(
        ["--hidden", "tmp", "--hidden", "*.log", "--hidden", "*.lock"], environ={}
    )
    assert args.hidden == ["tmp", "*.log", "*.lock"]


def test_args_from_empty_config_file(in_tmp):
    config = _write_config(in_tmp, "")
    args = parse_args(["-c", str(config)], environ={})
    assert args.serve_path == sanitize_path(Path.cwd())
    assert args.port == 5000
    assert args.addrs == default_addrs()


def test_args_from_config_file1(in_tmp, tmp_path_factory):
    served = tmp_path_factory.mktemp("served")
    config = _write_config(
        in_tmp,
        f"serve-path: '{served}'\n"
        "bind: 0.0.0.0\n"
        "port: 3000\n"
        "allow-upload: true\n"
        "hidden: tmp,*.log,*.lock\n",
    )
    args = parse_args(["-c", str(config)], environ={})
    assert args.serve_path == sanitize_path(served)
    assert args.addrs == [ipaddress.ip_address("0.0.0.0")]
    assert args.hidden == ["tmp", "*.log", "*.lock"]
    assert args.port == 3000
    assert args.allow_upload is True


def test_args_from_config_file2(in_tmp):
    config = _write_config(
        in_tmp,
        "bind:\n"
        "  - 127.0.0.1\n"
        "  - 192.168.8.10\n"
        "hidden:\n"
        "  - tmp\n"
        "  - '*.log'\n"
        "  - '*.lock'\n",
    )
    args = parse_args(["-c", str(config)], environ={})
    assert args.addrs == [
        ipaddress.ip_address("127.0.0.1"),
        ipaddress.ip_address("192.168.8.10"),
    ]
    assert args.hidden == ["tmp", "*.log", "*.lock"]


def test_cli_overrides_config(in_tmp):
    config = _write_config(in_tmp, "port: 3000\n")
    args = parse_args(["-c", str(config), "-p", "4000"], environ={})
    assert args.port == 4000


def test_path_prefix_is_trimmed_and_encoded(in_tmp):
    args = parse_args(["--path-prefix", "/x y/"], environ={})
    assert args.path_prefix == "x y"
    assert args.uri_prefix == "/x%20y/"


def test_serve_single_file(in_tmp):
    target = in_tmp / "index.html"
    target.write_text("This is index.html", encoding="utf-8")
    args = parse_args([str(target)], environ={})
    assert args.path_is_file is True
    assert args.serve_path == sanitize_path(target)


def test_allow_all_sets_every_permission(in_tmp):
    args = parse_args(["-A"], environ={})
    assert (
        args.allow_all,
        args.allow_upload,
        args.allow_delete,
        args.allow_search,
        args.allow_symlink,
        args.allow_archive,
        args.allow_hash,
    ) == (True,) * 7
    assert args.render_index is False


def test_single_permission_flag(in_tmp):
    args = parse_args(["--allow-upload"], environ={})
    assert args.allow_upload is True
    assert args.allow_delete is False


def test_environment_values(in_tmp):
    environ = {"DUFS_PORT": "3000", "DUFS_ALLOW_UPLOAD": "true", "DUFS_HIDDEN": "a,b"}
    args = parse_args([], environ=environ)
    assert args.port == 3000
    assert args.allow_upload is True
    assert args.hidden == ["a", "b"]


def test_cli_wins_over_environment(in_tmp):
    args = parse_args(["-p", "4000"], environ={"DUFS_PORT": "3000"})
    assert args.port == 4000


def test_invalid_environment_port(in_tmp):
    with pytest.raises(ValueError, match="DUFS_PORT"):
        parse_args([], environ={"DUFS_PORT": "abc"})


def test_auth_rules_collected(in_tmp):
    args = parse_args(["-a", "user:pass@/:rw", "-a", "@/"], environ={})
    assert args.auth == ["user:pass@/:rw", "@/"]


def test_log_format_and_compress(in_tmp):
    args = parse_args(["--log-format", "", "--compress", "high"], environ={})
    assert args.http_logger.render({}) is None
    assert args.compress is Compress.HIGH


def test_default_http_logger(in_tmp):
    args = parse_args([], environ={})
    assert args.http_logger == HttpLogger()


def test_tls_cert_without_key(in_tmp):
    with pytest.raises(ValueError, match="No tls-key set"):
        parse_args(["--tls-cert", "cert.pem"], environ={})


def test_tls_key_without_cert(in_tmp):
    with pytest.raises(ValueError, match="No tls-cert set"):
        parse_args(["--tls-key", "key.pem"], environ={})


def test_missing_serve_path(in_tmp):
    with pytest.raises(FileNotFoundError, match="doesn't exist"):
        parse_args([str(in_tmp / "missing")], environ={})


def test_sanitize_path_resolves_relative(in_tmp):
    (in_tmp / "sub").mkdir()
    assert sanitize_path("sub") == (in_tmp / "sub").resolve()


def test_assets_without_index(in_tmp):
    (in_tmp / "assets").mkdir()
    with pytest.raises(ValueError, match="doesn't contains index.html"):
        sanitize_assets_path(in_tmp / "assets")


def test_assets_with_index(in_tmp):
    assets = in_tmp / "assets"
    assets.mkdir()
    (assets / "index.html").write_text("x", encoding="utf-8")
    args = parse_args(["--assets", "assets"], environ={})
    assert args.assets == assets.resolve()


def test_load_config_missing_file(in_tmp):
    with pytest.raises(OSError, match="Failed to read config"):
        load_config(in_tmp / "nope.yaml")


def test_load_config_invalid_yaml(in_tmp):
    config = _write_config(in_tmp, "port: [1\n")
    with pytest.raises(ValueError, match="Failed to load config"):
        load_config(config)


def test_load_config_wrong_type(in_tmp):
    config = _write_config(in_tmp, "port: abc\n")
    with pytest.raises(ValueError, match="Failed to load config"):
        load_config(config)


def test_load_config_values(in_tmp):
    config = _write_config(
        in_tmp, "compress: none\nauth:\n  - user:pass@/:rw\nenable-cors: true\n"
    )
    args = load_config(config)
    assert args.compress is Compress.NONE
    assert args.auth == ["user:pass@/:rw"]
    assert args.enable_cors is True
    assert args.port == Args().port