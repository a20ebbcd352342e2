# dufs

Building blocks of a small utility file server: command-line and YAML
configuration, bind-address handling and listening sockets, an HTTP access
logger with a configurable format, a timestamped log setup, and plain HTML
directory listings for text-mode clients.

Requires Python 3.10 or later, with `pyyaml` and `psutil`. The `test`
extra adds `pytest`.

## Configuration

`dufs.args.parse_args(argv=None, environ=None)` reads command-line
options, the `DUFS_*` environment variables and an optional YAML file
given with `-c/--config`, and returns an `Args` dataclass. When `argv` or
`environ` is left out, `sys.argv` and `os.environ` are used.

```python
from dufs.args import parse_args

args = parse_args(["/srv/share", "-p", "8080", "--hidden", "tmp,*.log"], {})
print(args.port)        # 8080
print(args.hidden)      # ['tmp', '*.log']
print(args.uri_prefix)  # /
```

The serve path must exist; it is resolved to an absolute path, and
`args.path_is_file` tells whether it is a single file. `--path-prefix`
is stripped of slashes and gives `args.uri_prefix` (for example `/xyz/`).
`-A/--allow-all` switches on every `allow_*` setting. A TLS certificate
and key must be given together, otherwise `ValueError` is raised.
`--assets` must name a directory holding an `index.html`.

A configuration file uses the long option names as keys:

```yaml
serve-path: /srv/share
bind:
  - 127.0.0.1
  - 192.168.8.10
port: 3000
allow-upload: true
hidden:
  - tmp
  - '*.log'
log-format: '$remote_addr "$request" $status'
compress: high
```

`bind` and `hidden` take a string or a list; a `hidden` string is split
on commas. Command-line values and environment variables override the
file; boolean environment variables take `true` or `false`. Defaults:
serve `.` on port 5000, bound to `0.0.0.0` and `::`, with `low`
compression. `dufs.args.load_config(path)` reads a file on its own and
raises `ValueError` for keys of the wrong type.
`sanitize_path` and `sanitize_assets_path` perform the path checks above.

`dufs.cli` holds the option definitions (`build_cli()`, an
`argparse.ArgumentParser`), the zip compression levels (`Compress`:
`none`, `low`, `medium`, `high`; `to_compression()` gives the matching
`zipfile` constant) and bind-address parsing (`parse_addrs`,
`default_addrs`). On POSIX systems anything that is not an IP address is
kept as a Unix socket path; elsewhere it raises `ValueError`.

## Listening

`dufs.listen` works out which addresses to bind and announce:

```python
from dufs.cli import default_addrs
from dufs.listen import check_addrs, interface_addrs, print_listening

bind, shown = check_addrs(default_addrs(), interface_addrs())
print(print_listening(shown, 5000, "/", False))
```

Addresses whose IP family has no local interface are dropped;
unspecified addresses are announced as every interface address of their
family. `create_listener(host, port)` returns a bound, listening TCP
socket with `SO_REUSEADDR` set; IPv6 sockets are IPv6-only.

## Access logging

The log format is a template of `$variables`. `$request` is the method
and percent-decoded URI, `$remote_user` the user named in a Basic or
Digest `Authorization` header, and `$http_<name>` a request header
(underscores become dashes). Any other variable, such as `$remote_addr`
or `$status`, is filled in by the caller. Missing values are written as
`-`, and an empty format turns logging off.

```python
from dufs.http_logger import HttpLogger

logger = HttpLogger.parse('$remote_addr "$request" $http_user_agent')
data = logger.data("GET", "/dir1/", {"user-agent": "curl/8.0"})
data["remote_addr"] = "127.0.0.1"
print(logger.render(data))   # 127.0.0.1 "GET /dir1/" curl/8.0
logger.log(data)             # written at INFO on the "dufs" logger
```

`HttpLogger()` uses the default format `$remote_addr "$request" $status`.

`dufs.logger.init(log_file=None)` sets up the `dufs` logger: records go
to stdout (warnings and errors to stderr), or are appended to the given
file. Each line is `<RFC 3339 time> <LEVEL> - <message>`, as built by
`format_record(level, message, now)`.

## Listings for text browsers

`detect_noscript(user_agent)` recognises clients such as curl, wget,
lynx, w3m, links, elinks, httpie and aria2.
`generate_noscript_html(href, paths, max_subpaths)` renders a plain HTML
table from `PathItem(name, is_dir, mtime, size)` entries, with a `../`
row first. `format_size` gives sizes like `1.50 KB`, or item counts such
as `3 items` for directories (`>N` once the count reaches
`max_subpaths`); `format_mtime` turns milliseconds since the epoch into a
UTC timestamp like `2024-01-02T03:04:05.678Z`.

## Streams

`dufs.http_utils.iter_limited(reader, limit, chunk_size=4096)` yields
chunks from a binary reader and stops after `limit` bytes or at end of
file.

## What this package does not do

There is no server and no command to start one: nothing here accepts
connections, handles HTTP or WebDAV requests, serves, uploads or deletes
files, or builds zip archives. Authentication rules given with `--auth`
are kept as plain strings in `Args.auth` and are not checked. TLS
certificate and key paths are recorded but not loaded, and the
`--completions` option is accepted but no completion script is printed.