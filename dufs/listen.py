"""Bind addresses, listening sockets and the start-up banner."""

from __future__ import annotations

import ipaddress
import socket
from collections.abc import Iterable

import psutil

from dufs.cli import BindAddr, IpAddr

DEFAULT_BACKLOG = 1024

Interfaces = tuple[list[IpAddr], list[IpAddr]]


def interface_addrs() -> Interfaces:
    """Addresses of the local network interfaces, split into IPv4 and IPv6."""
    try:
        ifaces = psutil.net_if_addrs()
    except (OSError, RuntimeError) as exc:
        raise OSError("Failed to get local interface addresses") from exc
    ipv4: list[IpAddr] = []
    ipv6: list[IpAddr] = []
    for entries in ifaces.values():
        for entry in entries:
            if entry.family == socket.AF_INET:
                ipv4.append(ipaddress.IPv4Address(entry.address))
            elif entry.family == socket.AF_INET6:
                ipv6.append(ipaddress.IPv6Address(entry.address.split("%", 1)[0]))
    return ipv4, ipv6


def _sort_key(addr: BindAddr) -> tuple:
    if isinstance(addr, str):
        return (1, 0, addr)
    return (0, addr.version, int(addr))


def check_addrs(
    addrs: Iterable[BindAddr], interfaces: Interfaces | None = None
) -> tuple[list[BindAddr], list[BindAddr]]:
    """Drop addresses whose IP family has no interface; return them with the addresses to print.

    Unspecified addresses expand to every interface address of their family.
    """
    ipv4, ipv6 = interface_addrs() if interfaces is None else interfaces
    new_addrs: list[BindAddr] = []
    print_addrs: list[BindAddr] = []
    for addr in addrs:
        if isinstance(addr, str):
            new_addrs.append(addr)
            print_addrs.append(addr)
            continue
        family = ipv4 if addr.version == 4 else ipv6
        if not family:
            continue
        new_addrs.append(addr)
        if addr.is_unspecified:
            print_addrs.extend(family)
        else:
            print_addrs.append(addr)
    print_addrs.sort(key=_sort_key)
    return new_addrs, print_addrs


def _url(addr: BindAddr, port: int, uri_prefix: str, tls: bool) -> str:
    if isinstance(addr, str):
        return addr
    host = f"{addr}:{port}" if addr.version == 4 else f"[{addr}]:{port}"
    protocol = "https" if tls else "http"
    return f"{protocol}://{host}{uri_prefix}"


def print_listening(
    addrs: Iterable[BindAddr], port: int, uri_prefix: str, tls: bool
) -> str:
    """The banner listing the URLs the server can be reached at."""
    urls = [_url(addr, port, uri_prefix, tls) for addr in addrs]
    if len(urls) == 1:
        return f"Listening on {urls[0]}"
    info = "\n".join(f"  {url}" for url in urls)
    return f"Listening on:\n{info}\n"


def create_listener(host: IpAddr | str, port: int) -> socket.socket:
    """A listening TCP socket on ``host:port``; IPv6 sockets accept IPv6 only."""
    ip = ipaddress.ip_address(str(host))
    family = socket.AF_INET if ip.version == 4 else socket.AF_INET6
    sock = socket.socket(family, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    try:
        if family == socket.AF_INET6:
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((str(ip), port))
        sock.listen(DEFAULT_BACKLOG)
    except OSError as exc:
        sock.close()
        raise OSError(f"Failed to bind `{ip}:{port}`") from exc
    return sock