"""
URL validation before fetching user-supplied recipe URLs.

Blocks private/loopback targets, odd ports and embedded credentials so the
importer cannot be pointed at internal services (SSRF).
"""

from __future__ import annotations

import asyncio
import ipaddress
import re
import socket
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from urllib.parse import urlsplit, urlunsplit

ALLOWED_SCHEMES = {"http", "https"}
ALLOWED_PORTS = {80, 443, 8080, 8443}

BLOCKED_HOSTNAME_PATTERNS = [
    re.compile(r"^localhost$", re.IGNORECASE),
    re.compile(r"\.local$", re.IGNORECASE),
    re.compile(r"\.internal$", re.IGNORECASE),
    re.compile(r"\.localhost$", re.IGNORECASE),
]

PRIVATE_NETWORKS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("fe80::/10"),
    ipaddress.ip_network("0.0.0.0/32"),
    ipaddress.ip_network("::/128"),
]

Resolver = Callable[[str], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class ValidationResult:
    success: bool
    error: str | None = None


async def resolve_host(host: str) -> str | None:
    """
    Resolve `host` to its first address, or None if it does not resolve.
    """
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError):
        return None
    if not infos:
        return None
    return str(infos[0][4][0])


def is_private_address(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return True

    mapped = getattr(ip, "ipv4_mapped", None)
    if mapped is not None:
        ip = mapped
    return any(ip.version == net.version and ip in net for net in PRIVATE_NETWORKS)


def is_blocked_hostname(host: str) -> bool:
    return any(pattern.search(host) for pattern in BLOCKED_HOSTNAME_PATTERNS)


def _failure(message: str) -> ValidationResult:
    return ValidationResult(success=False, error=message)


async def validate_url(url: str | None, *, resolver: Resolver | None = None) -> ValidationResult:
    url = (url or "").strip()
    if not url:
        return _failure("URL cannot be blank")

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return _failure("Invalid URL format")

    if (parts.scheme or "").lower() not in ALLOWED_SCHEMES:
        return _failure("Only http and https URLs are allowed")

    host = parts.hostname or ""
    if not host:
        return _failure("URL must have a valid host")
    if parts.username is not None or parts.password is not None:
        return _failure("URLs with username or password are not allowed")
    if port is not None and port not in ALLOWED_PORTS:
        return _failure(f"Port {port} is not allowed")
    if is_blocked_hostname(host):
        return _failure("This hostname is not allowed")

    resolved = await (resolver or resolve_host)(host)
    if not resolved:
        return _failure("Could not resolve hostname")
    if is_private_address(resolved):
        return _failure("URLs pointing to private or internal addresses are not allowed")

    return ValidationResult(success=True)


def sanitized_url(url: str) -> str:
    """
    Strip query and fragment so logs do not carry tokens or tracking ids.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return "[invalid URL]"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
