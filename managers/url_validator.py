"""SSRF guard for caller-supplied reference URLs"""

import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Callable, List, Sequence, Union
from urllib.parse import urlsplit

from exceptions import RejectedReferenceError
from models.asset import OBJECT_STORAGE_PREFIX

logger = logging.getLogger("MCP_Server")

DEFAULT_ALLOWED_SCHEMES = ("http", "https")

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
Resolver = Callable[[str], List[str]]


@dataclass(frozen=True)
class UrlCheck:
    accepted: bool
    reason: str = ""


def resolve_host(host: str) -> List[str]:
    """Resolve a hostname to every IPv4 and IPv6 address it maps to"""
    addrinfo = socket.getaddrinfo(host, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    return [sockaddr[0] for _, _, _, _, sockaddr in addrinfo if sockaddr]


def restricted_reason(ip: IPAddress) -> str:
    """Return why an address is off limits, or "" when it is public"""
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return restricted_reason(ip.ipv4_mapped)
    if ip.is_loopback:
        return "loopback"
    if ip.is_link_local:
        return "link-local"
    if ip.is_multicast:
        return "multicast"
    if ip.is_private:
        return "private"
    if ip.is_unspecified:
        return "unspecified"
    if ip.is_reserved:
        return "reserved"
    return ""


def validate_url(
    raw_url: str,
    allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES,
    resolver: Resolver = resolve_host,
) -> UrlCheck:
    """Decide whether a URL may be fetched.

    Object-storage URIs are trusted structurally. Everything else must use an
    allowed scheme and every resolved address must be public.
    """
    if raw_url.startswith(OBJECT_STORAGE_PREFIX):
        return UrlCheck(True)

    try:
        parsed = urlsplit(raw_url)
        host = parsed.hostname
    except ValueError as e:
        return UrlCheck(False, f"unparseable URL: {e}")

    scheme = parsed.scheme.lower()
    if scheme not in allowed_schemes:
        return UrlCheck(False, f"scheme not allowed: {scheme or '(none)'}")
    if not host:
        return UrlCheck(False, "URL has no hostname")

    try:
        addresses = [ipaddress.ip_address(host)]
    except ValueError:
        try:
            addresses = [ipaddress.ip_address(addr.split("%", 1)[0]) for addr in resolver(host)]
        except (OSError, UnicodeError) as e:
            return UrlCheck(False, f"DNS resolution failed for {host}: {e}")
        except ValueError as e:
            return UrlCheck(False, f"invalid address for {host}: {e}")

    if not addresses:
        return UrlCheck(False, f"no addresses resolved for {host}")

    for ip in addresses:
        reason = restricted_reason(ip)
        if reason:
            return UrlCheck(False, f"{host} resolves to {reason} address {ip}")

    return UrlCheck(True)


class UrlValidator:
    """Configured validator shared by the part assembler and asset manager"""

    def __init__(
        self,
        allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES,
        resolver: Resolver = resolve_host,
    ):
        self.allowed_schemes = tuple(s.lower() for s in allowed_schemes)
        self.resolver = resolver

    def check(self, raw_url: str) -> UrlCheck:
        result = validate_url(raw_url, self.allowed_schemes, self.resolver)
        if not result.accepted:
            logger.warning(f"Blocked reference URL {raw_url}: {result.reason}")
        return result

    def ensure_safe(self, raw_url: str) -> None:
        """Raise RejectedReferenceError unless the URL passes the check"""
        result = self.check(raw_url)
        if not result.accepted:
            raise RejectedReferenceError(raw_url, result.reason)
