"""Candidate endpoint expansion for peer addresses."""

import ipaddress

from nbc.config import DEFAULT_RPC_PORT

NEIGHBORS_PATH = "/v2/neighbors"


def candidate_endpoints(address: str, port: int = DEFAULT_RPC_PORT) -> list[str]:
    """Return the endpoints to try for *address*, deduplicated and ordered.

    The address as given comes first, followed by the address with *port*
    appended.  An address that already carries an explicit port yields only
    itself.  Bare IPv6 literals are bracketed so they form valid URLs.

    Args:
        address: Peer host, optionally with ``:port``.
        port: Default RPC port.

    Returns:
        One or two ``host[:port]`` strings.
    """
    host = address.strip()
    if _is_ipv6_literal(host):
        host = f"[{host}]"

    candidates = [host]
    if not _has_port(host):
        candidates.append(f"{host}:{port}")

    seen: set[str] = set()
    out: list[str] = []
    for endpoint in candidates:
        if endpoint not in seen:
            seen.add(endpoint)
            out.append(endpoint)
    return out


def neighbor_url(endpoint: str) -> str:
    """Build the neighbor-listing URL for a candidate endpoint."""
    return f"http://{endpoint}{NEIGHBORS_PATH}"


def _is_ipv6_literal(host: str) -> bool:
    try:
        return isinstance(ipaddress.ip_address(host), ipaddress.IPv6Address)
    except ValueError:
        return False


def _has_port(host: str) -> bool:
    # Bracketed IPv6: "[::1]" or "[::1]:20443"
    if host.startswith("["):
        return "]:" in host
    return ":" in host
