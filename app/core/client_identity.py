"""Client identity resolution for rate limiting.

The identity is an opaque, best-effort string. It is not authenticated: a
caller that controls its own ``X-Forwarded-For`` header can claim any
identity, which is why proxy headers can be switched off with
``APP_TRUST_PROXY_HEADERS=false`` when the relay is not behind a proxy.
"""

from __future__ import annotations

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def split_host(address: str) -> str | None:
    """Strip the port from a ``host:port`` or ``[v6-host]:port`` address.

    Returns None when the address does not carry a port in either form.

    Examples:
        >>> split_host("203.0.113.9:51234")
        '203.0.113.9'
        >>> split_host("[2001:db8::1]:443")
        '2001:db8::1'
        >>> split_host("2001:db8::1") is None
        True
    """

    if address.startswith("["):
        end = address.find("]")
        if end == -1 or not address[end + 1:].startswith(":"):
            return None
        return address[1:end]

    host, sep, port = address.rpartition(":")
    if not sep or ":" in host or not port:
        return None
    return host


def peer_identity(peer: str | None) -> str:
    """Identity from the network-layer peer: host without port, else raw."""

    if not peer:
        return UNKNOWN_CLIENT
    return split_host(peer) or peer


def resolve_client_identity(request: Request, *, trust_proxy_headers: bool = True) -> str:
    """Resolve the caller identity for a request.

    Precedence (first non-empty wins):
        1. First entry of ``X-Forwarded-For``, trimmed.
        2. ``X-Real-IP``, trimmed.
        3. Peer address with any port suffix stripped.
        4. Raw peer address.

    Args:
        request: Incoming request.
        trust_proxy_headers: Consult forwarding headers (steps 1-2).

    Returns:
        Identity string; ``"unknown"`` if the server reports no peer.
    """

    if trust_proxy_headers:
        forwarded_for = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded_for.split(",", 1)[0].strip()
        if first_hop:
            return first_hop

        real_ip = request.headers.get("x-real-ip", "").strip()
        if real_ip:
            return real_ip

    # ASGI servers report (host, port) separately; the host may still be a
    # raw "host:port" string behind some proxies/transports.
    peer = request.client.host if request.client else None
    return peer_identity(peer)
