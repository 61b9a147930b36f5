"""Plaintext and TLS sockets beneath the message envelope."""

from __future__ import annotations

from pathlib import Path
import socket
import ssl

from quiz_wire.constants.network_constants import LISTEN_BACKLOG


def create_server_context(certfile: Path, keyfile: Path) -> ssl.SSLContext:
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(certfile=str(certfile), keyfile=str(keyfile))
    return context


def create_client_context(cafile: Path | None = None, verify: bool = True) -> ssl.SSLContext:
    context = ssl.create_default_context(cafile=str(cafile) if cafile else None)
    if not verify:
        # self-signed classroom certificates
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def open_listener(host: str, port: int, backlog: int = LISTEN_BACKLOG) -> socket.socket:
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        listener.bind((host, port))
        listener.listen(backlog)
    except OSError:
        listener.close()
        raise
    return listener


def wrap_accepted(conn: socket.socket, context: ssl.SSLContext | None) -> socket.socket:
    """Complete the TLS handshake on an accepted socket, or return it unchanged."""
    if context is None:
        return conn
    return context.wrap_socket(conn, server_side=True)


def connect(
    host: str,
    port: int,
    context: ssl.SSLContext | None = None,
    timeout: float | None = None,
) -> socket.socket:
    conn = socket.create_connection((host, port), timeout=timeout)
    conn.settimeout(None)
    if context is None:
        return conn
    return context.wrap_socket(conn, server_hostname=host)
