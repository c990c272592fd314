"""Listening sockets with optional SO_REUSEPORT."""

from __future__ import annotations

import logging
import os
import socket

logger = logging.getLogger(__name__)


def listen(host: str, port: int, reuseport: bool = False) -> socket.socket:
    """Return a bound, listening TCP socket, optionally with SO_REUSEPORT set."""
    infos = socket.getaddrinfo(
        host or None, port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE
    )
    family, socktype, proto, _, address = infos[0]
    sock = socket.socket(family, socktype, proto)

    try:
        if os.name != "nt":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        if reuseport:
            option = getattr(socket, "SO_REUSEPORT", None)
            if option is None:
                logger.warning("SO_REUSEPORT support is not implemented for your OS")
            else:
                sock.setsockopt(socket.SOL_SOCKET, option, 1)

        sock.bind(address)
        sock.listen()
    except BaseException:
        sock.close()
        raise

    return sock