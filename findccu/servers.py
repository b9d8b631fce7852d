import logging
import socket
import struct
import sys
import threading

from typing import Callable, List, Optional

from .constants import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_TIMEOUT,
    DISCOVERY_PORT,
    MULTICAST_ADDR,
    MULTICAST_TTL,
    RECV_BUFFER_SIZE,
    RETRY_DELAY,
)
from .parsers import MessageParser
from .protocol import DiscoveredDevice


def membership_request(group: str, local_ip: str) -> bytes:
    """``ip_mreq`` joining ``group`` on the interface owning ``local_ip``"""
    return socket.inet_aton(group) + socket.inet_aton(local_ip)


def multicast_interface(index: int, address: Optional[str] = None) -> bytes:
    """Value for ``IP_MULTICAST_IF`` selecting the outgoing interface

    Linux takes an ``ip_mreqn`` carrying the interface index and Windows takes the index itself in
    network byte order. Everywhere else only the interface address is understood.
    """
    if sys.platform.startswith("linux"):
        return struct.pack("=4s4si", socket.inet_aton(MULTICAST_ADDR), socket.inet_aton("0.0.0.0"), index)
    if sys.platform == "win32":
        return struct.pack("!I", index)
    if address is None:
        raise OSError("interface address required to select multicast interface " + str(index))
    return socket.inet_aton(address)


class DiscoverySession:
    """One bounded probe/retry/receive cycle on a single local interface. The socket is owned by
    the session for the duration of ``search`` and is always closed when it returns or raises.

    :param local_ip: Local IPv4 address the multicast membership is bound to

    :param interface_index: Index of the interface outgoing probes are pinned to. ``None`` leaves
        the choice to the routing table.

    :param timeout: Send and receive timeout of a single attempt in ms

    :param retry_count: Number of probes sent

    :param ttl: Multicast time-to-live of the probes

    :param retry_delay: Pause in ms after every attempt

    :param interface_address: IPv4 address of the pinned interface, used on platforms that cannot
        select the outgoing interface by index
    """

    def __init__(
        self,
        local_ip: str,
        interface_index: Optional[int] = None,
        timeout: int = DEFAULT_TIMEOUT,
        retry_count: int = DEFAULT_RETRY_COUNT,
        ttl: int = MULTICAST_TTL,
        retry_delay: int = RETRY_DELAY,
        parser: Optional[MessageParser] = None,
        socket_factory: Callable[..., socket.socket] = socket.socket,
        interface_address: Optional[str] = None,
    ) -> None:
        self.local_ip = local_ip
        self.interface_index = interface_index
        self.interface_address = interface_address
        self.timeout = timeout
        self.retry_count = retry_count
        self.ttl = ttl
        self.retry_delay = retry_delay
        self.parser = parser or MessageParser()
        self.socket_factory = socket_factory
        self.endpoint = (MULTICAST_ADDR, DISCOVERY_PORT)

    def setup(self, sock: socket.socket) -> None:
        # Address reuse lets sessions on several interfaces coexist
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("0.0.0.0", 0))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.ttl)
        sock.setsockopt(
            socket.IPPROTO_IP,
            socket.IP_ADD_MEMBERSHIP,
            membership_request(MULTICAST_ADDR, self.local_ip),
        )
        if self.interface_index is not None:
            sock.setsockopt(
                socket.IPPROTO_IP,
                socket.IP_MULTICAST_IF,
                multicast_interface(self.interface_index, self.interface_address),
            )
        sock.settimeout(self.timeout / 1000)

    def receive(self, sock: socket.socket) -> Optional[DiscoveredDevice]:
        """Waits for a single reply. Timeouts and receive errors yield ``None``."""
        try:
            data, address = sock.recvfrom(RECV_BUFFER_SIZE)
        except socket.timeout:
            logging.debug("No reply on " + self.local_ip + " within " + str(self.timeout) + " ms")
            return None
        except OSError as e:
            logging.warning("Receive failed on " + self.local_ip + ": " + str(e))
            return None
        if not data:
            return None
        return self.parser.parse_reply(data, address)

    def search(self, cancel: Optional[threading.Event] = None) -> List[DiscoveredDevice]:
        """Sends ``retry_count`` probes, each followed by one receive attempt and the retry delay.

        :param cancel: Optional event that ends the loop before the next attempt once set

        :return: Every reply received, in order of arrival. A host replying more than once is
            listed more than once.

        :raises OSError: The socket could not be set up or a probe could not be sent
        """
        cancel = cancel or threading.Event()
        responses: List[DiscoveredDevice] = []
        sock = self.socket_factory(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            self.setup(sock)
            for _ in range(self.retry_count):
                if cancel.is_set():
                    break
                message = self.parser.create_probe()
                logging.debug("=> " + str(self.endpoint) + ": " + str(message))
                sock.sendto(message, self.endpoint)
                device = self.receive(sock)
                if device is not None:
                    logging.debug("<= " + str(device))
                    responses.append(device)
                if cancel.wait(self.retry_delay / 1000):
                    break
        finally:
            sock.close()
        return responses
