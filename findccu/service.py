import asyncio
import logging
import threading

from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional, Set

from .config import DiscoveryConfig
from .constants import DEFAULT_RETRY_COUNT, DEFAULT_TIMEOUT, MULTICAST_TTL, RETRY_DELAY
from .errors import NoUsableInterfaceError
from .interfaces import HostInterfaceProvider, InterfaceProvider
from .protocol import DiscoveredDevice, NetworkInterface
from .servers import DiscoverySession


class Service:
    """Searches every usable local interface for devices and merges the replies. A device that
    answers on several interfaces is reported once, with the reply from the interface listed first
    by the interface provider.

    :param timeout: Send and receive timeout of a single attempt in ms

    :param retry_count: Number of probes sent on each interface

    :param interface_provider: Source of the local interfaces, the host's own when omitted

    :param ttl: Multicast time-to-live of the probes

    :param retry_delay: Pause in ms after every attempt

    :param concurrent: Search all interfaces at once instead of one after another

    :raises ValueError: A timing or retry setting is out of range
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        retry_count: int = DEFAULT_RETRY_COUNT,
        interface_provider: Optional[InterfaceProvider] = None,
        ttl: int = MULTICAST_TTL,
        retry_delay: int = RETRY_DELAY,
        concurrent: bool = True,
    ):
        DiscoveryConfig(
            timeout=timeout, retry_count=retry_count, ttl=ttl, retry_delay=retry_delay
        ).validate()
        self.timeout = timeout
        self.retry_count = retry_count
        self.interface_provider = interface_provider or HostInterfaceProvider()
        self.ttl = ttl
        self.retry_delay = retry_delay
        self.concurrent = concurrent

    @classmethod
    def from_config(
        cls, config: DiscoveryConfig, interface_provider: Optional[InterfaceProvider] = None
    ) -> "Service":
        return cls(
            timeout=config.timeout,
            retry_count=config.retry_count,
            interface_provider=interface_provider,
            ttl=config.ttl,
            retry_delay=config.retry_delay,
            concurrent=config.concurrent,
        )

    def create_session(
        self, local_ip: Optional[str], interface: NetworkInterface
    ) -> DiscoverySession:
        return DiscoverySession(
            local_ip or interface.address,
            interface_index=interface.index,
            timeout=self.timeout,
            retry_count=self.retry_count,
            ttl=self.ttl,
            retry_delay=self.retry_delay,
            interface_address=interface.address,
        )

    def search_interface(
        self,
        local_ip: Optional[str],
        interface: NetworkInterface,
        cancel: Optional[threading.Event] = None,
    ) -> List[DiscoveredDevice]:
        """Runs one session on ``interface``. Networking faults count as no replies."""
        logging.info("Searching on " + interface.name + " (" + str(interface.address) + ")...")
        try:
            return self.create_session(local_ip, interface).search(cancel)
        except OSError as e:
            logging.warning("Search on " + interface.name + " failed: " + str(e))
            return []

    def search_all_interfaces(
        self, local_ip: Optional[str], cancel: Optional[threading.Event] = None
    ) -> List[DiscoveredDevice]:
        """Probes every interface that is up, multicast-capable and configured for IPv4

        :param local_ip: Local IPv4 address the multicast membership is bound to. ``None`` uses
            the address of each interface.

        :param cancel: Optional event that stops all sessions before their next attempt

        :return: The devices found, at most one per host. Empty if nothing replied.

        :raises NoUsableInterfaceError: No interface qualified for the search
        """
        interfaces = [i for i in self.interface_provider.list_interfaces() if i.eligible]
        if len(interfaces) == 0:
            raise NoUsableInterfaceError()

        if self.concurrent and len(interfaces) > 1:
            with ThreadPoolExecutor(max_workers=len(interfaces)) as executor:
                futures: List[Future] = [
                    executor.submit(self.search_interface, local_ip, interface, cancel)
                    for interface in interfaces
                ]
                results = [future.result() for future in futures]
        else:
            results = [
                self.search_interface(local_ip, interface, cancel) for interface in interfaces
            ]

        responses: List[DiscoveredDevice] = []
        seen: Set[str] = set()
        for devices in results:
            for device in devices:
                if device.host not in seen:
                    seen.add(device.host)
                    responses.append(device)
                    logging.info("Device found: " + device.host)
        return responses

    async def search(self, local_ip: Optional[str]) -> List[DiscoveredDevice]:
        """Runs ``search_all_interfaces`` without blocking the event loop. Cancelling the calling
        task stops the sessions at their next attempt.
        """
        loop = asyncio.get_running_loop()
        cancel = threading.Event()
        try:
            return await loop.run_in_executor(
                None, self.search_all_interfaces, local_ip, cancel
            )
        except asyncio.CancelledError:
            cancel.set()
            raise
