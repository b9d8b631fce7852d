import logging
import netifaces
import psutil
import socket

from typing import List, Optional

from .protocol import NetworkInterface


class InterfaceProvider:
    """Supplies the local network interfaces a search may run on. Applications and tests can
    either inherit from this class or create a new instance and replace ``list_interfaces``.
    """

    def list_interfaces(self) -> List[NetworkInterface]:
        """Enumerate the network interfaces of the host

        :return: Every known interface in a stable order, eligible or not. The order decides which
            reply wins when one device answers on several interfaces.
        """
        return []


class HostInterfaceProvider(InterfaceProvider):
    """Reads the interfaces of the running host. Addresses come from ``netifaces``, link state and
    flags from ``psutil``.
    """

    def list_interfaces(self) -> List[NetworkInterface]:
        stats = psutil.net_if_stats()
        # netifaces and psutil disagree on names on Windows (GUID vs. friendly name)
        names_by_address = {}
        for psutil_name, snics in psutil.net_if_addrs().items():
            for snic in snics:
                if snic.family == socket.AF_INET:
                    names_by_address.setdefault(snic.address, psutil_name)

        result = []
        for name in netifaces.interfaces():
            address = self.ipv4_address(name)
            stat = stats.get(name) or stats.get(names_by_address.get(address))
            is_up = True
            supports_multicast = True
            if stat is not None:
                is_up = stat.isup
                flags = getattr(stat, "flags", "")
                if flags:
                    supports_multicast = "multicast" in flags.split(",")
            interface = NetworkInterface(
                name=name,
                address=address,
                index=self.index(name),
                is_up=is_up,
                supports_multicast=supports_multicast,
            )
            logging.info("Interface found: " + str(interface))
            result.append(interface)
        return result

    def ipv4_address(self, name: str) -> Optional[str]:
        details = netifaces.ifaddresses(name)
        for detail in details.get(netifaces.AF_INET, []):
            if detail.get("addr"):
                return detail["addr"]
        return None

    def index(self, name: str) -> Optional[int]:
        try:
            return socket.if_nametoindex(name)
        except OSError:
            return None
