from .constants import NO_INTERFACE_ERROR_CODE


class DiscoveryError(Exception):
    """Base class for errors raised by the discovery service"""


class NoUsableInterfaceError(DiscoveryError):
    """No network interface was up, multicast-capable and configured for IPv4, so there was
    nothing to search on.
    """

    code = NO_INTERFACE_ERROR_CODE

    def __init__(self, message: str = "no multicast capable network interface was found"):
        super().__init__(f"Code: {self.code}, {message}")
