from dataclasses import dataclass
from dataclasses_json import DataClassJsonMixin
from enum import IntEnum
from typing import Optional


class Opcode(IntEnum):
    """Command vocabulary understood by the devices. Only ``IDENTIFY`` is used for discovery."""

    IDENTIFY = 73
    GET_CONFIG = 99
    SET_CONFIG = 67
    GET_NETWORK_ADDRESS = 110
    REBOOT = 82
    ENTER_BOOTLOADER = 66
    ENTER_APPLICATION = 65
    INIT_UPDATE = 85
    WRITE_UPDATE = 87
    GET_TEST_STATUS = 116
    SET_TEST_STATUS = 84
    CRYPT = 42
    FACTORY_RESET = 70
    INIT_KEY_EXCHANGE = 75
    KEY_EXCHANGE = 69
    PRODUCTION_TEST = 80
    GET_DEVICE_SPECIFIC_CONFIG_STRUCTURE = 115
    GET_DEVICE_SPECIFIC_CONFIG = 100
    SET_DEVICE_SPECIFIC_CONFIG = 68


@dataclass(frozen=True)
class DiscoveredDevice(DataClassJsonMixin):
    """A device that answered an identification probe

    :param host: Address the reply was sent from

    :param payload: Reply datagram as text, not interpreted any further
    """

    host: str
    payload: str


@dataclass(frozen=True)
class NetworkInterface(DataClassJsonMixin):
    """Minimal description of a local network interface as needed for a search"""

    name: str
    address: Optional[str]
    index: Optional[int]
    is_up: bool = True
    supports_multicast: bool = True

    @property
    def eligible(self) -> bool:
        """Up, multicast-capable and configured for IPv4"""
        return self.is_up and self.supports_multicast and self.address is not None
