import random

from typing import Optional, Tuple

from .constants import ENCODING, PROTOCOL_VERSION, SEND_COUNTER, WILDCARD
from .protocol import DiscoveredDevice, Opcode


class MessageParser:
    """Determines how probes and replies on the discovery port get translated into raw bytes in
    the udp packets.

    :param rng: Random source used for the sender id, anything with a ``randrange`` method. When
        omitted a new ``random.Random`` is created for every probe.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng

    def sender_id(self) -> int:
        """One byte taken from a random 24 bit value"""
        rng = self.rng or random.Random()
        value = rng.randrange(-(2**31), 2**31 - 1) & 0xFFFFFF
        return (value >> 8) & 0xFF

    def create_probe(self, opcode: Opcode = Opcode.IDENTIFY) -> bytes:
        """Builds a fresh probe. The fields are positional and concatenated without delimiters:
        version, sender id, send counter, device type, ``0``, serial number (empty), ``0``,
        opcode and payload.

        :param opcode: Command to send, ``Opcode.IDENTIFY`` for discovery

        :return: The encoded message
        """
        serial_number = ""
        message = (
            f"{PROTOCOL_VERSION}{self.sender_id()}{SEND_COUNTER}{WILDCARD}"
            f"0{serial_number}0{int(opcode)}{WILDCARD}"
        )
        return message.encode(ENCODING)

    def parse_reply(self, data: bytes, address: Tuple[str, int]) -> DiscoveredDevice:
        """Captures a reply datagram verbatim

        :param data: Raw data

        :param address: Sender address as returned by ``recvfrom``
        """
        return DiscoveredDevice(host=address[0], payload=data.decode(ENCODING))
