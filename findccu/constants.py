from typing import Final

#: Multicast group that devices and searchers rendezvous on
MULTICAST_ADDR: Final = "224.0.0.1"

#: Port used for identification probes and their replies
DISCOVERY_PORT: Final = 43439

#: Multicast time-to-live for outgoing probes
MULTICAST_TTL: Final = 5

#: Delay in ms between two probe attempts on the same interface
RETRY_DELAY: Final = 100

#: Default send/receive timeout in ms for a single attempt
DEFAULT_TIMEOUT: Final = 2000

#: Default number of probe attempts per interface
DEFAULT_RETRY_COUNT: Final = 2

#: Protocol version marker, first field of every probe
PROTOCOL_VERSION: Final = "2"

#: Send counter field of the probe (not incremented between retries)
SEND_COUNTER: Final = 1

#: Wildcard used for the device type and payload fields
WILDCARD: Final = "*"

#: Single byte per character, keeps the positional fields at stable offsets
ENCODING: Final = "latin-1"

#: Maximum size of a single reply datagram
RECV_BUFFER_SIZE: Final = 1024

#: Error code reported when no network interface can carry the search
NO_INTERFACE_ERROR_CODE: Final = 9919
