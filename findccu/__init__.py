from .service import Service as Service
from .servers import DiscoverySession as DiscoverySession
from .parsers import MessageParser as MessageParser
from .protocol import DiscoveredDevice as DiscoveredDevice
from .protocol import NetworkInterface as NetworkInterface
from .protocol import Opcode as Opcode
from .interfaces import InterfaceProvider as InterfaceProvider
from .interfaces import HostInterfaceProvider as HostInterfaceProvider
from .config import DiscoveryConfig as DiscoveryConfig
from .config import load_config as load_config
from .errors import DiscoveryError as DiscoveryError
from .errors import NoUsableInterfaceError as NoUsableInterfaceError

from .constants import MULTICAST_ADDR as MULTICAST_ADDR
from .constants import DISCOVERY_PORT as DISCOVERY_PORT
from .constants import DEFAULT_TIMEOUT as DEFAULT_TIMEOUT
from .constants import DEFAULT_RETRY_COUNT as DEFAULT_RETRY_COUNT

__version__ = "0.1.0"
