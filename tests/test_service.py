import asyncio
import threading

import pytest

from fakes import FakeSocket
from findccu import (
    DiscoveredDevice,
    DiscoveryConfig,
    InterfaceProvider,
    NetworkInterface,
    NoUsableInterfaceError,
    Service,
    __version__,
)


class StaticInterfaces(InterfaceProvider):
    """Provider returning a fixed interface list"""

    def __init__(self, interfaces) -> None:
        self.interfaces = interfaces

    def list_interfaces(self):
        return list(self.interfaces)


class FakeSession:
    """Stands in for ``DiscoverySession``, returning canned replies or raising"""

    def __init__(self, result, delay=0.0) -> None:
        self.result = result
        self.delay = delay
        self.cancel = None

    def search(self, cancel=None):
        self.cancel = cancel
        if self.delay:
            (cancel or threading.Event()).wait(self.delay)
        if isinstance(self.result, Exception):
            raise self.result
        return list(self.result)


class FakeService(Service):
    """Service whose sessions are looked up by interface name"""

    def __init__(self, interfaces, sessions, **kwargs) -> None:
        super().__init__(interface_provider=StaticInterfaces(interfaces), **kwargs)
        self.sessions = sessions
        self.created = []

    def create_session(self, local_ip, interface):
        self.created.append((local_ip, interface.name, interface.index))
        return self.sessions[interface.name]


def iface(name, index, address="192.168.1.10", is_up=True, supports_multicast=True):
    return NetworkInterface(
        name=name,
        address=address,
        index=index,
        is_up=is_up,
        supports_multicast=supports_multicast,
    )


def test_version():
    assert __version__ == "0.1.0"


def test_defaults():
    service = Service(interface_provider=StaticInterfaces([]))
    assert service.timeout == 2000
    assert service.retry_count == 2
    assert service.ttl == 5
    assert service.retry_delay == 100


@pytest.mark.parametrize(
    "interfaces",
    [
        [],
        [iface("eth0", 1, is_up=False)],
        [iface("tun0", 2, supports_multicast=False)],
        [iface("eth1", 3, address=None)],
        [
            iface("eth0", 1, is_up=False),
            iface("tun0", 2, supports_multicast=False),
            iface("eth1", 3, address=None),
        ],
    ],
)
def test_no_usable_interface(interfaces):
    service = FakeService(interfaces, {})
    with pytest.raises(NoUsableInterfaceError) as e:
        service.search_all_interfaces("192.168.1.10")
    assert e.value.code == 9919
    assert "9919" in str(e.value)
    assert service.created == []


def test_empty_result_is_success():
    service = FakeService([iface("eth0", 1)], {"eth0": FakeSession([])})
    assert service.search_all_interfaces("192.168.1.10") == []


def test_only_eligible_interfaces_searched():
    interfaces = [
        iface("lo", 1, is_up=False),
        iface("eth0", 2),
        iface("tun0", 3, supports_multicast=False),
        iface("eth1", 4),
    ]
    sessions = {"eth0": FakeSession([]), "eth1": FakeSession([])}
    service = FakeService(interfaces, sessions)
    service.search_all_interfaces("192.168.1.10")
    assert sorted(service.created) == [
        ("192.168.1.10", "eth0", 2),
        ("192.168.1.10", "eth1", 4),
    ]


@pytest.mark.parametrize("concurrent", [True, False])
def test_first_seen_wins(concurrent):
    sessions = {
        # Interface A answers last but is listed first
        "a": FakeSession([DiscoveredDevice("10.0.0.5", "hello")], delay=0.1),
        "b": FakeSession([DiscoveredDevice("10.0.0.5", "dup")]),
    }
    service = FakeService([iface("a", 1), iface("b", 2)], sessions, concurrent=concurrent)
    assert service.search_all_interfaces("192.168.1.10") == [
        DiscoveredDevice("10.0.0.5", "hello")
    ]


def test_dedup_within_and_across_interfaces():
    sessions = {
        "a": FakeSession(
            [
                DiscoveredDevice("10.0.0.5", "one"),
                DiscoveredDevice("10.0.0.5", "two"),
                DiscoveredDevice("10.0.0.6", "three"),
            ]
        ),
        "b": FakeSession(
            [DiscoveredDevice("10.0.0.6", "four"), DiscoveredDevice("10.0.1.9", "five")]
        ),
    }
    service = FakeService([iface("a", 1), iface("b", 2)], sessions)
    result = service.search_all_interfaces("192.168.1.10")
    assert [(d.host, d.payload) for d in result] == [
        ("10.0.0.5", "one"),
        ("10.0.0.6", "three"),
        ("10.0.1.9", "five"),
    ]
    assert len({d.host for d in result}) == len(result)


@pytest.mark.parametrize("concurrent", [True, False])
def test_interface_fault_isolated(concurrent):
    sessions = {
        "a": FakeSession(OSError(98, "Address already in use")),
        "b": FakeSession([DiscoveredDevice("10.0.0.8", "ok")]),
    }
    service = FakeService([iface("a", 1), iface("b", 2)], sessions, concurrent=concurrent)
    assert service.search_all_interfaces("192.168.1.10") == [
        DiscoveredDevice("10.0.0.8", "ok")
    ]


def test_all_interfaces_fault_is_success():
    sessions = {"a": FakeSession(OSError("boom")), "b": FakeSession(OSError("boom"))}
    service = FakeService([iface("a", 1), iface("b", 2)], sessions)
    assert service.search_all_interfaces("192.168.1.10") == []


def test_sessions_run_concurrently():
    # Each session blocks until all three are running at the same time
    barrier = threading.Barrier(3, timeout=10)

    class BarrierSession(FakeSession):
        def search(self, cancel=None):
            barrier.wait()
            return super().search(cancel)

    sessions = {name: BarrierSession([]) for name in ("a", "b", "c")}
    service = FakeService(
        [iface("a", 1), iface("b", 2), iface("c", 3)], sessions, concurrent=True
    )
    assert service.search_all_interfaces("192.168.1.10") == []
    assert not barrier.broken


def test_cancel_event_passed_to_sessions():
    sessions = {"a": FakeSession([]), "b": FakeSession([])}
    service = FakeService([iface("a", 1), iface("b", 2)], sessions)
    cancel = threading.Event()
    service.search_all_interfaces("192.168.1.10", cancel)
    assert sessions["a"].cancel is cancel
    assert sessions["b"].cancel is cancel


def test_interface_address_used_without_local_ip():
    service = Service(interface_provider=StaticInterfaces([]), retry_count=4, timeout=500)
    session = service.create_session(None, iface("eth0", 2, address="10.1.1.1"))
    assert session.local_ip == "10.1.1.1"
    assert session.interface_index == 2
    assert session.retry_count == 4
    assert session.timeout == 500

    session = service.create_session("192.168.1.10", iface("eth0", 2, address="10.1.1.1"))
    assert session.local_ip == "192.168.1.10"
    assert session.interface_address == "10.1.1.1"


def test_from_config():
    config = DiscoveryConfig(timeout=300, retry_count=3, ttl=2, retry_delay=50, concurrent=False)
    service = Service.from_config(config, StaticInterfaces([]))
    assert service.timeout == 300
    assert service.retry_count == 3
    assert service.ttl == 2
    assert service.retry_delay == 50
    assert service.concurrent is False


async def test_async_search():
    sessions = {"a": FakeSession([DiscoveredDevice("10.0.0.5", "hello")])}
    service = FakeService([iface("a", 1)], sessions)
    assert await service.search("192.168.1.10") == [DiscoveredDevice("10.0.0.5", "hello")]


async def test_async_no_usable_interface():
    service = FakeService([], {})
    with pytest.raises(NoUsableInterfaceError):
        await service.search("192.168.1.10")


async def test_async_cancel_stops_sessions():
    session = FakeSession([], delay=10)
    service = FakeService([iface("a", 1)], {"a": session})
    task = asyncio.create_task(service.search("192.168.1.10"))
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert session.cancel.is_set()


class SocketService(Service):
    """Service running real sessions on fake sockets, one per interface name"""

    def __init__(self, interfaces, sockets, **kwargs) -> None:
        super().__init__(interface_provider=StaticInterfaces(interfaces), **kwargs)
        self.sockets = sockets

    def create_session(self, local_ip, interface):
        session = super().create_session(local_ip, interface)
        session.socket_factory = lambda *args: self.sockets[interface.name]
        return session


def test_silent_interface_sends_every_probe():
    sock = FakeSocket()
    service = SocketService([iface("eth0", 1)], {"eth0": sock}, retry_count=3, retry_delay=0)
    assert service.search_all_interfaces("192.168.1.10") == []
    assert len(sock.sent) == 3
    assert sock.closed


@pytest.mark.parametrize("concurrent", [True, False])
def test_bind_failure_does_not_stop_other_interfaces(concurrent):
    sockets = {
        "a": FakeSocket(bind_error=OSError(98, "Address already in use")),
        "b": FakeSocket([(b"hello", ("10.0.0.5", 43439))]),
    }
    service = SocketService(
        [iface("a", 1), iface("b", 2)],
        sockets,
        retry_count=2,
        retry_delay=0,
        concurrent=concurrent,
    )
    assert service.search_all_interfaces("192.168.1.10") == [
        DiscoveredDevice("10.0.0.5", "hello")
    ]
    assert sockets["a"].closed
    assert sockets["a"].sent == []
    assert len(sockets["b"].sent) == 2
    assert sockets["b"].closed


@pytest.mark.parametrize(
    "settings",
    [
        {"timeout": 0},
        {"timeout": -5},
        {"retry_count": 0},
        {"retry_delay": -1},
        {"ttl": 256},
    ],
)
def test_invalid_settings_rejected_on_construction(settings):
    with pytest.raises(ValueError):
        Service(interface_provider=StaticInterfaces([iface("lo", 1)]), **settings)


def test_invalid_config_rejected():
    with pytest.raises(ValueError):
        Service.from_config(DiscoveryConfig(timeout=0), StaticInterfaces([]))
