import argparse
import asyncio
import json
import logging
import sys

import findccu

logging.basicConfig(format="%(levelname)s: %(message)s", level=logging.INFO)


def build_config(args: argparse.Namespace) -> findccu.DiscoveryConfig:
    config = findccu.load_config(args.config) if args.config else findccu.DiscoveryConfig()
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.retries is not None:
        config.retry_count = args.retries
    if args.ttl is not None:
        config.ttl = args.ttl
    if args.delay is not None:
        config.retry_delay = args.delay
    if args.sequential:
        config.concurrent = False
    if args.local_ip is not None:
        config.local_ip = args.local_ip
    return config.validate()


async def main(args: argparse.Namespace) -> int:
    config = build_config(args)
    service = findccu.Service.from_config(config)
    try:
        devices = await service.search(config.local_ip)
    except findccu.NoUsableInterfaceError as e:
        logging.error(str(e))
        return 1

    if args.json:
        print(json.dumps([device.to_dict() for device in devices], indent=2))
    else:
        for device in devices:
            print(device.host + "\t" + device.payload)
        logging.info(str(len(devices)) + " device(s) found")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Find CCUs on the local network")
    parser.add_argument(
        "local_ip", nargs="?", default=None, help="Local address for the multicast membership"
    )
    parser.add_argument("--config", default=None, help="JSON file with search settings")
    parser.add_argument("--timeout", default=None, type=int, help="Receive timeout in ms")
    parser.add_argument("--retries", default=None, type=int, help="Probes per interface")
    parser.add_argument("--ttl", default=None, type=int, help="Multicast time-to-live")
    parser.add_argument("--delay", default=None, type=int, help="Delay between probes in ms")
    parser.add_argument(
        "--sequential", action="store_true", help="Search one interface at a time"
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every probe")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    sys.exit(asyncio.run(main(args)))
