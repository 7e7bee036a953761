"""Command-line entry point for talking to a Consul agent.

Examples:

    python run_client.py get my-key
    python run_client.py set my-key "some value"
    python run_client.py keys my-prefix
    python run_client.py delete my-key
    python run_client.py nodes web
    python run_client.py register service.json

Connection settings come from CONSUL_HTTP_ADDR, CONSUL_SCHEME, CONSUL_BOUND
and CONSUL_TIMEOUT (a .env file is loaded first), or the flags below.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from consul_mux import ClientConfig, ConsulClient, ConsulError
from consul_mux.logging_config import log_init

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query a Consul agent")
    parser.add_argument("--address", type=str, default=None, help="host:port of the agent")
    parser.add_argument("--scheme", type=str, default=None, help="http or https")
    parser.add_argument("--bound", type=int, default=None, help="max concurrent requests")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    p = sub.add_parser("get", help="read a key")
    p.add_argument("key")
    p = sub.add_parser("keys", help="list keys under a prefix")
    p.add_argument("prefix")
    p = sub.add_parser("set", help="write a key")
    p.add_argument("key")
    p.add_argument("value")
    p = sub.add_parser("delete", help="delete a key")
    p.add_argument("key")
    p = sub.add_parser("nodes", help="list nodes for a service")
    p.add_argument("service")
    p = sub.add_parser("register", help="register a service from a JSON file")
    p.add_argument("path")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ClientConfig:
    config = ClientConfig.from_env()
    if args.address is not None:
        config.address = args.address
    if args.scheme is not None:
        config.scheme = args.scheme
    if args.bound is not None:
        config.bound = args.bound
    return config


async def run(args: argparse.Namespace) -> int:
    config = build_config(args)
    logger.info("Using Consul agent at %s://%s", config.scheme, config.address)

    async with ConsulClient.from_config(config) as consul:
        try:
            if args.command == "get":
                for entry in await consul.get(args.key):
                    print(f"{entry.key} = {entry.decoded_value().decode('utf-8', 'replace')}")
            elif args.command == "keys":
                for key in await consul.get_keys(args.prefix):
                    print(key)
            elif args.command == "set":
                print(await consul.set(args.key, args.value))
            elif args.command == "delete":
                print(await consul.delete(args.key))
            elif args.command == "nodes":
                for node in await consul.service_nodes(args.service):
                    print(json.dumps(node.to_dict()))
            elif args.command == "register":
                with open(args.path, "rb") as f:
                    await consul.register(f.read())
                print("registered")
        except ConsulError as exc:
            print(f"error: {type(exc).__name__}: {exc}", file=sys.stderr)
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    log_init(verbose=args.verbose)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
