#!/usr/bin/env python3
"""
Command line client for a resource server.

    resserver-client query --prop type=video --desc type:lang=en --count all
    resserver-client query --ref a1b2c3
    resserver-client upload --prop author=me movie.mp4 poster.png
"""

import argparse
import asyncio
import logging
import sys

from resserver_client.client import ResServer
from resserver_client.core.exceptions import ResServerError
from resserver_client.core.logs import setup_logging
from resserver_client.core.parser import ResponseSet
from resserver_client.core.sentry import init_sentry
from resserver_client.core.upload import FilePayload, UploadResult

log = logging.getLogger(__name__)


def _pair(value: str) -> tuple[str, str]:
    name, sep, val = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected name=value, got '{value}'")
    return name, val


def _descriptor(value: str) -> tuple[str, str, str]:
    prop, sep, rest = value.partition(":")
    if not sep or not prop:
        raise argparse.ArgumentTypeError(f"expected prop:name=value, got '{value}'")
    return (prop, *_pair(rest))


def _count(value: str) -> int | str:
    return value if value == "all" else int(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="resserver-client", description=__doc__.split("\n")[1])
    parser.add_argument("--url", default=None, help="resource server url (https only)")
    parser.add_argument("--username", default=None)
    parser.add_argument("--password", default=None)
    parser.add_argument("--log-level", default=None)
    commands = parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser("query", help="query resources and print their download urls")
    query.add_argument("--prop", type=_pair, action="append", default=[], metavar="NAME=VALUE")
    query.add_argument(
        "--desc", type=_descriptor, action="append", default=[], metavar="PROP:NAME=VALUE"
    )
    query.add_argument("--user", type=_pair, action="append", default=[], metavar="NAME=VALUE")
    query.add_argument(
        "--controller", type=_pair, action="append", default=[], metavar="NAME=VALUE"
    )
    query.add_argument("--start", type=int, default=None)
    query.add_argument("--count", type=_count, default=None)
    query.add_argument("--ref", default=None, help="re-run a previous query by its reference")

    upload = commands.add_parser("upload", help="upload files in a single request")
    upload.add_argument("files", nargs="+")
    upload.add_argument("--prop", type=_pair, action="append", default=[], metavar="NAME=VALUE")
    upload.add_argument("--inherit", action="store_true")
    return parser


async def run_query(res: ResServer, args) -> ResponseSet:
    document = res.queries()
    if args.ref:
        return await document.add_ref(args.ref, args.start, args.count).send()
    query = document.add_query()
    if args.start is not None:
        query.set_start(args.start)
    if args.count is not None:
        query.set_count(args.count)
    for name, value in args.user:
        query.add_user_context(name, value)
    for name, value in args.controller:
        query.add_controller_context(name, value)
    for name, value in args.prop:
        descriptors = [(d_name, d_value) for prop, d_name, d_value in args.desc if prop == name]
        query.add_property(name, value, descriptors)
    return await document.send()


async def run_upload(res: ResServer, args) -> UploadResult:
    batch = res.upload()
    for path in args.files:
        payload = FilePayload(path)
        item = batch.add_item(payload.filename, payload, inherit=args.inherit)
        for name, value in args.prop:
            item.add_property(name, value)
    return await batch.send()


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    init_sentry()
    try:
        async with ResServer(args.url, args.username, args.password) as res:
            if args.command == "query":
                responses = await run_query(res, args)
                for response in responses:
                    if response.has_ref():
                        print(f"# ref={response.ref} expired={response.expired}")
                    for resource in response:
                        for global_at in resource.global_ats:
                            print(global_at)
            else:
                result = await run_upload(res, args)
                for outcome in result:
                    print(f"{outcome.status}\t{outcome.name}\t{outcome.message or ''}")
                if not result.ok:
                    return 1
    except ResServerError as e:
        log.error("%s", e)
        return 2
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
