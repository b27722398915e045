"""Command line entry point."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

import uvicorn
from dotenv import find_dotenv, load_dotenv

from livepush.api import create_app
from livepush.config import Settings
from livepush.logging_setup import setup_logging
from livepush.runtime import Runtime, build_runtime
from livepush.stores.sqlite import SqliteCacheStore, SqliteDatabase, SqliteSubscriptionStore

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def open_runtime(settings: Settings) -> AsyncIterator[Runtime]:
    async with SqliteDatabase(settings.database_path) as db:
        runtime = build_runtime(settings, SqliteCacheStore(db), SqliteSubscriptionStore(db))
        try:
            yield runtime
        finally:
            await runtime.close()


async def serve(settings: Settings, host: str, port: int, with_sweep: bool) -> None:
    async with open_runtime(settings) as runtime:
        server = uvicorn.Server(uvicorn.Config(create_app(runtime.service), host=host, port=port))
        background: list[asyncio.Task[None]] = [asyncio.create_task(runtime.maintenance.run_forever())]
        if with_sweep:
            background.append(asyncio.create_task(runtime.sweeper.run_forever()))
        try:
            await server.serve()
        finally:
            for task in background:
                task.cancel()
            await asyncio.gather(*background, return_exceptions=True)


async def sweep(settings: Settings, once: bool) -> None:
    async with open_runtime(settings) as runtime:
        if once:
            report = await runtime.sweeper.sweep()
            logger.info("Polled %d targets: %s", report.targets, report.outcomes)
        else:
            await runtime.sweeper.run_forever()


async def cleanup(settings: Settings) -> None:
    async with open_runtime(settings) as runtime:
        evicted, purged = await runtime.maintenance.run()
        logger.info("Evicted %d cache entries, purged %d subscriptions", evicted, purged)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="livepush", description="Live results push notifications")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_cmd = sub.add_parser("serve", help="run the query API (and the sweep loop)")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--no-sweep", action="store_true", help="do not run the sweep loop")

    sub.add_parser("sweep", help="poll followed classes on a fixed interval")
    sub.add_parser("sweep-once", help="run a single sweep and exit")
    sub.add_parser("cleanup", help="evict old cache entries and subscriptions")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings.from_env()
    setup_logging(settings)

    if args.command == "serve":
        asyncio.run(serve(settings, args.host, args.port, with_sweep=not args.no_sweep))
    elif args.command == "sweep":
        asyncio.run(sweep(settings, once=False))
    elif args.command == "sweep-once":
        asyncio.run(sweep(settings, once=True))
    elif args.command == "cleanup":
        asyncio.run(cleanup(settings))


if __name__ == "__main__":
    main()
