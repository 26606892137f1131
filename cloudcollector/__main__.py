#  Copyright (c) 2023. Some Engineering
#  This program is free software: you can redistribute it and/or modify
#  it under the terms of the GNU Affero General Public License as published by
#  the Free Software Foundation, either version 3 of the License, or
#  (at your option) any later version.
#
#  This program is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU Affero General Public License for more details.
#
#  You should have received a copy of the GNU Affero General Public License
#  along with this program.  If not, see <http://www.gnu.org/licenses/>.
import asyncio
import logging
from argparse import Namespace
from asyncio import Task
from signal import signal, SIGINT
from types import FrameType
from typing import Optional, Any

import uvicorn

from cloudcollector.alembic_startup_utils import alembic_config, prepare_database
from cloudcollector.app import setup_process, setup_process_logging
from cloudcollector.app_dependencies import create_dependencies
from cloudcollector.config import parse_args, get_config

log = logging.getLogger(__name__)


def main() -> None:
    args = parse_args()

    # alembic wants to have its own async loop
    prepare_database(alembic_config(get_config().database_url), args.skip_migrations)

    if args.mode == "once":
        asyncio.run(collect_once())
    else:
        # start a new async loop for the uvicorn server
        asyncio.run(start(args))


async def collect_once() -> None:
    cfg = get_config()
    setup_process_logging(cfg)
    deps = await create_dependencies(cfg)
    async with deps:
        await deps.collection_task.run()
    log.info("Single collection run done.")


async def start(args: Namespace) -> None:
    config = uvicorn.Config(
        await setup_process(),
        host="0.0.0.0",
        port=args.port,
        log_level="info",
        log_config={"version": 1},  # minimal config to disable uvicorns logger and use the default one
        factory=False,
    )
    server = uvicorn.Server(config)
    wait_for_shutdown: Optional[Task[Any]] = None

    def signal_handler(_: int, __: Optional[FrameType]) -> None:
        nonlocal wait_for_shutdown
        if wait_for_shutdown is None:
            print("Interrupt received, shutting down...")
            wait_for_shutdown = asyncio.create_task(server.shutdown())

    # register signal handler to gracefully shutdown the server
    signal(SIGINT, signal_handler)
    # this will block until the server is stopped
    await server.serve()
    # wait for the server to finish shutting down
    if wait_for_shutdown:
        await wait_for_shutdown


if __name__ == "__main__":
    main()
