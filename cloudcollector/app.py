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
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, ClassVar, Optional, Set, Tuple, cast

from fastapi import FastAPI, Response
from fastapi.responses import JSONResponse
from fixcloudutils.logging import setup_logger
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import select

from cloudcollector import config, dependencies
from cloudcollector.app_dependencies import create_dependencies
from cloudcollector.config import Config
from cloudcollector.dependencies import CollectorDependencies, CollectorDependency
from cloudcollector.logging_context import get_logging_context

log = logging.getLogger(__name__)


def fast_api_app(cfg: Config, deps: CollectorDependencies) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        async with deps:
            log.info("Collector services started.")
            yield None
        log.info("Collector services stopped.")

    app = FastAPI(title="Cloud Collector", summary="Collects cloud compute inventory and metrics", lifespan=lifespan)
    app.dependency_overrides[config.config] = lambda: cfg
    app.dependency_overrides[dependencies.collector_dependencies] = lambda: deps

    class EndpointFilter(logging.Filter):
        endpoints_to_filter: ClassVar[Set[str]] = {
            "/health",
            "/ready",
            "/metrics",
        }

        def filter(self, record: logging.LogRecord) -> bool:
            args = cast(Optional[Tuple[Any, ...]], record.args)
            return (args is not None) and len(args) >= 3 and args[2] not in self.endpoints_to_filter

    # Add filter to the logger
    logging.getLogger("uvicorn.access").addFilter(EndpointFilter())

    @app.get("/health", tags=["system"])
    async def health(collector_deps: CollectorDependency) -> Response:
        try:
            async with collector_deps.session_maker() as session:
                result = await session.execute(select(1))
                if result.scalar_one() != 1:
                    log.error("Database did not return 1 from select 1")
                    return Response(status_code=500)
        except Exception as e:
            log.error("Health check failed", exc_info=e)
            return Response(status_code=500)

        return Response(status_code=200)

    @app.get("/ready", tags=["system"])
    async def ready() -> Response:
        return Response(status_code=200)

    @app.get("/info", tags=["system"])
    async def info() -> Response:
        return JSONResponse(
            dict(environment=cfg.environment, instance_id=cfg.instance_id, collect_cron=cfg.collect_cron)
        )

    Instrumentator().instrument(app).expose(app, tags=["system"])

    return app


def setup_process_logging(cfg: Config) -> None:
    level = logging.DEBUG if cfg.args.debug else logging.INFO
    setup_logger(f"cloudcollector_{cfg.args.mode}", level=level, get_logging_context=get_logging_context)


async def setup_process() -> FastAPI:
    """
    This function is used by uvicorn to start the server.
    Entrypoint for the application to start the server.
    """
    current_config = config.get_config()
    setup_process_logging(current_config)
    deps = await create_dependencies(current_config)
    return fast_api_app(current_config, deps)
