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
from typing import Annotated, cast

from fastapi.params import Depends
from fixcloudutils.service import Dependencies
from sqlalchemy.ext.asyncio import AsyncEngine

from cloudcollector.collection.collection_task import CollectionTask
from cloudcollector.config import Config
from cloudcollector.types import AsyncSessionMaker


class ServiceNames:
    config = "config"
    async_engine = "async_engine"
    session_maker = "session_maker"
    credential_provider = "credential_provider"
    cloud_client = "cloud_client"
    account_config_repo = "account_config_repo"
    collector_repo = "collector_repo"
    raw_data_repo = "raw_data_repo"
    aggregate_repo = "aggregate_repo"
    collection_task = "collection_task"
    collection_scheduler = "collection_scheduler"


class CollectorDependencies(Dependencies):
    @property
    def config(self) -> Config:
        return self.service(ServiceNames.config, Config)

    @property
    def async_engine(self) -> AsyncEngine:
        return self.service(ServiceNames.async_engine, AsyncEngine)

    @property
    def session_maker(self) -> AsyncSessionMaker:
        return cast(AsyncSessionMaker, self.lookup[ServiceNames.session_maker])

    @property
    def collection_task(self) -> CollectionTask:
        return self.service(ServiceNames.collection_task, CollectionTask)

    async def stop(self) -> None:
        await super().stop()
        if engine := self.lookup.get(ServiceNames.async_engine):
            await cast(AsyncEngine, engine).dispose()


# placeholder for dependencies, will be replaced during the app initialization
def collector_dependencies() -> CollectorDependencies:
    raise RuntimeError("Dependencies dependency not initialized yet.")


CollectorDependency = Annotated[CollectorDependencies, Depends(collector_dependencies)]
