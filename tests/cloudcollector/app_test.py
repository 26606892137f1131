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
from typing import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from cloudcollector.app import fast_api_app
from cloudcollector.config import Config
from cloudcollector.dependencies import CollectorDependencies
from cloudcollector.dependencies import ServiceNames as SN
from cloudcollector.types import AsyncSessionMaker


@pytest.fixture
async def client(
    default_config: Config, db_engine: AsyncEngine, async_session_maker: AsyncSessionMaker
) -> AsyncIterator[AsyncClient]:
    deps = CollectorDependencies()
    deps.add(SN.config, default_config)
    deps.add(SN.async_engine, db_engine)
    deps.add(SN.session_maker, async_session_maker)
    app = fast_api_app(default_config, deps)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_openapi_generation(client: AsyncClient) -> None:
    response = await client.get("/openapi.json")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_health_and_ready(client: AsyncClient) -> None:
    assert (await client.get("/health")).status_code == 200
    assert (await client.get("/ready")).status_code == 200


@pytest.mark.asyncio
async def test_info(client: AsyncClient) -> None:
    response = await client.get("/info")
    assert response.status_code == 200
    assert response.json() == {"environment": "dev", "instance_id": "test", "collect_cron": "*/5 * * * *"}


@pytest.mark.asyncio
async def test_metrics(client: AsyncClient) -> None:
    await client.get("/ready")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "cloud_collector_instances_collected_total" in response.text
