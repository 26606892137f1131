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
from argparse import Namespace
from pathlib import Path

import pytest

from cloudcollector.app_dependencies import bucket_thresholds, create_dependencies, engine_options
from cloudcollector.collection.collection_task import CollectionTask
from cloudcollector.collection.scheduler import CollectionScheduler
from cloudcollector.config import Config
from cloudcollector.dependencies import ServiceNames as SN
from cloudcollector.raw_data import BucketThresholds


def test_bucket_thresholds(default_config: Config) -> None:
    assert bucket_thresholds(default_config) == BucketThresholds(15, 45, 30.0, 70.0)


def test_engine_options() -> None:
    assert engine_options("sqlite+aiosqlite:///:memory:") == {}
    assert engine_options("mysql+aiomysql://user:pw@localhost:3306/db") == {
        "pool_size": 10,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


@pytest.mark.asyncio
async def test_create_dependencies(default_config: Config, tmp_path: Path) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'deps.db'}"

    cfg = default_config.model_copy(update={"database_url_override": url})
    deps = await create_dependencies(cfg)
    try:
        assert isinstance(deps.collection_task, CollectionTask)
        assert isinstance(deps.lookup[SN.collection_scheduler], CollectionScheduler)
    finally:
        await deps.async_engine.dispose()

    # a single run does not schedule anything
    once = cfg.model_copy(update={"args": Namespace(debug=False, mode="once", skip_migrations=True, port=8000)})
    deps = await create_dependencies(once)
    try:
        assert isinstance(deps.collection_task, CollectionTask)
        assert SN.collection_scheduler not in deps.lookup
    finally:
        await deps.async_engine.dispose()
