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
from typing import Any, Dict

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from cloudcollector.accounts.repository import AccountConfigRepository
from cloudcollector.aggregate.aggregate_repository import AggregateRepository
from cloudcollector.collection.collection_task import CollectionTask
from cloudcollector.collection.scheduler import CollectionScheduler
from cloudcollector.collector.collector_repository import CollectorRepository
from cloudcollector.config import Config
from cloudcollector.dependencies import CollectorDependencies
from cloudcollector.dependencies import ServiceNames as SN  # noqa
from cloudcollector.provider.aws_client import AwsCloudClient
from cloudcollector.provider.credentials import ProxySettings, StaticKeyCredentialProvider
from cloudcollector.raw_data import BucketThresholds
from cloudcollector.raw_data.raw_data_repository import RawDataRepository
from cloudcollector.sqlalchemy_extensions import EngineMetrics

log = logging.getLogger(__name__)


def engine_options(database_url: str) -> Dict[str, Any]:
    # sqlite engines use a pool without size limits
    if database_url.startswith("sqlite"):
        return {}
    return dict(pool_size=10, pool_recycle=3600, pool_pre_ping=True)


def bucket_thresholds(cfg: Config) -> BucketThresholds:
    return BucketThresholds(
        age_warning_days=cfg.age_warning_days,
        age_expired_days=cfg.age_expired_days,
        cpu_low=cfg.cpu_low_threshold,
        cpu_high=cfg.cpu_high_threshold,
    )


async def base_dependencies(cfg: Config) -> CollectorDependencies:
    deps = CollectorDependencies()
    deps.add(SN.config, cfg)
    engine = deps.add(
        SN.async_engine,
        create_async_engine(cfg.database_url, **engine_options(cfg.database_url)),
    )
    EngineMetrics.register(engine)
    deps.add(SN.session_maker, async_sessionmaker(engine))
    return deps


async def create_dependencies(cfg: Config) -> CollectorDependencies:
    deps = await base_dependencies(cfg)
    session_maker = deps.session_maker
    credential_provider = deps.add(SN.credential_provider, StaticKeyCredentialProvider(cfg.aws_region))
    cloud_client = deps.add(
        SN.cloud_client,
        AwsCloudClient(
            credential_provider,
            ProxySettings.from_config(cfg),
            lookback=cfg.metrics_lookback,
            period_seconds=cfg.metrics_period_seconds,
        ),
    )
    collector_repo = deps.add(SN.collector_repo, CollectorRepository(session_maker))
    account_config_repo = deps.add(SN.account_config_repo, AccountConfigRepository(session_maker))
    raw_data_repo = deps.add(SN.raw_data_repo, RawDataRepository(session_maker, bucket_thresholds(cfg)))
    aggregate_repo = deps.add(SN.aggregate_repo, AggregateRepository(session_maker))
    task = deps.add(
        SN.collection_task,
        CollectionTask(collector_repo, account_config_repo, cloud_client, raw_data_repo, aggregate_repo),
    )
    # a single run does not need the scheduler
    if cfg.args.mode == "collector":
        deps.add(SN.collection_scheduler, CollectionScheduler(task, collector_repo, cfg.collect_cron))
    return deps
