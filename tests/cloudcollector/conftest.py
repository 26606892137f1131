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
from argparse import Namespace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional, Tuple
from unittest.mock import patch

import pytest
from alembic.command import check as alembic_check
from alembic.command import upgrade as alembic_upgrade
from boto3 import Session as BotoSession
from fixcloudutils.types import Json
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from cloudcollector.accounts.models import AccountConfig
from cloudcollector.accounts.repository import AccountConfigRepository
from cloudcollector.aggregate.aggregate_repository import AggregateRepository
from cloudcollector.alembic_startup_utils import alembic_config
from cloudcollector.collection.collection_task import CollectionTask
from cloudcollector.collector.collector_repository import CollectorRepository
from cloudcollector.collector.models import Collector
from cloudcollector.config import Config
from cloudcollector.ids import CollectorItemId, CollectorNames
from cloudcollector.provider.aws_client import AwsCloudClient
from cloudcollector.provider.credentials import ProxySettings, StaticKeyCredentialProvider
from cloudcollector.raw_data import BucketThresholds
from cloudcollector.raw_data.raw_data_repository import RawDataRepository
from cloudcollector.types import AsyncSessionMaker
from cloudcollector.utils import uid

# fixed point in time used as "now" by all collection tests
NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

BotoAnswer = Json | Callable[[Json], Json]


def fixed_clock() -> datetime:
    return NOW


def ec2_instance(
    instance_id: str,
    *,
    state: str = "running",
    age: timedelta = timedelta(days=1),
    tags: Optional[Dict[str, str]] = None,
    volume_ids: Optional[List[str]] = None,
    monitored: bool = False,
) -> Json:
    return {
        "InstanceId": instance_id,
        "InstanceType": "t3.micro",
        "ImageId": "ami-12345678",
        "Placement": {"AvailabilityZone": "us-east-1a"},
        "State": {"Code": 80 if state == "stopped" else 16, "Name": state},
        "LaunchTime": NOW - age,
        "Tags": [{"Key": k, "Value": v} for k, v in (tags or {}).items()],
        "BlockDeviceMappings": [
            {"DeviceName": f"/dev/sd{chr(ord('a') + idx)}", "Ebs": {"VolumeId": vid}}
            for idx, vid in enumerate(volume_ids or [])
        ],
        "Monitoring": {"State": "enabled" if monitored else "disabled"},
    }


def describe_instances(*reservations: List[Json]) -> Json:
    return {"Reservations": [{"ReservationId": f"r-{idx}", "Instances": list(r)} for idx, r in enumerate(reservations)]}


def metric_statistics(cpu: Dict[str, float], default_cpu: Optional[float] = None) -> Callable[[Json], Json]:
    """
    Answer GetMetricStatistics: CPUUtilization is looked up per instance, all byte metrics return 1000 per datapoint.
    """

    def answer(request: Json) -> Json:
        instance_id = request["Dimensions"][0]["Value"]
        stat = request["Statistics"][0]
        if request["MetricName"] == "CPUUtilization":
            value = cpu.get(instance_id, default_cpu)
            datapoints = [] if value is None else [{stat: value}, {stat: value}]
        else:
            datapoints = [{stat: 1000.0}, {stat: 500.0}]
        return {"Label": request["MetricName"], "Datapoints": datapoints}

    return answer


def describe_volumes(encrypted: Dict[str, bool]) -> Callable[[Json], Json]:
    def answer(request: Json) -> Json:
        return {"Volumes": [{"VolumeId": vid, "Encrypted": encrypted.get(vid, False)} for vid in request["VolumeIds"]]}

    return answer


@pytest.fixture
def default_config() -> Config:
    return Config(
        environment="dev",
        instance_id="test",
        database_name="cloudcollector-testdb",
        database_user="root",
        database_password=None,
        database_host="127.0.0.1",
        database_port=3306,
        database_url_override="sqlite+aiosqlite:///:memory:",
        collect_cron="*/5 * * * *",
        aws_region="us-east-1",
        proxy_host=None,
        proxy_port=None,
        proxy_user=None,
        proxy_password=None,
        metrics_lookback_hours=24,
        metrics_period_seconds=3600,
        age_warning_days=15,
        age_expired_days=45,
        cpu_low_threshold=30.0,
        cpu_high_threshold=70.0,
        args=Namespace(debug=False, mode="collector", skip_migrations=True, port=8000),
    )


@pytest.fixture
async def db_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """
    Creates a new sqlite database for a test and brings it to the latest schema revision.
    """
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'cloudcollector-test.db'}"
    project_folder = Path(__file__).parent.parent.parent
    cfg = alembic_config(database_url, str((project_folder / "alembic.ini").absolute()))
    cfg.set_main_option("script_location", str((project_folder / "migrations").absolute()))
    await asyncio.to_thread(alembic_upgrade, cfg, "head")  # noqa
    # the migrations cover the whole model
    await asyncio.to_thread(alembic_check, cfg)  # noqa

    engine = create_async_engine(database_url)

    yield engine

    await engine.dispose()


@pytest.fixture
def async_session_maker(db_engine: AsyncEngine) -> AsyncSessionMaker:
    return async_sessionmaker(db_engine)


@pytest.fixture
async def boto_answers() -> Dict[str, BotoAnswer]:
    return {}


@pytest.fixture
async def boto_requests() -> List[Tuple[str, Any]]:
    return []


@pytest.fixture
def boto_session(boto_answers: Dict[str, BotoAnswer], boto_requests: List[Tuple[str, Any]]) -> Iterator[BotoSession]:
    def mock_make_api_call(client: Any, operation_name: str, kwarg: Any) -> Any:
        boto_requests.append((operation_name, kwarg))
        if result := boto_answers.get(operation_name):
            return result(kwarg) if callable(result) else result
        else:
            raise Exception(f"Please provide mocked answer for boto operation {operation_name} and arguments {kwarg}")

    with patch("botocore.client.BaseClient._make_api_call", new=mock_make_api_call):
        yield BotoSession(region_name="us-east-1")


@pytest.fixture
def thresholds() -> BucketThresholds:
    return BucketThresholds(age_warning_days=15, age_expired_days=45, cpu_low=30.0, cpu_high=70.0)


@pytest.fixture
async def collector_repository(async_session_maker: AsyncSessionMaker) -> CollectorRepository:
    return CollectorRepository(async_session_maker)


@pytest.fixture
async def account_config_repository(async_session_maker: AsyncSessionMaker) -> AccountConfigRepository:
    return AccountConfigRepository(async_session_maker)


@pytest.fixture
async def raw_data_repository(
    async_session_maker: AsyncSessionMaker, thresholds: BucketThresholds
) -> RawDataRepository:
    return RawDataRepository(async_session_maker, thresholds)


@pytest.fixture
async def aggregate_repository(async_session_maker: AsyncSessionMaker) -> AggregateRepository:
    return AggregateRepository(async_session_maker)


@pytest.fixture
async def collector(collector_repository: CollectorRepository) -> Collector:
    return await collector_repository.get_or_create(CollectorNames.AWSCloud)


@pytest.fixture
def account_factory(collector: Collector) -> Callable[..., AccountConfig]:
    def create(name: str = "account-a", enabled: bool = True, region: Optional[str] = None) -> AccountConfig:
        return AccountConfig(
            id=CollectorItemId(uid()),
            collector_id=collector.id,
            name=name,
            access_key=f"AKIA{name.upper()}",
            secret_key="secret",
            region=region,
            enabled=enabled,
            created_at=NOW,
            updated_at=NOW,
        )

    return create


@pytest.fixture
async def account(
    account_config_repository: AccountConfigRepository, account_factory: Callable[..., AccountConfig]
) -> AccountConfig:
    return await account_config_repository.create(account_factory())


@pytest.fixture
def cloud_client(boto_session: BotoSession) -> AwsCloudClient:
    # boto_session patches all boto clients: every client created by the provider answers with mocked data
    return AwsCloudClient(
        StaticKeyCredentialProvider("us-east-1"),
        ProxySettings(),
        lookback=timedelta(hours=24),
        period_seconds=3600,
        clock=fixed_clock,
    )


@pytest.fixture
def collection_task(
    collector_repository: CollectorRepository,
    account_config_repository: AccountConfigRepository,
    cloud_client: AwsCloudClient,
    raw_data_repository: RawDataRepository,
    aggregate_repository: AggregateRepository,
) -> CollectionTask:
    return CollectionTask(
        collector_repository,
        account_config_repository,
        cloud_client,
        raw_data_repository,
        aggregate_repository,
        clock=fixed_clock,
    )
