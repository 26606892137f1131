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
from datetime import datetime, timedelta, timezone
from statistics import mean
from typing import Any, Callable, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fixcloudutils.asyncio.async_extensions import run_async
from fixcloudutils.types import Json
from fixcloudutils.util import utc

from cloudcollector.accounts.models import AccountConfig
from cloudcollector.errors import ProviderError
from cloudcollector.ids import CollectionId, InstanceId, RawRecordId
from cloudcollector.provider.credentials import CredentialProvider, ProxySettings
from cloudcollector.raw_data import RawInstanceRecord
from cloudcollector.utils import age_in_days, uid

log = logging.getLogger(__name__)


class AwsAccountClient:
    """
    EC2 and CloudWatch access for one account.
    All boto calls are blocking and executed in a separate thread.
    """

    def __init__(
        self,
        account: AccountConfig,
        ec2_client: Any,
        cloudwatch_client: Any,
        lookback: timedelta,
        period_seconds: int,
        clock: Callable[[], datetime] = utc,
    ) -> None:
        self.account = account
        self.ec2_client = ec2_client
        self.cloudwatch_client = cloudwatch_client
        self.lookback = lookback
        self.period_seconds = period_seconds
        self.clock = clock

    async def list_instances(self) -> List[Json]:
        """
        List all instances of the account.
        Instances are grouped in reservations and pages: the result is flattened into one list.
        """

        def list_all() -> List[Json]:
            instances: List[Json] = []
            paginator = self.ec2_client.get_paginator("describe_instances")
            for page in paginator.paginate():
                for reservation in page.get("Reservations", []):
                    instances.extend(reservation.get("Instances", []))
            return instances

        return await self._call("DescribeInstances", list_all)

    async def get_metrics(self, instance: Json, collection_id: CollectionId) -> RawInstanceRecord:
        instance_id = InstanceId(instance["InstanceId"])
        now = self.clock()

        def statistic(metric_name: str, stat: str) -> List[float]:
            result = self.cloudwatch_client.get_metric_statistics(
                Namespace="AWS/EC2",
                MetricName=metric_name,
                Dimensions=[{"Name": "InstanceId", "Value": instance_id}],
                StartTime=now - self.lookback,
                EndTime=now,
                Period=self.period_seconds,
                Statistics=[stat],
            )
            return [float(dp[stat]) for dp in result.get("Datapoints", []) if stat in dp]

        def volumes_encrypted() -> bool:
            volume_ids = [
                mapping["Ebs"]["VolumeId"]
                for mapping in instance.get("BlockDeviceMappings", [])
                if mapping.get("Ebs", {}).get("VolumeId")
            ]
            # instance store only: nothing is encrypted
            if not volume_ids:
                return False
            result = self.ec2_client.describe_volumes(VolumeIds=volume_ids)
            volumes = result.get("Volumes", [])
            return len(volumes) > 0 and all(volume.get("Encrypted", False) for volume in volumes)

        cpu = await self._call("GetMetricStatistics", statistic, "CPUUtilization", "Average")
        network_in = await self._call("GetMetricStatistics", statistic, "NetworkIn", "Sum")
        network_out = await self._call("GetMetricStatistics", statistic, "NetworkOut", "Sum")
        disk_read = await self._call("GetMetricStatistics", statistic, "DiskReadBytes", "Sum")
        disk_write = await self._call("GetMetricStatistics", statistic, "DiskWriteBytes", "Sum")
        encrypted = await self._call("DescribeVolumes", volumes_encrypted)

        launch_time: Optional[datetime] = instance.get("LaunchTime")
        if launch_time is not None:
            # botocore uses its own tzutc: normalize to timezone.utc
            launch_time = launch_time.astimezone(timezone.utc)
        tags = {tag["Key"]: tag.get("Value", "") for tag in instance.get("Tags", [])}
        state = instance.get("State", {}).get("Name", "unknown")
        placement: Dict[str, Any] = instance.get("Placement", {})

        return RawInstanceRecord(
            id=RawRecordId(uid()),
            collector_item_id=self.account.id,
            collection_id=collection_id,
            instance_id=instance_id,
            instance_type=instance.get("InstanceType"),
            image_id=instance.get("ImageId"),
            availability_zone=placement.get("AvailabilityZone"),
            state=state,
            launch_time=launch_time,
            age_days=age_in_days(launch_time, now) if launch_time else 0,
            cpu_utilization=mean(cpu) if cpu else None,
            network_in=sum(network_in),
            network_out=sum(network_out),
            disk_read_bytes=sum(disk_read),
            disk_write_bytes=sum(disk_write),
            encrypted=encrypted,
            tagged=len(tags) > 0,
            stopped=state == "stopped",
            monitored=instance.get("Monitoring", {}).get("State") == "enabled",
            tags=tags,
            collected_at=now,
        )

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await run_async(fn, *args)
        except (ClientError, BotoCoreError) as ex:
            raise ProviderError(str(ex), account=self.account.name, operation=operation) from ex


class AwsCloudClient:
    """
    Creates authenticated EC2 and CloudWatch clients for a configured account.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        proxy: ProxySettings,
        *,
        lookback: timedelta,
        period_seconds: int,
        clock: Callable[[], datetime] = utc,
    ) -> None:
        self.credential_provider = credential_provider
        self.proxy = proxy
        self.lookback = lookback
        self.period_seconds = period_seconds
        self.clock = clock

    def for_account(self, account: AccountConfig) -> AwsAccountClient:
        session = self.credential_provider.session(account)
        boto_config = self.proxy.boto_config()
        log.debug(f"Create clients for account {account.name} in region {session.region_name}")
        return AwsAccountClient(
            account,
            session.client("ec2", config=boto_config),
            session.client("cloudwatch", config=boto_config),
            self.lookback,
            self.period_seconds,
            self.clock,
        )
