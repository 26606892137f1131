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
from datetime import datetime
from typing import Callable, List

from fixcloudutils.util import utc
from prometheus_client import Counter, Histogram

from cloudcollector.accounts.models import AccountConfig
from cloudcollector.accounts.repository import AccountConfigRepository
from cloudcollector.aggregate import AggregateSummary
from cloudcollector.aggregate.aggregate_repository import AggregateRepository
from cloudcollector.collector.collector_repository import CollectorRepository
from cloudcollector.ids import CollectionId, CollectorName, CollectorNames
from cloudcollector.logging_context import account_pass_context, set_collector_id
from cloudcollector.provider.aws_client import AwsCloudClient
from cloudcollector.raw_data import RawInstanceRecord
from cloudcollector.raw_data.raw_data_repository import RawDataRepository
from cloudcollector.utils import uid

log = logging.getLogger(__name__)

InstancesCollected = Counter("cloud_collector_instances_collected", "Number of instances collected")
AccountsCollected = Counter("cloud_collector_accounts_collected", "Number of successful account passes")
AccountFailures = Counter("cloud_collector_account_failures", "Number of failed account passes")
AccountPassDuration = Histogram("cloud_collector_account_pass_duration", "Duration of one account pass in seconds")


class CollectionTask:
    """
    Collect the compute inventory of all enabled accounts and recompute the aggregate summary per account.
    """

    def __init__(
        self,
        collector_repository: CollectorRepository,
        account_config_repository: AccountConfigRepository,
        cloud_client: AwsCloudClient,
        raw_data_repository: RawDataRepository,
        aggregate_repository: AggregateRepository,
        collector_name: CollectorName = CollectorNames.AWSCloud,
        clock: Callable[[], datetime] = utc,
    ) -> None:
        self.collector_repository = collector_repository
        self.account_config_repository = account_config_repository
        self.cloud_client = cloud_client
        self.raw_data_repository = raw_data_repository
        self.aggregate_repository = aggregate_repository
        self.collector_name = collector_name
        self.clock = clock

    async def run(self) -> None:
        """
        Scheduled entry point: one collection run over all enabled accounts of this collector.
        """
        collector = await self.collector_repository.get_or_create(self.collector_name)
        set_collector_id(collector.id)
        if not collector.enabled:
            log.info(f"Collector {collector.name} is disabled. Skip collection.")
            return
        accounts = await self.account_config_repository.list_enabled(collector.id)
        await self.collect(accounts)
        await self.collector_repository.update_last_executed(collector.id, self.clock())

    async def collect(self, account_configs: List[AccountConfig]) -> None:
        log.info("Starting cloud collection...")
        for account in account_configs:
            if not account.enabled:
                log.info(f"Account {account.name} is disabled. Skip it.")
                continue
            try:
                with AccountPassDuration.time():
                    await self.collect_account(account)
                AccountsCollected.inc()
            except Exception as ex:
                AccountFailures.inc()
                log.error(f"Collection of account {account.name} failed: {ex}", exc_info=True)
        log.info("Finished cloud collection.")

    async def collect_account(self, account: AccountConfig) -> AggregateSummary:
        """
        One aggregate pass over the given account.
        Any error aborts the pass before the aggregate is written.
        """
        collection_id = CollectionId(uid())
        with account_pass_context(account.id, collection_id):
            client = self.cloud_client.for_account(account)
            instances = await client.list_instances()
            log.info(f"Collecting raw data of {len(instances)} instances of account {account.name}...")

            records: List[RawInstanceRecord] = []
            for instance in instances:
                records.append(await client.get_metrics(instance, collection_id))
            await self.raw_data_repository.add(records)
            InstancesCollected.inc(len(records))

            log.info("Aggregating data...")
            # the upsert replaces the summary of the previous pass
            summary = await self.aggregate(account, collection_id, records)
            await self.aggregate_repository.upsert(summary)
            log.info(f"Account {account.name}: {summary.total_instance_count} instances aggregated.")
            return summary

    async def aggregate(
        self, account: AccountConfig, collection_id: CollectionId, records: List[RawInstanceRecord]
    ) -> AggregateSummary:
        repo = self.raw_data_repository
        item_id = account.id
        return AggregateSummary(
            collector_item_id=item_id,
            collection_id=collection_id,
            age_good=await repo.count_age_good(item_id, collection_id),
            age_warning=await repo.count_age_warning(item_id, collection_id),
            age_expired=await repo.count_age_expired(item_id, collection_id),
            cpu_low=await repo.count_cpu_low(item_id, collection_id),
            cpu_mid=await repo.count_cpu_mid(item_id, collection_id),
            cpu_high=await repo.count_cpu_high(item_id, collection_id),
            non_encrypted_count=await repo.count_non_encrypted(item_id, collection_id),
            non_tagged_count=await repo.count_non_tagged(item_id, collection_id),
            stopped_count=await repo.count_stopped(item_id, collection_id),
            total_instance_count=await repo.count_all(item_id, collection_id),
            details=records,
            updated_at=self.clock(),
        )
