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
from datetime import timedelta
from typing import List, Optional

import pytest

from cloudcollector.ids import CollectionId, CollectorItemId, InstanceId, RawRecordId
from cloudcollector.raw_data import RawInstanceRecord
from cloudcollector.raw_data.raw_data_repository import RawDataRepository
from cloudcollector.utils import uid
from tests.cloudcollector.conftest import NOW


def create_raw_record(
    collector_item_id: CollectorItemId,
    collection_id: CollectionId,
    instance_id: str,
    *,
    age_days: int = 1,
    cpu: Optional[float] = 50.0,
    encrypted: bool = True,
    tagged: bool = True,
    stopped: bool = False,
) -> RawInstanceRecord:
    return RawInstanceRecord(
        id=RawRecordId(uid()),
        collector_item_id=collector_item_id,
        collection_id=collection_id,
        instance_id=InstanceId(instance_id),
        instance_type="t3.micro",
        image_id="ami-12345678",
        availability_zone="us-east-1a",
        state="stopped" if stopped else "running",
        launch_time=NOW - timedelta(days=age_days),
        age_days=age_days,
        cpu_utilization=cpu,
        network_in=1024.0,
        network_out=2048.0,
        disk_read_bytes=0.0,
        disk_write_bytes=0.0,
        encrypted=encrypted,
        tagged=tagged,
        stopped=stopped,
        monitored=False,
        tags={"owner": "team"} if tagged else {},
        collected_at=NOW,
    )


@pytest.fixture
def item_id() -> CollectorItemId:
    return CollectorItemId(uid())


@pytest.fixture
def collection_id() -> CollectionId:
    return CollectionId(uid())


@pytest.mark.asyncio
async def test_add_and_list(
    raw_data_repository: RawDataRepository, item_id: CollectorItemId, collection_id: CollectionId
) -> None:
    assert [e async for e in raw_data_repository.list(item_id)] == []

    records = [create_raw_record(item_id, collection_id, f"i-{idx}") for idx in range(3)]
    await raw_data_repository.add(records)
    assert [e async for e in raw_data_repository.list(item_id)] == records
    assert [e async for e in raw_data_repository.list(item_id, collection_id=collection_id, limit=2)] == records[:2]
    assert [e async for e in raw_data_repository.list(item_id, offset=2)] == records[2:]
    assert [e async for e in raw_data_repository.list(item_id, collection_id=CollectionId(uid()))] == []

    # adding nothing is a no-op
    await raw_data_repository.add([])
    assert len([e async for e in raw_data_repository.list(item_id)]) == 3


@pytest.mark.asyncio
async def test_age_buckets(
    raw_data_repository: RawDataRepository, item_id: CollectorItemId, collection_id: CollectionId
) -> None:
    ages = [0, 14, 15, 44, 45, 300]
    await raw_data_repository.add(
        [create_raw_record(item_id, collection_id, f"i-{age}", age_days=age) for age in ages]
    )
    assert await raw_data_repository.count_age_good(item_id, collection_id) == 2
    assert await raw_data_repository.count_age_warning(item_id, collection_id) == 2
    assert await raw_data_repository.count_age_expired(item_id, collection_id) == 2
    assert await raw_data_repository.count_all(item_id, collection_id) == len(ages)


@pytest.mark.asyncio
async def test_cpu_buckets(
    raw_data_repository: RawDataRepository, item_id: CollectorItemId, collection_id: CollectionId
) -> None:
    cpus: List[Optional[float]] = [0.5, 29.9, 30.0, 50.0, 70.0, 70.1, 99.0, None]
    await raw_data_repository.add(
        [create_raw_record(item_id, collection_id, f"i-{idx}", cpu=cpu) for idx, cpu in enumerate(cpus)]
    )
    assert await raw_data_repository.count_cpu_low(item_id, collection_id) == 2
    assert await raw_data_repository.count_cpu_mid(item_id, collection_id) == 3
    assert await raw_data_repository.count_cpu_high(item_id, collection_id) == 2
    # the record without datapoints is only part of the total
    assert await raw_data_repository.count_all(item_id, collection_id) == len(cpus)


@pytest.mark.asyncio
async def test_flag_counts(
    raw_data_repository: RawDataRepository, item_id: CollectorItemId, collection_id: CollectionId
) -> None:
    await raw_data_repository.add(
        [
            create_raw_record(item_id, collection_id, "i-1", encrypted=False, tagged=False, stopped=True),
            create_raw_record(item_id, collection_id, "i-2", encrypted=False),
            create_raw_record(item_id, collection_id, "i-3", tagged=False),
            create_raw_record(item_id, collection_id, "i-4"),
        ]
    )
    assert await raw_data_repository.count_non_encrypted(item_id, collection_id) == 2
    assert await raw_data_repository.count_non_tagged(item_id, collection_id) == 2
    assert await raw_data_repository.count_stopped(item_id, collection_id) == 1
    assert await raw_data_repository.count_all(item_id, collection_id) == 4


@pytest.mark.asyncio
async def test_counts_are_scoped(
    raw_data_repository: RawDataRepository, item_id: CollectorItemId, collection_id: CollectionId
) -> None:
    other_item = CollectorItemId(uid())
    earlier_collection = CollectionId(uid())
    await raw_data_repository.add(
        [
            create_raw_record(item_id, collection_id, "i-1", stopped=True),
            create_raw_record(item_id, earlier_collection, "i-1", stopped=True),
            create_raw_record(other_item, collection_id, "i-9", stopped=True),
        ]
    )
    assert await raw_data_repository.count_all(item_id, collection_id) == 1
    assert await raw_data_repository.count_stopped(item_id, collection_id) == 1
    assert await raw_data_repository.count_all(item_id, earlier_collection) == 1
    assert await raw_data_repository.count_all(other_item, collection_id) == 1
    assert await raw_data_repository.count_all(other_item, earlier_collection) == 0
