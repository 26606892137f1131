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
from __future__ import annotations

from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional

from sqlalchemy import JSON, Boolean, ColumnElement, Float, Integer, String, func, select
from sqlalchemy.orm import Mapped, mapped_column

from cloudcollector.base_model import Base
from cloudcollector.ids import CollectionId, CollectorItemId, InstanceId, RawRecordId
from cloudcollector.raw_data import BucketThresholds, RawInstanceRecord
from cloudcollector.sqlalchemy_extensions import GUID, UTCDateTime
from cloudcollector.types import AsyncSessionMaker


class RawInstanceRecordEntity(Base):
    __tablename__ = "raw_instance_record"

    id: Mapped[RawRecordId] = mapped_column(GUID, primary_key=True)
    collector_item_id: Mapped[CollectorItemId] = mapped_column(GUID, nullable=False, index=True)
    collection_id: Mapped[CollectionId] = mapped_column(GUID, nullable=False, index=True)
    instance_id: Mapped[InstanceId] = mapped_column(String(64), nullable=False)
    instance_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    image_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    availability_zone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    state: Mapped[str] = mapped_column(String(32), nullable=False)
    launch_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    age_days: Mapped[int] = mapped_column(Integer, nullable=False)
    cpu_utilization: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    network_in: Mapped[float] = mapped_column(Float, nullable=False)
    network_out: Mapped[float] = mapped_column(Float, nullable=False)
    disk_read_bytes: Mapped[float] = mapped_column(Float, nullable=False)
    disk_write_bytes: Mapped[float] = mapped_column(Float, nullable=False)
    encrypted: Mapped[bool] = mapped_column(Boolean, nullable=False)
    tagged: Mapped[bool] = mapped_column(Boolean, nullable=False)
    stopped: Mapped[bool] = mapped_column(Boolean, nullable=False)
    monitored: Mapped[bool] = mapped_column(Boolean, nullable=False)
    tags: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False)
    collected_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    @staticmethod
    def from_model(model: RawInstanceRecord) -> RawInstanceRecordEntity:
        return RawInstanceRecordEntity(
            id=model.id,
            collector_item_id=model.collector_item_id,
            collection_id=model.collection_id,
            instance_id=model.instance_id,
            instance_type=model.instance_type,
            image_id=model.image_id,
            availability_zone=model.availability_zone,
            state=model.state,
            launch_time=model.launch_time,
            age_days=model.age_days,
            cpu_utilization=model.cpu_utilization,
            network_in=model.network_in,
            network_out=model.network_out,
            disk_read_bytes=model.disk_read_bytes,
            disk_write_bytes=model.disk_write_bytes,
            encrypted=model.encrypted,
            tagged=model.tagged,
            stopped=model.stopped,
            monitored=model.monitored,
            tags=dict(model.tags),
            collected_at=model.collected_at,
        )

    def to_model(self) -> RawInstanceRecord:
        return RawInstanceRecord(
            id=self.id,
            collector_item_id=self.collector_item_id,
            collection_id=self.collection_id,
            instance_id=self.instance_id,
            instance_type=self.instance_type,
            image_id=self.image_id,
            availability_zone=self.availability_zone,
            state=self.state,
            launch_time=self.launch_time,
            age_days=self.age_days,
            cpu_utilization=self.cpu_utilization,
            network_in=self.network_in,
            network_out=self.network_out,
            disk_read_bytes=self.disk_read_bytes,
            disk_write_bytes=self.disk_write_bytes,
            encrypted=self.encrypted,
            tagged=self.tagged,
            stopped=self.stopped,
            monitored=self.monitored,
            tags=self.tags,
            collected_at=self.collected_at,
        )


class RawDataRepository:
    """
    Raw instance records accumulate with every collection pass and are never updated.
    All counting queries are scoped to one collector item and one collection pass.
    """

    def __init__(self, session_maker: AsyncSessionMaker, thresholds: BucketThresholds) -> None:
        self.session_maker = session_maker
        self.thresholds = thresholds

    async def add(self, records: List[RawInstanceRecord]) -> None:
        if len(records) == 0:
            return
        async with self.session_maker() as session:
            for record in records:
                session.add(RawInstanceRecordEntity.from_model(record))
            await session.commit()

    async def list(
        self,
        collector_item_id: CollectorItemId,
        *,
        collection_id: Optional[CollectionId] = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> AsyncIterator[RawInstanceRecord]:
        async with self.session_maker() as session:
            query = select(RawInstanceRecordEntity).where(
                RawInstanceRecordEntity.collector_item_id == collector_item_id
            )
            if collection_id is not None:
                query = query.where(RawInstanceRecordEntity.collection_id == collection_id)
            query = (
                query.order_by(RawInstanceRecordEntity.collected_at, RawInstanceRecordEntity.instance_id)
                .limit(limit)
                .offset(offset)
            )
            async for (record,) in await session.stream(query):
                yield record.to_model()

    async def _count(
        self,
        collector_item_id: CollectorItemId,
        collection_id: CollectionId,
        predicate: Optional[ColumnElement[bool]] = None,
    ) -> int:
        query = (
            select(func.count())
            .select_from(RawInstanceRecordEntity)
            .where(RawInstanceRecordEntity.collector_item_id == collector_item_id)
            .where(RawInstanceRecordEntity.collection_id == collection_id)
        )
        if predicate is not None:
            query = query.where(predicate)
        async with self.session_maker() as session:
            count = await session.scalar(query)
            return count or 0

    async def count_age_good(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(
            collector_item_id, collection_id, RawInstanceRecordEntity.age_days < self.thresholds.age_warning_days
        )

    async def count_age_warning(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        age = RawInstanceRecordEntity.age_days
        return await self._count(
            collector_item_id,
            collection_id,
            (age >= self.thresholds.age_warning_days) & (age < self.thresholds.age_expired_days),
        )

    async def count_age_expired(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(
            collector_item_id, collection_id, RawInstanceRecordEntity.age_days >= self.thresholds.age_expired_days
        )

    # records without cpu datapoints (NULL) do not match any of the cpu buckets
    async def count_cpu_low(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(
            collector_item_id, collection_id, RawInstanceRecordEntity.cpu_utilization < self.thresholds.cpu_low
        )

    async def count_cpu_mid(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(
            collector_item_id,
            collection_id,
            RawInstanceRecordEntity.cpu_utilization.between(self.thresholds.cpu_low, self.thresholds.cpu_high),
        )

    async def count_cpu_high(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(
            collector_item_id, collection_id, RawInstanceRecordEntity.cpu_utilization > self.thresholds.cpu_high
        )

    async def count_non_encrypted(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(collector_item_id, collection_id, RawInstanceRecordEntity.encrypted.is_(False))

    async def count_non_tagged(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(collector_item_id, collection_id, RawInstanceRecordEntity.tagged.is_(False))

    async def count_stopped(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(collector_item_id, collection_id, RawInstanceRecordEntity.stopped.is_(True))

    async def count_all(self, collector_item_id: CollectorItemId, collection_id: CollectionId) -> int:
        return await self._count(collector_item_id, collection_id)
