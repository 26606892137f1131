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

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Integer, select
from sqlalchemy.orm import Mapped, mapped_column

from cloudcollector.aggregate import AggregateSummary
from cloudcollector.base_model import Base
from cloudcollector.ids import CollectionId, CollectorItemId
from cloudcollector.raw_data import RawInstanceRecord
from cloudcollector.sqlalchemy_extensions import GUID, AsJsonCattrs, UTCDateTime
from cloudcollector.types import AsyncSessionMaker

log = logging.getLogger(__name__)


class AggregateSummaryEntity(Base):
    __tablename__ = "aggregate_summary"

    # the primary key guarantees at most one summary per collector item
    collector_item_id: Mapped[CollectorItemId] = mapped_column(GUID, primary_key=True)
    collection_id: Mapped[CollectionId] = mapped_column(GUID, nullable=False)
    age_good: Mapped[int] = mapped_column(Integer, nullable=False)
    age_warning: Mapped[int] = mapped_column(Integer, nullable=False)
    age_expired: Mapped[int] = mapped_column(Integer, nullable=False)
    cpu_low: Mapped[int] = mapped_column(Integer, nullable=False)
    cpu_mid: Mapped[int] = mapped_column(Integer, nullable=False)
    cpu_high: Mapped[int] = mapped_column(Integer, nullable=False)
    non_encrypted_count: Mapped[int] = mapped_column(Integer, nullable=False)
    non_tagged_count: Mapped[int] = mapped_column(Integer, nullable=False)
    stopped_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_instance_count: Mapped[int] = mapped_column(Integer, nullable=False)
    details: Mapped[List[RawInstanceRecord]] = mapped_column(AsJsonCattrs(List[RawInstanceRecord]), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    def update_from(self, model: AggregateSummary) -> None:
        self.collection_id = model.collection_id
        self.age_good = model.age_good
        self.age_warning = model.age_warning
        self.age_expired = model.age_expired
        self.cpu_low = model.cpu_low
        self.cpu_mid = model.cpu_mid
        self.cpu_high = model.cpu_high
        self.non_encrypted_count = model.non_encrypted_count
        self.non_tagged_count = model.non_tagged_count
        self.stopped_count = model.stopped_count
        self.total_instance_count = model.total_instance_count
        self.details = list(model.details)
        self.updated_at = model.updated_at

    @staticmethod
    def from_model(model: AggregateSummary) -> AggregateSummaryEntity:
        entity = AggregateSummaryEntity(collector_item_id=model.collector_item_id)
        entity.update_from(model)
        return entity

    def to_model(self) -> AggregateSummary:
        return AggregateSummary(
            collector_item_id=self.collector_item_id,
            collection_id=self.collection_id,
            age_good=self.age_good,
            age_warning=self.age_warning,
            age_expired=self.age_expired,
            cpu_low=self.cpu_low,
            cpu_mid=self.cpu_mid,
            cpu_high=self.cpu_high,
            non_encrypted_count=self.non_encrypted_count,
            non_tagged_count=self.non_tagged_count,
            stopped_count=self.stopped_count,
            total_instance_count=self.total_instance_count,
            details=self.details,
            updated_at=self.updated_at,
        )


class AggregateRepository:
    def __init__(self, session_maker: AsyncSessionMaker) -> None:
        self.session_maker = session_maker

    async def get(self, collector_item_id: CollectorItemId) -> Optional[AggregateSummary]:
        async with self.session_maker() as session:
            if entity := await session.get(AggregateSummaryEntity, collector_item_id):
                return entity.to_model()
            return None

    async def upsert(self, summary: AggregateSummary) -> AggregateSummary:
        """
        Replace the summary of the collector item in a single transaction.
        """
        async with self.session_maker() as session:
            if entity := await session.get(AggregateSummaryEntity, summary.collector_item_id):
                log.debug(f"Replace summary of collection {entity.collection_id} with {summary.collection_id}")
                entity.update_from(summary)
            else:
                session.add(AggregateSummaryEntity.from_model(summary))
            await session.commit()
        return summary

    async def delete(self, collector_item_id: CollectorItemId) -> None:
        async with self.session_maker() as session:
            if entity := await session.get(AggregateSummaryEntity, collector_item_id):
                await session.delete(entity)
                await session.commit()

    async def list_all(self) -> List[AggregateSummary]:
        async with self.session_maker() as session:
            results = await session.execute(
                select(AggregateSummaryEntity).order_by(AggregateSummaryEntity.collector_item_id)
            )
            return [entity.to_model() for entity in results.scalars().all()]
