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
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, String, select
from sqlalchemy.orm import Mapped, mapped_column

from cloudcollector.base_model import Base
from cloudcollector.collector.models import Collector
from cloudcollector.ids import CollectorId, CollectorName
from cloudcollector.sqlalchemy_extensions import GUID, UTCDateTime
from cloudcollector.types import AsyncSessionMaker
from cloudcollector.utils import uid


class CollectorEntity(Base):
    __tablename__ = "collector"

    id: Mapped[CollectorId] = mapped_column(GUID, primary_key=True)
    name: Mapped[CollectorName] = mapped_column(String(length=64), nullable=False, unique=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_executed: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    def to_model(self) -> Collector:
        return Collector(
            id=self.id,
            name=self.name,
            enabled=self.enabled,
            online=self.online,
            last_executed=self.last_executed,
        )


class CollectorRepository:
    def __init__(self, session_maker: AsyncSessionMaker) -> None:
        self.session_maker = session_maker

    async def get_by_name(self, name: CollectorName) -> Optional[Collector]:
        async with self.session_maker() as session:
            results = await session.execute(select(CollectorEntity).where(CollectorEntity.name == name))
            if entity := results.unique().scalar():
                return entity.to_model()
            else:
                return None

    async def get_or_create(self, name: CollectorName) -> Collector:
        """
        Return the registered collector with the given name.
        A new, enabled collector is registered if none exists.
        """
        if existing := await self.get_by_name(name):
            return existing
        collector = Collector(id=CollectorId(uid()), name=name, enabled=True, online=True, last_executed=None)
        async with self.session_maker() as session:
            session.add(
                CollectorEntity(
                    id=collector.id,
                    name=collector.name,
                    enabled=collector.enabled,
                    online=collector.online,
                    last_executed=collector.last_executed,
                )
            )
            await session.commit()
        return collector

    async def update_last_executed(self, collector_id: CollectorId, at: datetime) -> None:
        async with self.session_maker() as session:
            if entity := await session.get(CollectorEntity, collector_id):
                entity.last_executed = at
                await session.commit()

    async def update_enabled(self, collector_id: CollectorId, enabled: bool) -> None:
        async with self.session_maker() as session:
            if entity := await session.get(CollectorEntity, collector_id):
                entity.enabled = enabled
                await session.commit()

    async def update_online(self, collector_id: CollectorId, online: bool) -> None:
        async with self.session_maker() as session:
            if entity := await session.get(CollectorEntity, collector_id):
                entity.online = online
                await session.commit()
