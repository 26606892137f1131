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
from typing import List

from fixcloudutils.util import utc
from sqlalchemy import select

from cloudcollector.accounts.models import AccountConfig
from cloudcollector.accounts.models.orm import AccountConfigEntity
from cloudcollector.errors import AccountNotFound
from cloudcollector.ids import CollectorId, CollectorItemId
from cloudcollector.types import AsyncSessionMaker


class AccountConfigRepository:
    """
    Storage of the configured cloud accounts.
    Accounts are maintained by an operator, the collection only reads them.
    """

    def __init__(self, session_maker: AsyncSessionMaker) -> None:
        self.session_maker = session_maker

    async def create(self, account: AccountConfig) -> AccountConfig:
        async with self.session_maker() as session:
            session.add(AccountConfigEntity.from_model(account))
            await session.commit()
        return account

    async def get(self, account_id: CollectorItemId) -> AccountConfig:
        async with self.session_maker() as session:
            if entity := await session.get(AccountConfigEntity, account_id):
                return entity.to_model()
            raise AccountNotFound(f"Account config {account_id} not found")

    async def list_enabled(self, collector_id: CollectorId) -> List[AccountConfig]:
        async with self.session_maker() as session:
            query = (
                select(AccountConfigEntity)
                .where(AccountConfigEntity.collector_id == collector_id)
                .where(AccountConfigEntity.enabled.is_(True))
                .order_by(AccountConfigEntity.created_at, AccountConfigEntity.name)
            )
            results = await session.execute(query)
            return [entity.to_model() for entity in results.scalars().all()]

    async def list_all(self, collector_id: CollectorId) -> List[AccountConfig]:
        async with self.session_maker() as session:
            query = (
                select(AccountConfigEntity)
                .where(AccountConfigEntity.collector_id == collector_id)
                .order_by(AccountConfigEntity.created_at, AccountConfigEntity.name)
            )
            results = await session.execute(query)
            return [entity.to_model() for entity in results.scalars().all()]

    async def update_enabled(self, account_id: CollectorItemId, enabled: bool) -> AccountConfig:
        async with self.session_maker() as session:
            entity = await session.get(AccountConfigEntity, account_id)
            if entity is None:
                raise AccountNotFound(f"Account config {account_id} not found")
            entity.enabled = enabled
            entity.updated_at = utc()
            updated = entity.to_model()
            await session.commit()
            return updated

    async def delete(self, account_id: CollectorItemId) -> None:
        async with self.session_maker() as session:
            if entity := await session.get(AccountConfigEntity, account_id):
                await session.delete(entity)
                await session.commit()
