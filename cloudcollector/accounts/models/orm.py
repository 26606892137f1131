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

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cloudcollector.accounts import models
from cloudcollector.base_model import Base
from cloudcollector.ids import CollectorId, CollectorItemId
from cloudcollector.sqlalchemy_extensions import GUID, UTCDateTime


class AccountConfigEntity(Base):
    __tablename__ = "account_config"

    id: Mapped[CollectorItemId] = mapped_column(GUID, primary_key=True)
    collector_id: Mapped[CollectorId] = mapped_column(GUID, ForeignKey("collector.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(length=256), nullable=False)
    access_key: Mapped[str] = mapped_column(String(length=128), nullable=False)
    secret_key: Mapped[str] = mapped_column(String(length=256), nullable=False)
    region: Mapped[Optional[str]] = mapped_column(String(length=64), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    @staticmethod
    def from_model(model: models.AccountConfig) -> "AccountConfigEntity":
        return AccountConfigEntity(
            id=model.id,
            collector_id=model.collector_id,
            name=model.name,
            access_key=model.access_key,
            secret_key=model.secret_key,
            region=model.region,
            enabled=model.enabled,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def to_model(self) -> models.AccountConfig:
        return models.AccountConfig(
            id=self.id,
            collector_id=self.collector_id,
            name=self.name,
            access_key=self.access_key,
            secret_key=self.secret_key,
            region=self.region,
            enabled=self.enabled,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
