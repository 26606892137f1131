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

from attrs import frozen

from cloudcollector.ids import CollectorId, CollectorItemId


@frozen
class AccountConfig:
    """
    Credentials and enablement of one configured cloud account.
    The id of the account config is the collector item id of all data collected for this account.
    """

    id: CollectorItemId
    collector_id: CollectorId
    name: str
    access_key: str
    secret_key: str
    region: Optional[str]
    enabled: bool
    created_at: datetime
    updated_at: datetime

    def __repr__(self) -> str:
        # never leak the secret key into logs
        return f"AccountConfig(id={self.id}, name={self.name}, enabled={self.enabled})"
