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
from typing import List

from attrs import frozen

from cloudcollector.ids import CollectionId, CollectorItemId
from cloudcollector.raw_data import RawInstanceRecord


@frozen
class AggregateSummary:
    """
    The current summary of one collector item.
    There is at most one summary per collector item: every collection pass replaces the previous one.
    """

    collector_item_id: CollectorItemId
    collection_id: CollectionId
    age_good: int
    age_warning: int
    age_expired: int
    cpu_low: int
    cpu_mid: int
    cpu_high: int
    non_encrypted_count: int
    non_tagged_count: int
    stopped_count: int
    total_instance_count: int
    details: List[RawInstanceRecord]
    updated_at: datetime
