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
from typing import Dict, Optional

from attrs import frozen

from cloudcollector.ids import CollectionId, CollectorItemId, InstanceId, RawRecordId


@frozen
class RawInstanceRecord:
    """
    Point in time snapshot of one compute instance, taken during one collection pass.
    """

    id: RawRecordId
    collector_item_id: CollectorItemId
    collection_id: CollectionId
    instance_id: InstanceId
    instance_type: Optional[str]
    image_id: Optional[str]
    availability_zone: Optional[str]
    state: str
    launch_time: Optional[datetime]
    age_days: int
    cpu_utilization: Optional[float]  # average in percent, None if there are no datapoints
    network_in: float
    network_out: float
    disk_read_bytes: float
    disk_write_bytes: float
    encrypted: bool
    tagged: bool
    stopped: bool
    monitored: bool
    tags: Dict[str, str]
    collected_at: datetime


@frozen
class BucketThresholds:
    age_warning_days: int = 15
    age_expired_days: int = 45
    cpu_low: float = 30.0
    cpu_high: float = 70.0
