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
from typing import NewType
from uuid import UUID

CollectorId = NewType("CollectorId", UUID)  # registered collector, e.g. AWSCloud
CollectorItemId = NewType("CollectorItemId", UUID)  # configured account whose data is aggregated
CollectionId = NewType("CollectionId", UUID)  # one aggregate pass over an account
RawRecordId = NewType("RawRecordId", UUID)
InstanceId = NewType("InstanceId", str)  # cloud instance id, e.g. i-0123456789abcdef0
CollectorName = NewType("CollectorName", str)


class CollectorNames:
    AWSCloud: CollectorName = CollectorName("AWSCloud")
