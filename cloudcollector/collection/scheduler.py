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
import logging
from typing import Any, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from fixcloudutils.service import Service

from cloudcollector.collection.collection_task import CollectionTask
from cloudcollector.collector.collector_repository import CollectorRepository
from cloudcollector.errors import ConfigurationError

log = logging.getLogger(__name__)


def cron_trigger(expression: str) -> CronTrigger:
    try:
        return CronTrigger.from_crontab(expression, timezone="UTC")
    except ValueError as ex:
        raise ConfigurationError(f"Invalid cron expression {expression!r}: {ex}") from ex


class CollectionScheduler(Service):
    """
    Triggers the collection task whenever the cron expression fires.
    A run that is still in progress is never started a second time.
    """

    job_id = "cloud_collection"

    def __init__(
        self, task: CollectionTask, collector_repository: CollectorRepository, cron_expression: str
    ) -> None:
        self.task = task
        self.collector_repository = collector_repository
        self.trigger = cron_trigger(cron_expression)
        self.cron_expression = cron_expression
        self.scheduler: Optional[AsyncIOScheduler] = None

    async def start(self) -> Any:
        collector = await self.collector_repository.get_or_create(self.task.collector_name)
        await self.collector_repository.update_online(collector.id, True)
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_job(
            self.task.run,
            trigger=self.trigger,
            id=self.job_id,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        log.info(f"Collection scheduled with cron expression {self.cron_expression}")

    async def stop(self) -> Any:
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
        if collector := await self.collector_repository.get_by_name(self.task.collector_name):
            await self.collector_repository.update_online(collector.id, False)
