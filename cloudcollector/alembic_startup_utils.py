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
from typing import Any, List, Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.environment import EnvironmentContext
from alembic.script import ScriptDirectory

from cloudcollector.errors import ConfigurationError

log = logging.getLogger(__name__)


def alembic_config(database_url: str, ini_file: str = "alembic.ini") -> Config:
    cfg = Config(ini_file)
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


# same approach as the alembic current command
def database_revision(config: Config) -> Optional[str]:  # pragma: no cover
    script = ScriptDirectory.from_config(config)
    current: List[str] = []

    def collect_version(rev: Any, context: Any) -> Any:
        current.extend(r.revision for r in script.get_all_current(rev))
        return []

    with EnvironmentContext(config, script, fn=collect_version, dont_mutate=True):
        script.run_env()

    if len(current) > 1:
        raise ConfigurationError(f"Database has multiple heads: {current}")
    return current[0] if current else None


def all_migration_revisions(config: Config) -> List[str]:  # pragma: no cover
    """
    All known revisions, newest first.
    """
    script = ScriptDirectory.from_config(config)
    return [rev.revision for rev in script.iterate_revisions("head", "base")]


def prepare_database(config: Config, skip_migrations: bool) -> None:  # pragma: no cover
    """
    Upgrade the schema to the latest revision.
    With skip_migrations the schema is only checked: a database behind the latest known revision is an error.
    A database ahead of all known revisions (after a rollback of the collector) is accepted.
    """
    if not skip_migrations:
        log.info("Upgrade database schema to head")
        command.upgrade(config, "head")
        return

    known_revisions = all_migration_revisions(config)
    db_revision = database_revision(config)
    if db_revision is None or (db_revision in known_revisions and db_revision != known_revisions[0]):
        raise ConfigurationError(f"Database revision {db_revision} is not up to date")
