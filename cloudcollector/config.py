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
import os
import sys
from argparse import ArgumentParser, Namespace
from datetime import timedelta
from functools import lru_cache
from typing import Annotated, Optional, Sequence, Tuple

from fastapi import Depends
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    environment: str
    instance_id: str
    database_name: str
    database_user: str
    database_password: Optional[str]
    database_host: str
    database_port: int
    database_url_override: Optional[str] = None
    collect_cron: str
    aws_region: str
    proxy_host: Optional[str]
    proxy_port: Optional[int]
    proxy_user: Optional[str]
    proxy_password: Optional[str]
    metrics_lookback_hours: int
    metrics_period_seconds: int
    age_warning_days: int
    age_expired_days: int
    cpu_low_threshold: float
    cpu_high_threshold: float
    args: Namespace

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        password = f":{self.database_password}" if self.database_password else ""
        return f"mysql+aiomysql://{self.database_user}{password}@{self.database_host}:{self.database_port}/{self.database_name}"  # noqa

    @property
    def metrics_lookback(self) -> timedelta:
        return timedelta(hours=self.metrics_lookback_hours)

    class Config:
        extra = "ignore"  # allow extra fields in the config
        arbitrary_types_allowed = True


def parse_args(argv: Optional[Sequence[str]] = None) -> Namespace:
    parser = ArgumentParser(prog="Cloud Collector")
    parser.add_argument("--debug", action="store_true", default=False)
    parser.add_argument("--instance-id", default=os.environ.get("COLLECTOR_INSTANCE_ID", "single"))
    parser.add_argument("--environment", default=os.environ.get("COLLECTOR_ENVIRONMENT", "dev"))
    parser.add_argument("--database-name", default=os.environ.get("COLLECTOR_DATABASE_NAME", "cloudcollector"))
    parser.add_argument("--database-user", default=os.environ.get("COLLECTOR_DATABASE_USER", "cloudcollector"))
    parser.add_argument("--database-password", default=os.environ.get("COLLECTOR_DATABASE_PASSWORD", "cloudcollector"))
    parser.add_argument("--database-host", default=os.environ.get("COLLECTOR_DATABASE_HOST", "localhost"))
    parser.add_argument("--database-port", type=int, default=int(os.environ.get("COLLECTOR_DATABASE_PORT", "3306")))
    parser.add_argument("--database-url-override", default=os.environ.get("COLLECTOR_DATABASE_URL"))
    parser.add_argument("--skip-migrations", default=False, action="store_true")
    parser.add_argument("--mode", choices=["collector", "once"], default=os.environ.get("MODE", "collector"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("COLLECTOR_PORT", "8000")))
    parser.add_argument(
        "--collect-cron",
        default=os.environ.get("COLLECT_CRON", "0 * * * *"),
        help="Crontab expression (UTC) that triggers a collection run",
    )
    parser.add_argument("--aws-region", default=os.environ.get("AWS_REGION", "us-east-1"))
    parser.add_argument("--proxy-host", default=os.environ.get("COLLECTOR_PROXY_HOST"))
    parser.add_argument(
        "--proxy-port",
        type=int,
        default=int(port) if (port := os.environ.get("COLLECTOR_PROXY_PORT")) else None,
    )
    parser.add_argument("--proxy-user", default=os.environ.get("COLLECTOR_PROXY_USER"))
    parser.add_argument("--proxy-password", default=os.environ.get("COLLECTOR_PROXY_PASSWORD"))
    parser.add_argument(
        "--metrics-lookback-hours", type=int, default=int(os.environ.get("METRICS_LOOKBACK_HOURS", "24"))
    )
    parser.add_argument(
        "--metrics-period-seconds", type=int, default=int(os.environ.get("METRICS_PERIOD_SECONDS", "3600"))
    )
    parser.add_argument("--age-warning-days", type=int, default=int(os.environ.get("AGE_WARNING_DAYS", "15")))
    parser.add_argument("--age-expired-days", type=int, default=int(os.environ.get("AGE_EXPIRED_DAYS", "45")))
    parser.add_argument("--cpu-low-threshold", type=float, default=float(os.environ.get("CPU_LOW_THRESHOLD", "30")))
    parser.add_argument(
        "--cpu-high-threshold", type=float, default=float(os.environ.get("CPU_HIGH_THRESHOLD", "70"))
    )
    return parser.parse_known_args(argv if argv is not None else sys.argv[1:])[0]


@lru_cache()
def get_config(argv: Optional[Tuple[str, ...]] = None) -> Config:
    args = parse_args(argv)
    args_dict = vars(args)
    args_dict["args"] = args
    return Config(**args_dict)


# placeholder for dependencies, will be replaced during the app initialization
def config() -> Config:
    raise RuntimeError("Config dependency not initialized yet.")


ConfigDependency = Annotated[Config, Depends(config)]
