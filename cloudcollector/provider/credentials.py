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
from typing import Dict, Optional, Protocol
from urllib.parse import quote

import boto3
from attrs import frozen
from botocore.config import Config as BotoConfig

from cloudcollector.accounts.models import AccountConfig
from cloudcollector.config import Config


@frozen
class ProxySettings:
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None

    @staticmethod
    def from_config(cfg: Config) -> "ProxySettings":
        return ProxySettings(host=cfg.proxy_host, port=cfg.proxy_port, user=cfg.proxy_user, password=cfg.proxy_password)

    def proxy_url(self) -> Optional[str]:
        if not self.host:
            return None
        auth = ""
        if self.user:
            password = f":{quote(self.password, safe='')}" if self.password else ""
            auth = f"{quote(self.user, safe='')}{password}@"
        port = f":{self.port}" if self.port else ""
        return f"http://{auth}{self.host}{port}"

    def boto_config(self) -> BotoConfig:
        proxies: Dict[str, str] = {}
        if url := self.proxy_url():
            proxies = {"http": url, "https": url}
        return BotoConfig(proxies=proxies or None, retries={"total_max_attempts": 1, "mode": "standard"})


class CredentialProvider(Protocol):
    def session(self, account: AccountConfig) -> boto3.Session:
        """
        Return an authenticated session for the given account.
        """


class StaticKeyCredentialProvider(CredentialProvider):
    """
    Use the access key pair stored with the account config.
    """

    def __init__(self, default_region: str) -> None:
        self.default_region = default_region

    def session(self, account: AccountConfig) -> boto3.Session:
        return boto3.Session(
            aws_access_key_id=account.access_key,
            aws_secret_access_key=account.secret_key,
            region_name=account.region or self.default_region,
        )
