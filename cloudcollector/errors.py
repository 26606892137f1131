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
from typing import Optional


class CollectorError(Exception):
    pass


class ConfigurationError(CollectorError):
    pass


class AccountNotFound(ConfigurationError):
    pass


class ProviderError(CollectorError):
    def __init__(self, message: str, *, account: Optional[str] = None, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.account = account
        self.operation = operation

    def __str__(self) -> str:
        details = ", ".join(f"{k}={v}" for k, v in (("account", self.account), ("operation", self.operation)) if v)
        message = super().__str__()
        return f"{message} ({details})" if details else message
