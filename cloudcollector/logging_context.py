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
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Any, Iterator

from cloudcollector.ids import CollectorItemId, CollectionId, CollectorId

context_var: ContextVar[Dict[str, str]] = ContextVar("logging_context", default={})


def set_context(key: str, value: Any) -> None:
    context = dict(context_var.get())
    context[key] = str(value)
    context_var.set(context)


def set_collector_id(collector_id: str | CollectorId) -> None:
    set_context("collector_id", collector_id)


@contextmanager
def account_pass_context(collector_item_id: CollectorItemId, collection_id: CollectionId) -> Iterator[None]:
    """
    Adds the collector item and collection id to all log lines of one account pass.
    The previous context is restored when the pass is done.
    """
    context = dict(context_var.get())
    context["collector_item_id"] = str(collector_item_id)
    context["collection_id"] = str(collection_id)
    token = context_var.set(context)
    try:
        yield
    finally:
        context_var.reset(token)


def get_logging_context() -> Dict[str, str]:
    return context_var.get()
