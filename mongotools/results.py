# Copyright 2014-present MongoDB, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Running totals for buffered bulk writes."""
from __future__ import annotations

from typing import Any, Mapping

from pymongo.results import BulkWriteResult


class BulkWriteTotals:
    """Counts accumulated over every flush of a
    :class:`~mongotools.bulk.BufferedBulkInserter`.

    Unacknowledged writes (``w=0``) only bump :attr:`flush_count`, the
    server does not report counts for them.
    """

    __slots__ = (
        "inserted_count",
        "matched_count",
        "modified_count",
        "deleted_count",
        "upserted_count",
        "flush_count",
    )

    def __init__(self) -> None:
        self.inserted_count = 0
        self.matched_count = 0
        self.modified_count = 0
        self.deleted_count = 0
        self.upserted_count = 0
        self.flush_count = 0

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)}" for name in self.__slots__)
        return f"{self.__class__.__name__}({fields})"

    def add_result(self, result: BulkWriteResult) -> None:
        """Add the counts of a successful bulk write."""
        self.flush_count += 1
        if not result.acknowledged:
            return
        self.inserted_count += result.inserted_count
        self.matched_count += result.matched_count
        self.modified_count += result.modified_count
        self.deleted_count += result.deleted_count
        self.upserted_count += result.upserted_count

    def add_details(self, details: Mapping[str, Any]) -> None:
        """Add the counts carried by the details of a
        :class:`~pymongo.errors.BulkWriteError`.
        """
        self.flush_count += 1
        self.inserted_count += details.get("nInserted", 0)
        self.matched_count += details.get("nMatched", 0)
        self.modified_count += details.get("nModified", 0)
        self.deleted_count += details.get("nRemoved", 0)
        self.upserted_count += details.get("nUpserted", 0)
