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

"""Buffered bulk writes.

:class:`BufferedBulkInserter` queues up write requests the way a buffered
file writer queues up bytes, and sends them to the server as a single bulk
write once either the document limit or the size limit is reached::

    inserter = BufferedBulkInserter(client.db.coll, doc_limit=1000, ordered=False)
    for doc in docs:
        inserter.insert(doc)
    inserter.flush()

The final :meth:`~BufferedBulkInserter.flush` is required. Nothing is
written when an inserter is discarded with requests still buffered.
"""
from __future__ import annotations

import datetime
import time
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Union

import bson
from bson.raw_bson import RawBSONDocument
from pymongo.common import validate_positive_integer
from pymongo.errors import BulkWriteError
from pymongo.operations import DeleteOne, InsertOne, ReplaceOne, UpdateOne

from mongotools.common import COMMAND_OVERHEAD, MAX_BSON_SIZE
from mongotools.logger import _BULK_LOGGER, _BulkStatusMessage, _debug_log
from mongotools.results import BulkWriteTotals

if TYPE_CHECKING:
    from pymongo.collection import Collection
    from pymongo.results import BulkWriteResult

_WriteModel = Union[InsertOne, UpdateOne, ReplaceOne, DeleteOne]

# Largest batch, in encoded bytes, sent in one bulk write. Leaves room for
# the command document that wraps the batch.
DEFAULT_BYTE_LIMIT = MAX_BSON_SIZE - COMMAND_OVERHEAD


def _bson_size(document: Any) -> int:
    """Return the encoded size of `document` in bytes.

    Documents are sized as given. An `_id` the driver generates when the
    document is written adds 17 bytes not counted here, which
    :data:`~mongotools.common.COMMAND_OVERHEAD` absorbs.
    """
    if isinstance(document, RawBSONDocument):
        return len(document.raw)
    return len(bson.encode(document))


class BufferedBulkInserter:
    """Accumulates write requests and executes them in bulk.

    A flush happens automatically when the number of buffered requests
    reaches `doc_limit` or their encoded size reaches :attr:`byte_limit`.
    Requests are sent in the order they were added.

    Instances are not thread safe. Use one inserter per writer.

    :param collection: The :class:`~pymongo.collection.Collection` to write to.
    :param doc_limit: Maximum number of requests buffered before a flush.
    :param ordered: If ``True`` the server stops at the first failed request
        of a batch. If ``False`` every request of the batch is attempted and
        the failures are reported together.
    :param bypass_document_validation: If ``True``, writes skip document
        level validation.
    """

    def __init__(
        self,
        collection: Collection,
        doc_limit: int,
        ordered: bool,
        bypass_document_validation: bool = False,
    ) -> None:
        self.collection = collection
        self.doc_limit = validate_positive_integer("doc_limit", doc_limit)
        self.byte_limit = DEFAULT_BYTE_LIMIT
        self.ordered = ordered
        self.bypass_document_validation = bypass_document_validation
        self.pending: List[_WriteModel] = []
        self.doc_count = 0
        self.byte_count = 0
        self.totals = BulkWriteTotals()

    def __repr__(self) -> str:
        return "{}({!r}, doc_limit={}, ordered={}, buffered={})".format(
            self.__class__.__name__,
            self.collection,
            self.doc_limit,
            self.ordered,
            self.doc_count,
        )

    def insert(self, document: Mapping[str, Any]) -> None:
        """Buffer an insert of `document`.

        May flush, in which case any error of the bulk write is raised from
        here.
        """
        self._add(InsertOne(document), _bson_size(document))

    def insert_raw(self, data: bytes) -> None:
        """Buffer an insert of a document that is already BSON encoded."""
        self._add(InsertOne(RawBSONDocument(data)), len(data))

    def update(self, selector: Mapping[str, Any], update: Mapping[str, Any]) -> None:
        """Buffer an update of the first document matching `selector`."""
        self._add(UpdateOne(selector, update), _bson_size(selector) + _bson_size(update))

    def replace(self, selector: Mapping[str, Any], document: Mapping[str, Any]) -> None:
        """Buffer a replacement of the first document matching `selector`."""
        self._add(ReplaceOne(selector, document), _bson_size(selector) + _bson_size(document))

    def upsert(self, selector: Mapping[str, Any], document: Mapping[str, Any]) -> None:
        """Buffer a replacement of the first document matching `selector`,
        inserting `document` when nothing matches.
        """
        self._add(
            ReplaceOne(selector, document, upsert=True),
            _bson_size(selector) + _bson_size(document),
        )

    def delete(self, selector: Mapping[str, Any]) -> None:
        """Buffer a delete of the first document matching `selector`."""
        self._add(DeleteOne(selector), _bson_size(selector))

    def _add(self, request: _WriteModel, size: int) -> None:
        # Never let the buffer grow past the byte limit. A request that is
        # too large on its own is still accepted and sent alone.
        if self.pending and self.byte_count + size > self.byte_limit:
            self.flush()
        self.pending.append(request)
        self.doc_count += 1
        self.byte_count += size
        if self.doc_count >= self.doc_limit or self.byte_count >= self.byte_limit:
            self.flush()

    def _reset(self) -> None:
        self.pending = []
        self.doc_count = 0
        self.byte_count = 0

    def flush(self) -> Optional[BulkWriteResult]:
        """Send every buffered request in a single bulk write.

        The buffer is emptied whether or not the write succeeds, a batch is
        never sent twice. Errors raised by
        :meth:`~pymongo.collection.Collection.bulk_write` propagate
        unchanged; retrying is up to the caller (see
        :func:`mongotools.helpers.is_connection_error`).

        :return: The :class:`~pymongo.results.BulkWriteResult`, or ``None``
            if nothing was buffered.
        """
        if not self.pending:
            return None
        requests = self.pending
        doc_count, byte_count = self.doc_count, self.byte_count
        self._reset()

        namespace = self.collection.full_name
        _debug_log(
            _BULK_LOGGER,
            message=_BulkStatusMessage.FLUSH_STARTED,
            namespace=namespace,
            docCount=doc_count,
            byteCount=byte_count,
            ordered=self.ordered,
        )
        start = time.monotonic()
        try:
            result = self.collection.bulk_write(
                requests,
                ordered=self.ordered,
                bypass_document_validation=self.bypass_document_validation,
            )
        except BulkWriteError as exc:
            self.totals.add_details(exc.details)
            self._log_failure(namespace, doc_count, start, exc)
            raise
        except Exception as exc:
            self._log_failure(namespace, doc_count, start, exc)
            raise
        self.totals.add_result(result)
        _debug_log(
            _BULK_LOGGER,
            message=_BulkStatusMessage.FLUSH_SUCCEEDED,
            namespace=namespace,
            docCount=doc_count,
            durationMS=datetime.timedelta(seconds=time.monotonic() - start),
        )
        return result

    def _log_failure(
        self, namespace: str, doc_count: int, start: float, exc: BaseException
    ) -> None:
        _debug_log(
            _BULK_LOGGER,
            message=_BulkStatusMessage.FLUSH_FAILED,
            namespace=namespace,
            docCount=doc_count,
            durationMS=datetime.timedelta(seconds=time.monotonic() - start),
            failure=repr(exc),
        )
