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
from __future__ import annotations

import enum
import logging
import os
from typing import Any

from bson import UuidRepresentation, json_util
from bson.json_util import JSONOptions


class _SessionStatusMessage(str, enum.Enum):
    CREATED = "Session provider created"
    CONNECTING = "Connecting session"
    CONNECTED = "Session connected"
    CONNECT_FAILED = "Session connection failed"
    CLOSED = "Session closed"


class _BulkStatusMessage(str, enum.Enum):
    FLUSH_STARTED = "Bulk flush started"
    FLUSH_SUCCEEDED = "Bulk flush succeeded"
    FLUSH_FAILED = "Bulk flush failed"


_DEFAULT_DOCUMENT_LENGTH = 1000
_REDACTED = "<redacted>"
_SENSITIVE_FIELDS = ["password", "tlsCertificateKeyFilePassword"]
_DOCUMENT_NAMES = ["options", "failure"]
_JSON_OPTIONS = JSONOptions(uuid_representation=UuidRepresentation.STANDARD)
_SESSION_LOGGER = logging.getLogger("mongotools.session")
_BULK_LOGGER = logging.getLogger("mongotools.bulk")


def _debug_log(logger: logging.Logger, **fields: Any) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(LogMessage(**fields))


class LogMessage:
    """A structured log record rendered as relaxed Extended JSON.

    Rendering is deferred until a handler formats the record.
    """

    __slots__ = ["_kwargs"]

    def __init__(self, **kwargs: Any):
        self._kwargs = kwargs

        if "durationMS" in self._kwargs:
            self._kwargs["durationMS"] = self._kwargs["durationMS"].total_seconds() * 1000

    def __str__(self) -> str:
        self._redact()
        return "%s" % (
            json_util.dumps(
                self._kwargs, json_options=_JSON_OPTIONS, default=lambda o: o.__repr__()
            )
        )

    def _redact(self) -> None:
        document_length = int(
            os.getenv("MONGOTOOLS_LOG_MAX_DOCUMENT_LENGTH", _DEFAULT_DOCUMENT_LENGTH)
        )
        if document_length < 0:
            document_length = _DEFAULT_DOCUMENT_LENGTH

        for doc_name in _DOCUMENT_NAMES:
            doc = self._kwargs.get(doc_name)
            if not doc:
                continue
            if isinstance(doc, dict):
                doc = {k: (_REDACTED if k in _SENSITIVE_FIELDS else v) for k, v in doc.items()}
                doc = json_util.dumps(
                    doc, json_options=_JSON_OPTIONS, default=lambda o: o.__repr__()
                )
            else:
                doc = str(doc)
            if len(doc) > document_length:
                doc = doc[:document_length] + "..."
            self._kwargs[doc_name] = doc
