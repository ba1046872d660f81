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

"""Connection handling and buffered bulk writes for MongoDB tools."""
from __future__ import annotations

from mongotools._version import __version__, get_version_string, version_tuple
from mongotools.bulk import BufferedBulkInserter
from mongotools.common import MAX_BSON_SIZE, SOCKET_TIMEOUT
from mongotools.errors import (
    ConfigurationError,
    MongoToolsError,
    SessionClosedError,
    UnsupportedOperation,
)
from mongotools.helpers import is_connection_error, is_namespace_not_found
from mongotools.options import SSL, URI, Auth, Connection, Kerberos, Namespace, ToolOptions
from mongotools.results import BulkWriteTotals
from mongotools.session import SessionFlag, SessionProvider, new_session_provider

__all__ = [
    "__version__",
    "get_version_string",
    "version_tuple",
    "BufferedBulkInserter",
    "BulkWriteTotals",
    "MAX_BSON_SIZE",
    "SOCKET_TIMEOUT",
    "ConfigurationError",
    "MongoToolsError",
    "SessionClosedError",
    "UnsupportedOperation",
    "is_connection_error",
    "is_namespace_not_found",
    "Auth",
    "Connection",
    "Kerberos",
    "Namespace",
    "SSL",
    "ToolOptions",
    "URI",
    "SessionFlag",
    "SessionProvider",
    "new_session_provider",
]
