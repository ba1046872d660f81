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

"""Classification of errors returned by the server and the driver.

The messages below are the phrasings used by mongod, mongos and the driver
for failures that come from losing contact with the deployment, as opposed
to failures of the write itself (duplicate keys, validation errors, ...).
All comparisons are done on the lower-cased message.
"""
from __future__ import annotations

from typing import Optional

from pymongo.errors import ConnectionFailure, OperationFailure

ERR_LOST_CONNECTION = "lost connection to server"
ERR_NO_REACHABLE_SERVERS = "no reachable servers"
ERR_NS_NOT_FOUND = "ns not found"
# Replication errors list the replset name if we are talking to a mongos,
# so we can only check for this universal prefix.
ERR_REPL_TIMEOUT_PREFIX = "waiting for replication timed out"
ERR_COULD_NOT_CONTACT_PRIMARY_PREFIX = "could not contact primary for replica set"
ERR_WRITE_RESULTS_UNAVAILABLE = "write results unavailable from"
ERR_COULD_NOT_FIND_PRIMARY_PREFIX = 'could not find host matching read preference { mode: "primary"'
ERR_UNABLE_TO_TARGET_PREFIX = "unable to target"
ERR_NOT_MASTER = "not master"
ERR_CONNECTION_REFUSED_SUFFIX = "connection refused"

# Messages that must match exactly.
_EXACT_MESSAGES = frozenset(
    [
        ERR_NO_REACHABLE_SERVERS,
        ERR_NOT_MASTER,
        "eof",
        "unexpected eof",
        "unexpected end of input",
    ]
)

# Messages that may appear anywhere in the error.
_CONTAINED_MESSAGES = (
    ERR_REPL_TIMEOUT_PREFIX,
    ERR_COULD_NOT_CONTACT_PRIMARY_PREFIX,
    ERR_WRITE_RESULTS_UNAVAILABLE,
    ERR_COULD_NOT_FIND_PRIMARY_PREFIX,
    ERR_UNABLE_TO_TARGET_PREFIX,
)

# Error types that always mean the connection, not the operation, failed.
_CONNECTION_ERROR_TYPES = (ConnectionFailure, ConnectionRefusedError, EOFError)


def _error_messages(err: BaseException) -> list[str]:
    # OperationFailure appends the full server reply to its message, keep the
    # bare errmsg around for the exact comparisons.
    messages = [str(err).lower()]
    if isinstance(err, OperationFailure) and err.details:
        errmsg = err.details.get("errmsg")
        if isinstance(errmsg, str):
            messages.append(errmsg.lower())
    return messages


def is_connection_error(err: Optional[BaseException]) -> bool:
    """Return True if `err` is due to an error in the underlying connection
    to the database, as opposed to some other write failure such as a
    duplicate key error.

    Callers use this to decide whether an operation can be retried once the
    deployment is reachable again.
    """
    if err is None:
        return False
    if isinstance(err, _CONNECTION_ERROR_TYPES):
        return True
    for message in _error_messages(err):
        if message in _EXACT_MESSAGES:
            return True
        if any(contained in message for contained in _CONTAINED_MESSAGES):
            return True
        if message.endswith(ERR_CONNECTION_REFUSED_SUFFIX):
            return True
    return False


def is_namespace_not_found(err: Optional[BaseException]) -> bool:
    """Return True if `err` reports a collection or database that does not
    exist.
    """
    if err is None:
        return False
    return ERR_NS_NOT_FOUND in _error_messages(err)
