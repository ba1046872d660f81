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

"""Exceptions raised by mongotools.

Errors raised by PyMongo while talking to the server are never wrapped in
these types. Use :func:`mongotools.helpers.is_connection_error` to decide
whether such an error is worth retrying.
"""
from __future__ import annotations


class MongoToolsError(Exception):
    """Base class for all mongotools exceptions."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self._message = message


class ConfigurationError(MongoToolsError):
    """Raised when the tool options cannot be turned into a client.

    Unsupported TLS combinations (FIPS mode, CRL files) and invalid client
    options end up here when a :class:`~mongotools.session.SessionProvider`
    is constructed. No connection is attempted in that case.
    """


class SessionClosedError(MongoToolsError):
    """Raised when a :class:`~mongotools.session.SessionProvider` is used
    after :meth:`~mongotools.session.SessionProvider.close`.
    """


class UnsupportedOperation(MongoToolsError, NotImplementedError):
    """Raised by session settings that cannot be changed after construction.

    The shared client has no way to apply a new read preference, write
    concern, tag set or validation setting to connections it already holds.
    """
