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

"""Management of the client shared by a tool.

A :class:`SessionProvider` owns exactly one
:class:`~pymongo.mongo_client.MongoClient`. The client is configured when the
provider is created and connects the first time it is requested::

    provider = SessionProvider(opts)
    try:
        client = provider.get_session()
        inserter = BufferedBulkInserter(client.db.coll, 1000, ordered=False)
        ...
    finally:
        provider.close()
"""
from __future__ import annotations

import datetime
import enum
import logging
import threading
import time
from typing import Any, Dict, Optional

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.write_concern import WriteConcern

from mongotools import password
from mongotools.common import SOCKET_TIMEOUT
from mongotools.errors import ConfigurationError, SessionClosedError, UnsupportedOperation
from mongotools.logger import _SESSION_LOGGER, _debug_log, _SessionStatusMessage
from mongotools.options import ToolOptions


class SessionFlag(enum.IntFlag):
    """Modifications of the shared client once created."""

    NONE = 0
    MONOTONIC = 1 << 1
    DISABLE_SOCKET_TIMEOUT = 1 << 2


# Client keyword options for each WriteConcern document field.
_WRITE_CONCERN_OPTIONS = {
    "w": "w",
    "wtimeout": "wTimeoutMS",
    "j": "journal",
    "fsync": "fsync",
}


def _write_concern_options(write_concern: Optional[WriteConcern]) -> Dict[str, Any]:
    if write_concern is None:
        # If no write concern was specified, default to majority.
        write_concern = WriteConcern(w="majority")
    return {
        _WRITE_CONCERN_OPTIONS[key]: value for key, value in write_concern.document.items()
    }


def _auth_options(opts: ToolOptions) -> Dict[str, Any]:
    auth = opts.auth
    if auth is None or not auth.is_set():
        return {}
    kwargs: Dict[str, Any] = {}
    if auth.username:
        kwargs["username"] = auth.username
    if auth.password:
        kwargs["password"] = auth.password
    source = opts.get_authentication_database()
    if source:
        kwargs["authSource"] = source
    if auth.mechanism:
        kwargs["authMechanism"] = auth.mechanism
    if opts.kerberos is not None and auth.mechanism == "GSSAPI":
        props = []
        if opts.kerberos.service:
            props.append(f"SERVICE_NAME:{opts.kerberos.service}")
        if opts.kerberos.service_host:
            props.append(f"SERVICE_HOST:{opts.kerberos.service_host}")
        if props:
            kwargs["authMechanismProperties"] = ",".join(props)
    return kwargs


def _tls_options(opts: ToolOptions) -> Dict[str, Any]:
    ssl = opts.ssl
    if ssl is None:
        return {}
    # Error on unsupported features.
    if ssl.fips_mode:
        raise ConfigurationError("FIPS mode not supported")
    if ssl.crl_file:
        raise ConfigurationError("CRL files are not supported on this platform")

    kwargs: Dict[str, Any] = {"tls": ssl.use_ssl}
    if not ssl.use_ssl:
        return kwargs
    if ssl.allow_invalid_cert or ssl.allow_invalid_host:
        kwargs["tlsInsecure"] = True
    if ssl.pem_key_file:
        kwargs["tlsCertificateKeyFile"] = ssl.pem_key_file
        if ssl.pem_key_password:
            kwargs["tlsCertificateKeyFilePassword"] = ssl.pem_key_password
    if ssl.ca_file:
        kwargs["tlsCAFile"] = ssl.ca_file
    return kwargs


def client_options(opts: ToolOptions) -> Dict[str, Any]:
    """Translate `opts` into :class:`~pymongo.mongo_client.MongoClient`
    keyword options.

    :raises: :exc:`~mongotools.errors.ConfigurationError` for TLS settings
        that are not supported.
    """
    kwargs: Dict[str, Any] = {
        "connectTimeoutMS": opts.connection.timeout * 1000,
        "socketTimeoutMS": SOCKET_TIMEOUT * 1000,
        "directConnection": opts.direct,
    }
    if opts.connection.timeout:
        # Bounds the lazy connect, which holds the provider lock.
        kwargs["serverSelectionTimeoutMS"] = opts.connection.timeout * 1000
    if opts.app_name:
        kwargs["appname"] = opts.app_name
    if opts.replica_set_name:
        kwargs["replicaSet"] = opts.replica_set_name
    if opts.read_preference is not None:
        kwargs["read_preference"] = opts.read_preference
    kwargs.update(_write_concern_options(opts.write_concern))
    kwargs.update(_auth_options(opts))
    kwargs.update(_tls_options(opts))
    return kwargs


def configure_client(opts: ToolOptions) -> MongoClient:
    """Create a client for `opts` without connecting it."""
    if opts.uri is None or not opts.uri.connection_string:
        # Tools normally build the URI while parsing their options, but
        # options constructed in code often only carry a host and port.
        opts.normalize_host_port_uri()
    kwargs = client_options(opts)
    return MongoClient(opts.uri.connection_string, connect=False, **kwargs)


class SessionProvider:
    """Owns the client a tool uses for all of its operations.

    :meth:`get_session` and :meth:`close` are safe to call from several
    threads. The client they hand out is itself thread safe.

    :param opts: The :class:`~mongotools.options.ToolOptions` to connect with.
        When a username is given without a password the user is prompted
        for one, and the options are updated with it.

    :raises: :exc:`~mongotools.errors.ConfigurationError` when the options
        cannot be turned into a client. No connection is attempted.
    """

    def __init__(self, opts: ToolOptions) -> None:
        # Finalize auth options, filling in missing passwords.
        if opts.auth is not None and opts.auth.should_ask_for_password():
            opts.auth.password = password.prompt()

        try:
            client = configure_client(opts)
        except (ConfigurationError, PyMongoConfigurationError, ValueError, TypeError) as exc:
            raise ConfigurationError(f"error configuring the connector: {exc}") from exc

        self._lock = threading.Lock()
        # The client used for all operations, None once closed.
        self._client: Optional[MongoClient] = client
        # Whether the client has been connected.
        self._connect_called = False
        if _SESSION_LOGGER.isEnabledFor(logging.DEBUG):
            _debug_log(
                _SESSION_LOGGER,
                message=_SessionStatusMessage.CREATED,
                options=_options_for_log(opts),
            )

    def __enter__(self) -> SessionProvider:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return "{}(connected={}, closed={})".format(
            self.__class__.__name__, self._connect_called, self._client is None
        )

    def _connect(self, client: MongoClient) -> None:
        _debug_log(_SESSION_LOGGER, message=_SessionStatusMessage.CONNECTING)
        start = time.monotonic()
        try:
            client.admin.command("ping")
        except Exception as exc:
            _debug_log(
                _SESSION_LOGGER,
                message=_SessionStatusMessage.CONNECT_FAILED,
                durationMS=datetime.timedelta(seconds=time.monotonic() - start),
                failure=repr(exc),
            )
            raise
        _debug_log(
            _SESSION_LOGGER,
            message=_SessionStatusMessage.CONNECTED,
            durationMS=datetime.timedelta(seconds=time.monotonic() - start),
        )

    def get_session(self) -> MongoClient:
        """Return the shared client, connecting it on first use.

        Concurrent first calls result in a single connection attempt. When
        that attempt fails its error is raised and the next call tries again.

        :raises: :exc:`~mongotools.errors.SessionClosedError` after
            :meth:`close`.
        """
        with self._lock:
            if self._client is None:
                raise SessionClosedError("SessionProvider already closed")
            if not self._connect_called:
                self._connect(self._client)
                self._connect_called = True
            return self._client

    def close(self) -> None:
        """Close the shared client. Calling close again does nothing."""
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
                _debug_log(_SESSION_LOGGER, message=_SessionStatusMessage.CLOSED)

    @property
    def closed(self) -> bool:
        return self._client is None

    def db(self, name: str) -> Database:
        """Return the database `name` with the default read preference."""
        return self.get_session()[name]

    def drop_database(self, name: str) -> None:
        """Drop the database `name`."""
        self.get_session().drop_database(name)

    def set_flags(self, flags: SessionFlag) -> None:
        raise UnsupportedOperation("setting session flags is not supported")

    def set_read_preference(self, read_preference: Any) -> None:
        raise UnsupportedOperation("changing the read preference is not supported")

    def set_write_concern(self, write_concern: Any) -> None:
        raise UnsupportedOperation("changing the write concern is not supported")

    def set_bypass_document_validation(self, bypass_document_validation: bool) -> None:
        raise UnsupportedOperation("changing document validation bypass is not supported")

    def set_tags(self, tags: Any) -> None:
        raise UnsupportedOperation("changing server selection tags is not supported")


def new_session_provider(opts: ToolOptions) -> SessionProvider:
    """Construct a :class:`SessionProvider` for `opts`."""
    return SessionProvider(opts)


def _options_for_log(opts: ToolOptions) -> Dict[str, Any]:
    # Credentials are redacted by LogMessage.
    kwargs = client_options(opts)
    if "read_preference" in kwargs:
        kwargs["read_preference"] = kwargs["read_preference"].document
    return kwargs
