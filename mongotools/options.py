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

"""Options shared by the tools that connect to a deployment.

These are plain value holders. Parsing them from a command line or a
configuration file is left to the tool; by the time a
:class:`ToolOptions` reaches :class:`~mongotools.session.SessionProvider`
its values are expected to be final.
"""
from __future__ import annotations

from typing import Any, List, Optional

from pymongo.common import validate_boolean, validate_non_negative_integer
from pymongo.read_preferences import _ServerMode
from pymongo.write_concern import WriteConcern

from mongotools.common import DEFAULT_CONNECT_TIMEOUT, DEFAULT_HOST, DEFAULT_PORT

# Mechanisms that authenticate against the $external database.
_EXTERNAL_MECHANISMS = frozenset(["GSSAPI", "PLAIN", "MONGODB-X509"])

# Mechanisms that never need a password from the user.
_PASSWORDLESS_MECHANISMS = frozenset(["GSSAPI", "MONGODB-X509"])


def _repr_fields(obj: Any, names: List[str]) -> str:
    fields = ", ".join(f"{name}={getattr(obj, name)!r}" for name in names)
    return f"{obj.__class__.__name__}({fields})"


class Connection:
    """Where to connect, and how long to wait for it.

    :param host: A hostname, a ``host:port`` pair, or a seed list such as
        ``"rs0/h1:27017,h2:27017"``.
    :param port: Port used for hosts that do not name one.
    :param timeout: Connect timeout in seconds.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: Any = DEFAULT_PORT,
        timeout: int = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = str(port) if port else ""
        self.timeout = validate_non_negative_integer("timeout", timeout)

    def __repr__(self) -> str:
        return _repr_fields(self, ["host", "port", "timeout"])


class Auth:
    """Credentials for authenticating the connection."""

    def __init__(
        self,
        username: str = "",
        password: str = "",
        source: str = "",
        mechanism: str = "",
    ) -> None:
        self.username = username
        self.password = password
        self.source = source
        self.mechanism = mechanism

    def __repr__(self) -> str:
        # Never include the password.
        return _repr_fields(self, ["username", "source", "mechanism"])

    def is_set(self) -> bool:
        """Whether any credential was provided at all."""
        return bool(self.username or self.mechanism)

    def requires_external_db(self) -> bool:
        return self.mechanism in _EXTERNAL_MECHANISMS

    def should_ask_for_password(self) -> bool:
        """Whether the user needs to be prompted for a password."""
        return (
            bool(self.username)
            and not self.password
            and self.mechanism not in _PASSWORDLESS_MECHANISMS
        )


class Kerberos:
    """GSSAPI specific settings."""

    def __init__(self, service: str = "", service_host: str = "") -> None:
        self.service = service
        self.service_host = service_host

    def __repr__(self) -> str:
        return _repr_fields(self, ["service", "service_host"])


class SSL:
    """Transport security settings.

    `fips_mode` and `crl_file` are accepted here so that tools can pass
    through what the user asked for; the session provider refuses both.
    """

    def __init__(
        self,
        use_ssl: bool = False,
        ca_file: str = "",
        pem_key_file: str = "",
        pem_key_password: str = "",
        crl_file: str = "",
        allow_invalid_cert: bool = False,
        allow_invalid_host: bool = False,
        fips_mode: bool = False,
    ) -> None:
        self.use_ssl = validate_boolean("use_ssl", use_ssl)
        self.ca_file = ca_file
        self.pem_key_file = pem_key_file
        self.pem_key_password = pem_key_password
        self.crl_file = crl_file
        self.allow_invalid_cert = validate_boolean("allow_invalid_cert", allow_invalid_cert)
        self.allow_invalid_host = validate_boolean("allow_invalid_host", allow_invalid_host)
        self.fips_mode = validate_boolean("fips_mode", fips_mode)

    def __repr__(self) -> str:
        return _repr_fields(
            self,
            [
                "use_ssl",
                "ca_file",
                "pem_key_file",
                "crl_file",
                "allow_invalid_cert",
                "allow_invalid_host",
                "fips_mode",
            ],
        )


class URI:
    """A MongoDB connection string."""

    def __init__(self, connection_string: str = "") -> None:
        self.connection_string = connection_string

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(<connection string>)"


class Namespace:
    """The database and collection a tool operates on."""

    def __init__(self, db: str = "", collection: str = "") -> None:
        self.db = db
        self.collection = collection

    def __repr__(self) -> str:
        return _repr_fields(self, ["db", "collection"])

    def __str__(self) -> str:
        if self.collection:
            return f"{self.db}.{self.collection}"
        return self.db


class ToolOptions:
    """Everything needed to build a client for a tool.

    :param app_name: Reported to the server in the connection handshake.
    :param connection: A :class:`Connection`. Defaults to localhost.
    :param auth: An :class:`Auth`, or ``None`` to connect without credentials.
    :param kerberos: A :class:`Kerberos`, used with the ``GSSAPI`` mechanism.
    :param ssl: An :class:`SSL`, or ``None`` to leave TLS unconfigured.
    :param uri: A :class:`URI`. Built from `connection` when missing.
    :param namespace: A :class:`Namespace`.
    :param replica_set_name: Name of the replica set to connect to.
    :param direct: Connect to the given host only, without discovering the
        rest of the topology.
    :param read_preference: A read preference from
        :mod:`pymongo.read_preferences`.
    :param write_concern: A :class:`~pymongo.write_concern.WriteConcern`.
        Majority acknowledgement is used when ``None``.
    """

    def __init__(
        self,
        app_name: str = "",
        connection: Optional[Connection] = None,
        auth: Optional[Auth] = None,
        kerberos: Optional[Kerberos] = None,
        ssl: Optional[SSL] = None,
        uri: Optional[URI] = None,
        namespace: Optional[Namespace] = None,
        replica_set_name: str = "",
        direct: bool = False,
        read_preference: Optional[_ServerMode] = None,
        write_concern: Optional[WriteConcern] = None,
    ) -> None:
        self.app_name = app_name
        self.connection = connection if connection is not None else Connection()
        self.auth = auth
        self.kerberos = kerberos
        self.ssl = ssl
        self.uri = uri
        self.namespace = namespace if namespace is not None else Namespace()
        self.replica_set_name = replica_set_name
        self.direct = validate_boolean("direct", direct)
        if read_preference is not None and not isinstance(read_preference, _ServerMode):
            raise TypeError(f"{read_preference!r} is not a read preference.")
        self.read_preference = read_preference
        if write_concern is not None and not isinstance(write_concern, WriteConcern):
            raise TypeError(f"{write_concern!r} is not an instance of WriteConcern.")
        self.write_concern = write_concern

    def __repr__(self) -> str:
        return _repr_fields(
            self,
            [
                "app_name",
                "connection",
                "auth",
                "kerberos",
                "ssl",
                "namespace",
                "replica_set_name",
                "direct",
                "read_preference",
                "write_concern",
            ],
        )

    def get_authentication_database(self) -> str:
        """Return the database to authenticate against.

        An explicit source wins, then ``$external`` for mechanisms that need
        it, then the namespace database. An empty string leaves the choice to
        the driver.
        """
        if self.auth is not None:
            if self.auth.source:
                return self.auth.source
            if self.auth.requires_external_db():
                return "$external"
        if self.namespace.db:
            return self.namespace.db
        return ""

    def normalize_host_port_uri(self) -> None:
        """Build :attr:`uri` from the host and port of :attr:`connection`.

        A ``setname/host1,host2`` seed list fills in
        :attr:`replica_set_name` unless one is already set.
        """
        host = self.connection.host or DEFAULT_HOST
        if "/" in host:
            set_name, host = host.split("/", 1)
            if set_name and not self.replica_set_name:
                self.replica_set_name = set_name

        nodes = []
        for node in host.split(","):
            node = node.strip()
            if not node:
                continue
            if node.count(":") > 1 and not node.startswith("["):
                # Bare IPv6 address.
                node = f"[{node}]"
            if self.connection.port and not _has_port(node):
                node = f"{node}:{self.connection.port}"
            nodes.append(node)
        self.uri = URI("mongodb://{}/".format(",".join(nodes)))


def _has_port(node: str) -> bool:
    if node.startswith("["):
        return "]:" in node
    return ":" in node
