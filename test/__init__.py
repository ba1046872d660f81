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

"""Test suite for mongotools.

Integration tests need a mongod or mongos at ``DB_IP``:``DB_PORT``
(localhost:27017 by default) and are skipped when none answers. Set
``DB_USER`` and ``DB_PASSWORD`` when the server requires authentication.
"""
from __future__ import annotations

import os
import threading
import unittest
from functools import wraps
from typing import Any, List, Mapping, Optional, Sequence
from unittest import SkipTest

import pymongo
import pymongo.errors
from pymongo.operations import InsertOne
from pymongo.results import BulkWriteResult

from mongotools.options import Auth, Connection, ToolOptions

# The host and port of a single mongod or mongos, or the seed host
# for a replica set.
host = os.environ.get("DB_IP", "localhost")
port = int(os.environ.get("DB_PORT", 27017))

db_user = os.environ.get("DB_USER", "")
db_pwd = os.environ.get("DB_PASSWORD", "")

TEST_DB = "mongotools_test"


class ClientContext:
    client: Optional[pymongo.MongoClient]

    def __init__(self) -> None:
        self.connection_attempts: List[str] = []
        self.connected = False
        self.client = None
        self.conn_lock = threading.Lock()
        self._initialized = False

    @property
    def pair(self) -> str:
        return f"{host}:{port}"

    @property
    def client_options(self) -> dict:
        """Return the MongoClient options for creating a duplicate client."""
        if db_user:
            return {"username": db_user, "password": db_pwd}
        return {}

    def tool_options(self, **kwargs: Any) -> ToolOptions:
        """Return ToolOptions pointing at the test server."""
        if db_user:
            kwargs.setdefault("auth", Auth(username=db_user, password=db_pwd))
        return ToolOptions(connection=Connection(host=host, port=port), **kwargs)

    def _connect(self) -> Optional[pymongo.MongoClient]:
        client = pymongo.MongoClient(
            host, port, serverSelectionTimeoutMS=2000, **self.client_options
        )
        try:
            client.admin.command("ping")
        except pymongo.errors.ConnectionFailure as exc:
            self.connection_attempts.append(f"failed to connect client {client!r}: {exc}")
            client.close()
            return None
        self.connection_attempts.append(f"successfully connected client {client!r}")
        return client

    def init(self) -> None:
        with self.conn_lock:
            if not self._initialized:
                self.client = self._connect()
                self.connected = self.client is not None
                self._initialized = True

    def require_connection(self, func):
        """Run a test only if we can connect to MongoDB."""

        @wraps(func)
        def wrap(*args, **kwargs):
            self.init()
            if not self.connected:
                raise SkipTest(f"Cannot connect to MongoDB on {self.pair}")
            return func(*args, **kwargs)

        return wrap


# Reusable client context
client_context = ClientContext()


class MongoToolsTestCase(unittest.TestCase):
    pass


class IntegrationTest(MongoToolsTestCase):
    """Base class for TestCases that need a connection to MongoDB to pass."""

    client: pymongo.MongoClient

    @classmethod
    @client_context.require_connection
    def setUpClass(cls) -> None:
        cls.client = client_context.client
        cls.db = cls.client[TEST_DB]

    @classmethod
    def tearDownClass(cls) -> None:
        cls.client.drop_database(TEST_DB)


class FakeCollection:
    """Stands in for a Collection, recording each bulk write it receives.

    `errors` are raised by successive bulk writes, ``None`` entries
    succeed.
    """

    full_name = f"{TEST_DB}.fake"

    def __init__(self, errors: Sequence[Optional[BaseException]] = ()) -> None:
        self.batches: List[list] = []
        self.calls: List[Mapping[str, Any]] = []
        self._errors = list(errors)

    def bulk_write(self, requests, ordered=True, bypass_document_validation=None):
        requests = list(requests)
        self.batches.append(requests)
        self.calls.append(
            {"ordered": ordered, "bypass_document_validation": bypass_document_validation}
        )
        if self._errors:
            error = self._errors.pop(0)
            if error is not None:
                raise error
        n_inserted = sum(1 for request in requests if isinstance(request, InsertOne))
        return BulkWriteResult(
            {
                "nInserted": n_inserted,
                "nMatched": 0,
                "nModified": 0,
                "nRemoved": 0,
                "nUpserted": 0,
                "upserted": [],
                "writeErrors": [],
                "writeConcernErrors": [],
            },
            True,
        )
