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

"""Limits and defaults shared by mongotools."""
from __future__ import annotations

# MongoDB enforced limits.
MAX_BSON_SIZE = 16 * (1024**2)

# Room left in a bulk write command for the envelope around the documents.
COMMAND_OVERHEAD = 16382

# Hard coded socket timeout, in seconds.
SOCKET_TIMEOUT = 600

# Connect timeout used when the options do not set one, in seconds.
DEFAULT_CONNECT_TIMEOUT = 3

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 27017
