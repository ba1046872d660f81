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

"""Interactive password prompt."""
from __future__ import annotations

import getpass
import sys
from typing import Optional, TextIO

PROMPT = "Enter password:"


def prompt(stream: Optional[TextIO] = None) -> str:
    """Read a password from the terminal without echoing it.

    The prompt goes to `stream`, stderr by default, so it does not end up
    in a tool's output.
    """
    return getpass.getpass(PROMPT, stream=stream if stream is not None else sys.stderr)
