# Licensed to the Apache Software Foundation (ASF) under one or more
# contributor license agreements.  See the NOTICE file distributed with
# this work for additional information regarding copyright ownership.
# The ASF licenses this file to You under the Apache License, Version 2.0
# (the "License"); you may not use this file except in compliance with
# the License.  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Base types used by the machine drivers
"""

from enum import Enum

from arvanmachine.common.types import ArvanMachineError
from arvanmachine.common.types import ConfigurationError
from arvanmachine.common.types import MachineStateError
from arvanmachine.common.types import WaitTimeoutError

__all__ = [
    "MachineState",

    "ArvanMachineError",
    "ConfigurationError",
    "MachineStateError",
    "WaitTimeoutError",
]


class Type(str, Enum):
    @classmethod
    def tostring(cls, value):
        # type: (Type) -> str
        """Return the string representation of the state object attribute
        :param str value: the state object to turn into string
        :return: the uppercase string that represents the state object
        :rtype: str
        """
        return str(value.value).upper()

    @classmethod
    def fromstring(cls, value):
        # type: (str) -> Type
        """Return the state object attribute that matches the string
        :param str value: the string to look up
        :return: the state object attribute that matches the string
        :rtype: str
        """
        return getattr(cls, value.upper(), None)

    def __str__(self):
        return str(self.value)


class MachineState(Type):
    """
    Standard states for a machine

    :cvar NONE: No state is known, the server reported an empty status.
    :cvar STARTING: Machine is being built or is booting.
    :cvar RUNNING: Machine is running.
    :cvar STOPPED: Machine is stopped. It can be started later on.
    :cvar UNKNOWN: The provider reported a status we have no mapping for.
    :cvar ERROR: The state couldn't be determined.
    """
    NONE = 'none'
    STARTING = 'starting'
    RUNNING = 'running'
    STOPPED = 'stopped'
    UNKNOWN = 'unknown'
    ERROR = 'error'
