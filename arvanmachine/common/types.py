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

from typing import Optional

if False:
    # Work around for MYPY for cyclic import problem
    from arvanmachine.common.base import BaseDriver

__all__ = [
    "ArvanMachineError",
    "MalformedResponseError",
    "DecodeError",
    "TransportError",
    "ConfigurationError",
    "WaitTimeoutError",
    "MachineStateError",
]


class ArvanMachineError(Exception):
    """The base class for other arvanmachine exceptions"""

    def __init__(self, value, driver=None):
        # type: (str, Optional[BaseDriver]) -> None
        super(ArvanMachineError, self).__init__(value)
        self.value = value
        self.driver = driver

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return ("<" + self.__class__.__name__ + " in " +
                repr(self.driver) +
                " " +
                repr(self.value) + ">")


class MalformedResponseError(ArvanMachineError):
    """Exception for the cases when a provider returns a malformed
    response, e.g. you request JSON and provider returns
    '<h3>something</h3>' due to some error on their side."""

    def __init__(self, value, body=None, driver=None):
        # type: (str, Optional[str], Optional[BaseDriver]) -> None
        super(MalformedResponseError, self).__init__(value, driver=driver)
        self.body = body

    def __str__(self):
        return '%s: %r' % (self.value, self.body)


DecodeError = MalformedResponseError


class TransportError(ArvanMachineError):
    """
    Exception used when no response could be obtained from the provider
    (DNS resolution, refused connection, TLS failure, timeout).

    The original ``requests`` exception is available as ``__cause__``.
    """


class ConfigurationError(ArvanMachineError):
    """Exception used when a driver is configured with invalid options."""


class WaitTimeoutError(ArvanMachineError):
    """
    Exception used when a server doesn't reach the expected state within
    the configured wait timeout.
    """

    def __init__(self, value, timeout=None, last_state=None, driver=None):
        super(WaitTimeoutError, self).__init__(value, driver=driver)
        self.timeout = timeout
        self.last_state = last_state


class MachineStateError(ArvanMachineError):
    """
    Exception used when the state of a machine can't be determined.

    ``state`` is always ``MachineState.ERROR`` and ``cause`` holds the
    error which made the state lookup fail.
    """

    def __init__(self, value, state, cause, driver=None):
        super(MachineStateError, self).__init__(value, driver=driver)
        self.state = state
        self.cause = cause
