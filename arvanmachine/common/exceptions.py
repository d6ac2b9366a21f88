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

import time

from email.utils import parsedate_tz, mktime_tz
from http import client as httplib

from arvanmachine.common.types import ArvanMachineError

__all__ = [
    'UnexpectedStatusError',
    'RequestError',
    'InvalidCredsError',
    'RateLimitReachedError',

    'exception_from_message'
]


class UnexpectedStatusError(ArvanMachineError):

    """
    Raised when the provider answered with a status code which differs
    from the one expected for the endpoint.

    ``message`` is the raw response body.
    """

    def __init__(self, code, message, headers=None, expected_code=None):
        self.code = code
        self.http_code = code
        self.message = message
        self.headers = headers
        self.expected_code = expected_code
        super(UnexpectedStatusError, self).__init__(message)

    def __str__(self):
        return self.message

    def __repr__(self):
        return ('<%s code=%s expected=%s message=%r>' %
                (self.__class__.__name__, self.code, self.expected_code,
                 self.message))


RequestError = UnexpectedStatusError


class InvalidCredsError(UnexpectedStatusError):
    """
    HTTP 401 - The API token was rejected by the provider.
    """
    code = httplib.UNAUTHORIZED


class RateLimitReachedError(UnexpectedStatusError):
    """
    HTTP 429 - Rate limit: you've sent too many requests for this time period.
    """
    code = httplib.TOO_MANY_REQUESTS

    def __init__(self, code=None, message=None, headers=None,
                 expected_code=None):
        if code is None:
            code = self.code
        if message is None:
            message = '%s Rate limit exceeded' % (code)

        super(RateLimitReachedError, self).__init__(code, message, headers,
                                                    expected_code)
        self.retry_after = 0
        if self.headers is not None:
            try:
                self.retry_after = float(self.headers.get('retry-after', 0))
            except (TypeError, ValueError):
                # Neither delta-seconds nor an HTTP-date
                pass


_error_classes = [InvalidCredsError, RateLimitReachedError]
_code_map = dict((c.code, c) for c in _error_classes)


def exception_from_message(code, message, headers=None, expected_code=None):
    """
    Return an instance of UnexpectedStatusError or subclass based on
    response code.

    If headers include Retry-After, RFC 2616 says that its value may be one of
    two formats: HTTP-date or delta-seconds, for example:

    Retry-After: Fri, 31 Dec 1999 23:59:59 GMT
    Retry-After: 120

    If Retry-After comes in HTTP-date, it'll be translated to a positive
    delta-seconds value when passing it to the exception constructor.

    Usage::
        raise exception_from_message(code=self.status,
                                     message=self.parse_error(),
                                     headers=self.headers,
                                     expected_code=self.expected_status)
    """
    kwargs = {
        'code': code,
        'message': message,
        'headers': headers,
        'expected_code': expected_code
    }

    if headers and 'retry-after' in headers:
        http_date = parsedate_tz(headers['retry-after'])
        if http_date is not None:
            # Convert HTTP-date to delay-seconds
            delay = max(0, int(mktime_tz(http_date) - time.time()))
            headers['retry-after'] = str(delay)
    cls = _code_map.get(code, UnexpectedStatusError)
    return cls(**kwargs)
