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

import json
from http import client as httplib
from urllib import parse as urlparse
from urllib.parse import urlencode

import requests

import arvanmachine

from arvanmachine.http import ArvanMachineConnection
from arvanmachine.utils.misc import lowercase_keys
from arvanmachine.common.types import ArvanMachineError
from arvanmachine.common.types import MalformedResponseError
from arvanmachine.common.types import TransportError
from arvanmachine.common.exceptions import exception_from_message

__all__ = [
    'BaseDriver',

    'Connection',
    'ConnectionKey',

    'Response',
    'JsonResponse'
]


class Response(object):
    """
    A base Response class to derive from.
    """

    # Response status codes treated as a success when the caller didn't
    # ask for a specific one
    valid_response_codes = [httplib.OK, httplib.CREATED, httplib.ACCEPTED,
                            httplib.NO_CONTENT]

    status = httplib.OK  # Response status code
    headers = {}  # Response headers
    body = None  # Raw response body
    object = None  # Parsed response body
    expected_status = None  # Status code the endpoint must answer with

    error = None  # Reason returned by the server.
    connection = None  # Parent connection class
    parse_zero_length_body = False

    def __init__(self, response, connection, expected_status=None,
                 parse_body=True):
        """
        :param response: HTTP response object. (optional)
        :type response: :class:`requests.Response`

        :param connection: Parent connection object.
        :type connection: :class:`.Connection`

        :param expected_status: The only status code which is considered a
                                success. (optional)
        :type expected_status: ``int``

        :param parse_body: Decode the body of a successful response. When
                           ``False`` ``object`` is the raw body. (optional)
        :type parse_body: ``bool``
        """
        self.connection = connection
        self.expected_status = expected_status

        self.headers = lowercase_keys(dict(response.headers))
        self.error = response.reason
        self.status = response.status_code

        # The body is kept exactly as sent by the server, error messages
        # rely on it
        self.body = response.text

        if not self.success():
            raise exception_from_message(code=self.status,
                                         message=self.parse_error(),
                                         headers=self.headers,
                                         expected_code=self.expected_status)

        if parse_body:
            self.object = self.parse_body()
        else:
            self.object = self.body

    def parse_body(self):
        """
        Parse response body.

        Override in a provider's subclass.

        :return: Parsed body.
        :rtype: ``str``
        """
        return self.body if self.body is not None else ''

    def parse_error(self):
        """
        Parse the error messages.

        Override in a provider's subclass.

        :return: Parsed error.
        :rtype: ``str``
        """
        return self.body

    def success(self):
        """
        Determine if our request was successful.

        When the request was made with an ``expected_status`` only that exact
        status code is a success, otherwise any code from
        ``valid_response_codes`` is.

        :rtype: ``bool``
        :return: ``True`` or ``False``
        """
        if self.expected_status is not None:
            return self.status == self.expected_status

        return self.status in self.valid_response_codes


class JsonResponse(Response):
    """
    A Base JSON Response class to derive from.
    """

    def parse_body(self):
        if len(self.body) == 0 and not self.parse_zero_length_body:
            return self.body

        try:
            body = json.loads(self.body)
        except ValueError as e:
            driver = self.connection.driver if self.connection else None
            raise MalformedResponseError(
                'Failed to parse JSON: %s' % (e),
                body=self.body,
                driver=driver)
        return body


class Connection(object):
    """
    A Base Connection class to derive from.
    """
    conn_class = ArvanMachineConnection

    responseCls = Response
    connection = None
    host = '127.0.0.1'  # type: str
    port = 443
    timeout = None  # type: int
    secure = 1
    driver = None
    action = None

    def __init__(self, secure=True, host=None, port=None, url=None,
                 timeout=None, proxy_url=None):
        self.secure = secure and 1 or 0
        self.ua = []

        self.request_path = ''

        if host:
            self.host = host

        if port is not None:
            self.port = port
        else:
            if self.secure == 1:
                self.port = 443
            else:
                self.port = 80

        if url:
            (self.host, self.port, self.secure,
             self.request_path) = self._tuple_from_url(url)

        self.timeout = timeout or self.timeout
        self.proxy_url = proxy_url

    def _tuple_from_url(self, url):
        secure = 1
        port = None
        (scheme, netloc, request_path, param,
         query, fragment) = urlparse.urlparse(url)

        if scheme not in ['http', 'https']:
            raise ArvanMachineError('Invalid scheme: %s in url %s' %
                                    (scheme, url))

        if scheme == "http":
            secure = 0

        if ":" in netloc:
            netloc, port = netloc.rsplit(":")
            port = int(port)

        if not port:
            if scheme == "http":
                port = 80
            else:
                port = 443

        host = netloc
        port = int(port)

        return (host, port, secure, request_path)

    def connect(self, host=None, port=None):
        """
        Establish a connection with the API server.

        :type host: ``str``
        :param host: Optional host to override our default

        :type port: ``int``
        :param port: Optional port to override our default
        """
        host = host or self.host
        port = port or self.port

        kwargs = {'host': host, 'port': int(port), 'secure': self.secure}

        if self.timeout:
            kwargs.update({'timeout': self.timeout})

        if self.proxy_url:
            kwargs.update({'proxy_url': self.proxy_url})

        connection = self.conn_class(**kwargs)

        self.connection = connection

    def _user_agent(self):
        user_agent_suffix = ' '.join(['(%s)' % x for x in self.ua])

        if self.driver:
            user_agent = 'arvanmachine/%s (%s) %s' % (
                arvanmachine.__version__,
                self.driver.name, user_agent_suffix)
        else:
            user_agent = 'arvanmachine/%s %s' % (
                arvanmachine.__version__, user_agent_suffix)

        return user_agent.rstrip()

    def user_agent_append(self, token):
        """
        Append a token to a user agent string.

        Users of the library should call this to uniquely identify their
        requests to a provider.

        :type token: ``str``
        :param token: Token to add to the user agent.
        """
        self.ua.append(token)

    def request(self, action, params=None, data=None, headers=None,
                method='GET', expected_status=None, parse_body=True):
        """
        Request a given `action`.

        Basically a wrapper around the connection
        object's `request` that does some helpful pre-processing.

        :type action: ``str``
        :param action: A path. This can include arguments. If included,
            any extra parameters are appended to the existing ones.

        :type params: ``dict``
        :param params: Optional mapping of additional parameters to send. If
            None, leave as an empty ``dict``.

        :type data: ``unicode``
        :param data: A body of data to send with the request.

        :type headers: ``dict``
        :param headers: Extra headers to add to the request
            None, leave as an empty ``dict``.

        :type method: ``str``
        :param method: An HTTP method such as "GET" or "POST".

        :type expected_status: ``int``
        :param expected_status: The status code the endpoint answers with
            on success. Any other code raises
            :class:`arvanmachine.common.exceptions.UnexpectedStatusError`.

        :type parse_body: ``bool``
        :param parse_body: Decode the body of a successful response. Endpoints
            which return no result only have their status checked.

        :return: An :class:`Response` instance.
        :rtype: :class:`Response` instance

        """
        if params is None:
            params = {}
        else:
            params = params.copy()

        if headers is None:
            headers = {}
        else:
            headers = headers.copy()

        action = self.morph_action_hook(action)
        self.action = action
        self.method = method

        # Extend default parameters
        params = self.add_default_params(params)

        # Extend default headers
        headers = self.add_default_headers(headers)

        # We always send a user-agent header
        headers.update({'User-Agent': self._user_agent()})

        # Encode data if necessary
        if data is not None and data != '':
            data = self.encode_data(data)

        params, headers = self.pre_connect_hook(params, headers)

        if params:
            if '?' in action:
                url = '&'.join((action, urlencode(params, doseq=True)))
            else:
                url = '?'.join((action, urlencode(params, doseq=True)))
        else:
            url = action

        # IF connection has not yet been established
        if self.connection is None:
            self.connect()

        # Failed requests are never retried
        try:
            self.connection.request(method=method, url=url, body=data,
                                    headers=headers)
        except requests.exceptions.RequestException as e:
            raise TransportError('%s %s failed: %s' % (method, url, e),
                                 driver=self.driver) from e

        return self.responseCls(response=self.connection.getresponse(),
                                connection=self,
                                expected_status=expected_status,
                                parse_body=parse_body)

    def morph_action_hook(self, action):
        """
        Prefix ``action`` with the connection's request path.
        """
        request_path = self.request_path.rstrip('/')
        url = '%s/%s' % (request_path, action.lstrip('/'))

        if not url.startswith('/'):
            return '/' + url

        return url

    def add_default_params(self, params):
        """
        Adds default parameters (such as API key, version, etc.)
        to the passed `params`

        Should return a dictionary.
        """
        return params

    def add_default_headers(self, headers):
        """
        Adds default headers (such as Authorization, X-Foo-Bar)
        to the passed `headers`

        Should return a dictionary.
        """
        return headers

    def pre_connect_hook(self, params, headers):
        """
        A hook which is called before connecting to the remote server.
        This hook can perform a final manipulation on the params, headers and
        url parameters.

        :type params: ``dict``
        :param params: Request parameters.

        :type headers: ``dict``
        :param headers: Request headers.
        """
        return params, headers

    def encode_data(self, data):
        """
        Encode body data.

        Override in a provider's subclass.
        """
        return data


class ConnectionKey(Connection):
    """
    Base connection class which accepts a single ``key`` argument.
    """
    def __init__(self, key, secure=True, host=None, port=None, url=None,
                 timeout=None, proxy_url=None):
        """
        Initialize `key`; set `secure` to an ``int`` based on
        passed value.
        """
        super(ConnectionKey, self).__init__(secure=secure, host=host,
                                            port=port, url=url,
                                            timeout=timeout,
                                            proxy_url=proxy_url)
        self.key = key


class BaseDriver(object):
    """
    Base driver class from which other classes can inherit from.
    """

    connectionCls = ConnectionKey  # type: type
    name = None  # type: str

    def __init__(self, key, secure=True, host=None, port=None,
                 api_version=None, region=None, **kwargs):
        """
        :param    key: API key or token to be used
        :type     key: ``str``

        :param    secure: Whether to use HTTPS or HTTP. Note: Some providers
                only support HTTPS, and it is on by default.
        :type     secure: ``bool``

        :param    host: Override hostname used for connections.
        :type     host: ``str``

        :param    port: Override port used for connections.
        :type     port: ``int``

        :param    api_version: Optional API version. Only used by drivers
                                 which support multiple API versions.
        :type     api_version: ``str``

        :param region: Optional driver region. Only used by drivers which
                       support multiple regions.
        :type region: ``str``

        :rtype: ``None``
        """
        self.key = key
        self.secure = secure
        self.api_version = api_version
        self.region = region

        conn_kwargs = self._ex_connection_class_kwargs()
        conn_kwargs.update({'timeout': kwargs.pop('timeout', None),
                            'proxy_url': kwargs.pop('proxy_url', None)})

        self.connection = self.connectionCls(self.key, secure=secure,
                                             host=host, port=port,
                                             **conn_kwargs)

        self.connection.driver = self
        self.connection.connect()

    def _ex_connection_class_kwargs(self):
        """
        Return extra connection keyword arguments which are passed to the
        Connection class constructor.
        """
        return {}
