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

import unittest

from urllib import parse as urlparse
from urllib.parse import parse_qs, quote as urlquote

import requests_mock

from arvanmachine.http import ArvanMachineConnection


class ArvanMachineTestCase(unittest.TestCase):
    def __init__(self, *args, **kwargs):
        self._visited_urls = []
        self._executed_mock_methods = []
        super(ArvanMachineTestCase, self).__init__(*args, **kwargs)

    def setUp(self):
        self._visited_urls = []
        self._executed_mock_methods = []

    def _add_visited_url(self, url):
        self._visited_urls.append(url)

    def _add_executed_mock_method(self, method_name):
        self._executed_mock_methods.append(method_name)

    def assertExecutedMethodCount(self, expected):
        actual = len(self._executed_mock_methods)
        self.assertEqual(actual, expected,
                         'expected %d, but %d mock methods were executed'
                         % (expected, actual))


class MockHttp(ArvanMachineConnection):
    """
    A mock HTTP client/server suitable for testing purposes. This replaces
    `ArvanMachineConnection` by implementing its API and returning a mock
    response.

    Define methods by request path, replacing slashes (/) with underscores (_).
    ``path_prefix`` is stripped from the path first. Each of these mock
    methods should return a tuple of:

        (int status, str body, dict headers, str reason)
    """
    type = None
    use_param = None  # will use this param to namespace the request function
    test = None  # TestCase instance which is using this mock
    path_prefix = ''

    def _get_request(self, method, url, body=None, headers=None):
        # Find a method we can use for this request
        parsed = urlparse.urlparse(url)
        _, _, path, _, query, _ = parsed
        qs = parse_qs(query)
        if path.endswith('/'):
            path = path[:-1]
        if self.path_prefix and path.startswith(self.path_prefix):
            path = path[len(self.path_prefix):]
        meth_name = self._get_method_name(type=self.type,
                                          use_param=self.use_param,
                                          qs=qs, path=path)
        meth = getattr(self, meth_name.replace('%', '_'))

        if self.test and isinstance(self.test, ArvanMachineTestCase):
            self.test._add_visited_url(url=url)
            self.test._add_executed_mock_method(method_name=meth_name)
        return meth(method, url, body, headers)

    def request(self, method, url, body=None, headers=None, **kwargs):
        headers = self._normalize_headers(headers=headers)
        r_status, r_body, r_headers, r_reason = self._get_request(
            method, url, body, headers)
        if r_body is None:
            r_body = ''
        # this is to catch any special chars e.g. ~ in the request. URL
        url = urlquote(url, safe='/?&=')

        with requests_mock.mock() as m:
            m.register_uri(method, url, text=r_body, reason=r_reason,
                           headers=r_headers, status_code=r_status)
            try:
                super(MockHttp, self).request(
                    method=method, url=url, body=body, headers=headers)
            except requests_mock.exceptions.NoMockAddress as nma:
                raise AttributeError("Failed to mock out URL {0} - {1}".format(
                    url, nma.request.url
                ))

    def _get_method_name(self, type, use_param, qs, path):
        path = path.split('?')[0]
        meth_name = (
            path
            .replace('/', '_')
            .replace('.', '_')
            .replace('-', '_')
            .replace('~', '%7E'))

        if type:
            meth_name = '%s_%s' % (meth_name, self.type)

        if use_param and use_param in qs:
            param = qs[use_param][0].replace('.', '_').replace('-', '_')
            meth_name = '%s_%s' % (meth_name, param)

        if meth_name == '':
            meth_name = 'root'

        return meth_name
