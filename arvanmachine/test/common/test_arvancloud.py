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

import sys
import json
import unittest
from http import client as httplib

import requests

from arvanmachine.common.arvancloud import ArvanClient
from arvanmachine.common.arvancloud import ServerRequest
from arvanmachine.common.arvancloud import SSHKey
from arvanmachine.common.exceptions import InvalidCredsError
from arvanmachine.common.exceptions import RateLimitReachedError
from arvanmachine.common.exceptions import RequestError
from arvanmachine.common.exceptions import UnexpectedStatusError
from arvanmachine.common.types import DecodeError
from arvanmachine.common.types import TransportError

from arvanmachine.test import ArvanMachineTestCase, MockHttp
from arvanmachine.test.file_fixtures import ArvanFileFixtures
from arvanmachine.test.secrets import ARVAN_PARAMS, ARVAN_REGION


class ArvanClientTests(ArvanMachineTestCase):

    def setUp(self):
        super(ArvanClientTests, self).setUp()
        ArvanClient.connectionCls.conn_class = ArvanMockHttp
        ArvanMockHttp.type = None
        ArvanMockHttp.test = self
        ArvanMockHttp.recorded = []
        self.client = ArvanClient(*ARVAN_PARAMS, region=ARVAN_REGION)

    def test_request_path_contains_version_and_region(self):
        self.assertEqual(self.client.connection.request_path,
                         '/ecc/v1/regions/nl-ams-su1')
        self.assertEqual(self.client.connection.host, 'napi.arvancloud.com')
        self.assertEqual(self.client.connection.port, 443)

    def test_every_request_is_authenticated(self):
        self.client.get_server('srv1')

        method, url, body, headers = ArvanMockHttp.recorded[0]
        self.assertEqual(method, 'GET')
        self.assertEqual(url, '/ecc/v1/regions/nl-ams-su1/servers/srv1')
        self.assertEqual(headers['Authorization'], 'Apikey arvan-api-token')
        self.assertEqual(headers['Content-Type'], 'application/json')
        self.assertTrue(headers['User-Agent'].startswith('arvanmachine/'))

    def test_get_server(self):
        server = self.client.get_server('srv1')

        self.assertEqual(server.id, 'srv1')
        self.assertEqual(server.name, 'machine-1')
        self.assertEqual(server.status, 'active')
        self.assertEqual(server.ip_address, '185.206.92.10')
        self.assertEqual(server.extra['addresses']['public1'][0]['version'],
                         '4')

    def test_get_server_without_addresses(self):
        ArvanMockHttp.type = 'BUILD'
        server = self.client.get_server('srv1')

        self.assertEqual(server.status, 'build')
        self.assertEqual(server.ip_address, '')
        self.assertEqual(server.extra['addresses'], {})

    def test_get_server_not_found(self):
        ArvanMockHttp.type = 'NOT_FOUND'
        body = ArvanFileFixtures('arvancloud').load('error_not_found.json')

        with self.assertRaises(UnexpectedStatusError) as ctx:
            self.client.get_server('srv1')

        self.assertEqual(ctx.exception.code, httplib.NOT_FOUND)
        self.assertEqual(ctx.exception.expected_code, httplib.OK)
        self.assertEqual(ctx.exception.message, body)
        self.assertEqual(str(ctx.exception), body)

    def test_get_server_malformed_body(self):
        ArvanMockHttp.type = 'MALFORMED'

        with self.assertRaises(DecodeError) as ctx:
            self.client.get_server('srv1')

        self.assertEqual(ctx.exception.body, '<h1>Bad Gateway</h1>')

    def test_invalid_api_token(self):
        ArvanMockHttp.type = 'UNAUTHORIZED'

        with self.assertRaises(InvalidCredsError) as ctx:
            self.client.get_server('srv1')

        self.assertTrue(isinstance(ctx.exception, RequestError))
        self.assertEqual(ctx.exception.code, httplib.UNAUTHORIZED)
        self.assertEqual(ctx.exception.message,
                         '{"message":"Unauthenticated."}\n')

    def test_rate_limited(self):
        ArvanMockHttp.type = 'RATE_LIMITED'

        with self.assertRaises(RateLimitReachedError) as ctx:
            self.client.get_server('srv1')

        self.assertEqual(ctx.exception.retry_after, 7)
        self.assertEqual(ctx.exception.message, 'slow down')

    def test_rate_limited_unparsable_retry_after(self):
        ArvanMockHttp.type = 'RATE_LIMITED_GARBAGE'

        with self.assertRaises(RateLimitReachedError) as ctx:
            self.client.get_server('srv1')

        self.assertEqual(ctx.exception.retry_after, 0)
        self.assertEqual(ctx.exception.message, 'slow down')

    def test_transport_error(self):
        ArvanMockHttp.type = 'CONNECTION_ERROR'

        with self.assertRaises(TransportError) as ctx:
            self.client.get_server('srv1')

        self.assertTrue(isinstance(ctx.exception.__cause__,
                                   requests.exceptions.ConnectionError))

    def test_upload_ssh_key(self):
        result = self.client.upload_ssh_key(
            SSHKey(name='machine-1', public_key='ssh-rsa AAAA test\n'))

        self.assertIsNone(result)
        method, url, body, headers = ArvanMockHttp.recorded[0]
        self.assertEqual(method, 'POST')
        self.assertEqual(json.loads(body),
                         {'name': 'machine-1',
                          'public_key': 'ssh-rsa AAAA test\n'})

    def test_upload_ssh_key_wrong_status(self):
        # 200 is not the documented answer for a created key
        ArvanMockHttp.type = 'OK'

        with self.assertRaises(UnexpectedStatusError) as ctx:
            self.client.upload_ssh_key(SSHKey(name='machine-1',
                                              public_key='ssh-rsa AAAA'))

        self.assertEqual(ctx.exception.code, httplib.OK)
        self.assertEqual(ctx.exception.expected_code, httplib.CREATED)

    def test_remove_ssh_key(self):
        self.client.remove_ssh_key('machine-1')

        method, url, body, headers = ArvanMockHttp.recorded[0]
        self.assertEqual(method, 'DELETE')
        self.assertEqual(url, '/ecc/v1/regions/nl-ams-su1/ssh-keys/machine-1')

    def test_create_server(self):
        server_request = ServerRequest(image='img', flavor='ar-2-1-15',
                                       ssh_key_name='machine-1',
                                       name='machine-1', network='net',
                                       security_groups=['sg'])
        server_id = self.client.create_server(server_request)

        self.assertEqual(server_id, 'srv1')
        method, url, body, headers = ArvanMockHttp.recorded[0]
        self.assertEqual(method, 'POST')
        self.assertEqual(json.loads(body), {
            'image_id': 'img',
            'flavor_id': 'ar-2-1-15',
            'key_name': 'machine-1',
            'name': 'machine-1',
            'network_id': 'net',
            'security_groups': [{'name': 'sg'}],
            'ssh_key': True,
            'count': 1
        })

    def test_create_server_returns_data_id(self):
        ArvanMockHttp.type = 'MINIMAL'
        server_request = ServerRequest(image='img', flavor='flavor',
                                       ssh_key_name='key', name='name',
                                       network='net')

        self.assertEqual(self.client.create_server(server_request), 'X')

    def test_create_server_quota_exceeded(self):
        ArvanMockHttp.type = 'QUOTA'
        server_request = ServerRequest(image='img', flavor='flavor',
                                       ssh_key_name='key', name='name',
                                       network='net')

        with self.assertRaises(UnexpectedStatusError) as ctx:
            self.client.create_server(server_request)

        self.assertEqual(ctx.exception.code, 422)
        self.assertEqual(ctx.exception.message,
                         '{"message": "quota exceeded"}')

    def test_power_actions(self):
        self.client.start_server('srv1')
        self.client.stop_server('srv1')
        self.client.restart_server('srv1')

        self.assertEqual([(r[0], r[1]) for r in ArvanMockHttp.recorded], [
            ('POST', '/ecc/v1/regions/nl-ams-su1/servers/srv1/power-on'),
            ('POST', '/ecc/v1/regions/nl-ams-su1/servers/srv1/power-off'),
            ('POST', '/ecc/v1/regions/nl-ams-su1/servers/srv1/reboot'),
        ])
        self.assertExecutedMethodCount(3)

    def test_power_action_already_running(self):
        ArvanMockHttp.type = 'CONFLICT'

        with self.assertRaises(UnexpectedStatusError) as ctx:
            self.client.start_server('srv1')

        self.assertEqual(ctx.exception.code, httplib.CONFLICT)
        self.assertEqual(ctx.exception.expected_code, httplib.ACCEPTED)
        self.assertEqual(ctx.exception.message, 'server is already active')

    def test_remove_server(self):
        self.client.remove_server('srv1')

        method, url, body, headers = ArvanMockHttp.recorded[0]
        self.assertEqual(method, 'DELETE')
        self.assertEqual(url, '/ecc/v1/regions/nl-ams-su1/servers/srv1')


    def test_actions_without_result_accept_any_body(self):
        ArvanMockHttp.type = 'PLAIN_TEXT'

        self.client.upload_ssh_key(SSHKey(name='machine-1',
                                          public_key='ssh-rsa AAAA'))
        self.client.start_server('srv1')
        self.client.stop_server('srv1')
        self.client.restart_server('srv1')
        self.client.remove_server('srv1')
        self.client.remove_ssh_key('machine-1')

        self.assertExecutedMethodCount(6)

    def test_result_is_still_decoded(self):
        ArvanMockHttp.type = 'PLAIN_TEXT'

        with self.assertRaises(DecodeError) as ctx:
            self.client.get_server('srv1')

        self.assertEqual(ctx.exception.body, 'Accepted')


class ServerRequestTests(unittest.TestCase):

    def test_read_only(self):
        server_request = ServerRequest(image='img', flavor='flavor',
                                       ssh_key_name='key', name='name',
                                       network='net')

        with self.assertRaises(AttributeError):
            server_request.name = 'other'

        self.assertEqual(server_request.name, 'name')

    def test_defaults(self):
        server_request = ServerRequest(image='img', flavor='flavor',
                                       ssh_key_name='key', name='name',
                                       network='net')
        data = server_request.to_dict()

        self.assertEqual(data['security_groups'], [])
        self.assertTrue(data['ssh_key'])
        self.assertEqual(data['count'], 1)


class ArvanMockHttp(MockHttp):
    fixtures = ArvanFileFixtures('arvancloud')
    path_prefix = '/ecc/v1/regions/nl-ams-su1'
    recorded = []

    def _record(self, method, url, body, headers):
        ArvanMockHttp.recorded.append((method, url, body, headers))

    def _servers_srv1(self, method, url, body, headers):
        self._record(method, url, body, headers)
        if method == 'DELETE':
            body = self.fixtures.load('remove_server.json')
        else:
            body = self.fixtures.load('get_server_active.json')
        return (httplib.OK, body, {}, httplib.responses[httplib.OK])

    def _servers_srv1_BUILD(self, method, url, body, headers):
        body = self.fixtures.load('get_server_build.json')
        return (httplib.OK, body, {}, httplib.responses[httplib.OK])

    def _servers_srv1_NOT_FOUND(self, method, url, body, headers):
        body = self.fixtures.load('error_not_found.json')
        return (httplib.NOT_FOUND, body, {},
                httplib.responses[httplib.NOT_FOUND])

    def _servers_srv1_MALFORMED(self, method, url, body, headers):
        return (httplib.OK, '<h1>Bad Gateway</h1>', {},
                httplib.responses[httplib.OK])

    def _servers_srv1_UNAUTHORIZED(self, method, url, body, headers):
        body = self.fixtures.load('error_unauthorized.json')
        return (httplib.UNAUTHORIZED, body, {},
                httplib.responses[httplib.UNAUTHORIZED])

    def _servers_srv1_RATE_LIMITED(self, method, url, body, headers):
        return (httplib.TOO_MANY_REQUESTS, 'slow down', {'Retry-After': '7'},
                httplib.responses[httplib.TOO_MANY_REQUESTS])

    def _servers_srv1_RATE_LIMITED_GARBAGE(self, method, url, body, headers):
        return (httplib.TOO_MANY_REQUESTS, 'slow down',
                {'Retry-After': 'soon'},
                httplib.responses[httplib.TOO_MANY_REQUESTS])

    def _servers_srv1_PLAIN_TEXT(self, method, url, body, headers):
        if method == 'DELETE':
            return (httplib.OK, 'Server deleted', {},
                    httplib.responses[httplib.OK])
        return (httplib.OK, 'Accepted', {}, httplib.responses[httplib.OK])

    def _ssh_keys_PLAIN_TEXT(self, method, url, body, headers):
        return (httplib.CREATED, 'Created', {},
                httplib.responses[httplib.CREATED])

    def _ssh_keys_machine_1_PLAIN_TEXT(self, method, url, body, headers):
        return (httplib.OK, '<html><body>Deleted</body></html>', {},
                httplib.responses[httplib.OK])

    def _servers_srv1_power_on_PLAIN_TEXT(self, method, url, body, headers):
        return (httplib.ACCEPTED, 'Accepted', {},
                httplib.responses[httplib.ACCEPTED])

    def _servers_srv1_power_off_PLAIN_TEXT(self, method, url, body, headers):
        return (httplib.ACCEPTED, 'Accepted', {},
                httplib.responses[httplib.ACCEPTED])

    def _servers_srv1_reboot_PLAIN_TEXT(self, method, url, body, headers):
        return (httplib.ACCEPTED, 'Accepted', {},
                httplib.responses[httplib.ACCEPTED])

    def _servers_srv1_CONNECTION_ERROR(self, method, url, body, headers):
        raise requests.exceptions.ConnectionError('Connection refused')

    def _ssh_keys(self, method, url, body, headers):
        self._record(method, url, body, headers)
        body = self.fixtures.load('upload_ssh_key.json')
        return (httplib.CREATED, body, {},
                httplib.responses[httplib.CREATED])

    def _ssh_keys_OK(self, method, url, body, headers):
        body = self.fixtures.load('upload_ssh_key.json')
        return (httplib.OK, body, {}, httplib.responses[httplib.OK])

    def _ssh_keys_machine_1(self, method, url, body, headers):
        self._record(method, url, body, headers)
        body = self.fixtures.load('remove_ssh_key.json')
        return (httplib.OK, body, {}, httplib.responses[httplib.OK])

    def _servers(self, method, url, body, headers):
        self._record(method, url, body, headers)
        body = self.fixtures.load('create_server.json')
        return (httplib.CREATED, body, {},
                httplib.responses[httplib.CREATED])

    def _servers_MINIMAL(self, method, url, body, headers):
        return (httplib.CREATED, '{"data":{"id":"X"}}', {},
                httplib.responses[httplib.CREATED])

    def _servers_QUOTA(self, method, url, body, headers):
        return (422, '{"message": "quota exceeded"}', {},
                'Unprocessable Entity')

    def _servers_srv1_power_on(self, method, url, body, headers):
        self._record(method, url, body, headers)
        body = self.fixtures.load('server_action.json')
        return (httplib.ACCEPTED, body, {},
                httplib.responses[httplib.ACCEPTED])

    def _servers_srv1_power_on_CONFLICT(self, method, url, body, headers):
        return (httplib.CONFLICT, 'server is already active', {},
                httplib.responses[httplib.CONFLICT])

    def _servers_srv1_power_off(self, method, url, body, headers):
        self._record(method, url, body, headers)
        body = self.fixtures.load('server_action.json')
        return (httplib.ACCEPTED, body, {},
                httplib.responses[httplib.ACCEPTED])

    def _servers_srv1_reboot(self, method, url, body, headers):
        self._record(method, url, body, headers)
        body = self.fixtures.load('server_action.json')
        return (httplib.ACCEPTED, body, {},
                httplib.responses[httplib.ACCEPTED])


if __name__ == '__main__':
    sys.exit(unittest.main())
