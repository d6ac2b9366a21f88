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
Common settings, models and the API client for the ArvanCloud ECC
(elastic cloud compute) service.
"""

import json
from http import client as httplib

from arvanmachine.common.base import BaseDriver
from arvanmachine.common.base import ConnectionKey
from arvanmachine.common.base import JsonResponse
from arvanmachine.utils.misc import get_by_path

__all__ = [
    'API_HOST',
    'API_VERSION',

    'SSHKey',
    'Server',
    'ServerRequest',

    'ArvanResponse',
    'ArvanConnection',
    'ArvanClient'
]

API_HOST = 'napi.arvancloud.com'
API_VERSION = 'v1'

GET_SERVER_PATH = '/servers/%s'
UPLOAD_SSH_KEY_PATH = '/ssh-keys'
REMOVE_SSH_KEY_PATH = '/ssh-keys/%s'
CREATE_SERVER_PATH = '/servers'
START_SERVER_PATH = '/servers/%s/power-on'
STOP_SERVER_PATH = '/servers/%s/power-off'
RESTART_SERVER_PATH = '/servers/%s/reboot'
REMOVE_SERVER_PATH = '/servers/%s'


class SSHKey(object):
    """
    A public key registered with the provider. ``name`` doubles as the key
    identifier.
    """

    def __init__(self, name, public_key):
        self.name = name
        self.public_key = public_key

    def to_dict(self):
        return {'name': self.name, 'public_key': self.public_key}

    def __repr__(self):
        return ('<SSHKey: name=%s>' % (self.name))


class ServerRequest(object):
    """
    Parameters of a server creation request.

    Instances are read-only once built.
    """

    __slots__ = ('image', 'flavor', 'ssh_key_name', 'name', 'network',
                 'security_groups', 'ssh_key', 'count')

    def __init__(self,
                 image,  # type: str
                 flavor,  # type: str
                 ssh_key_name,  # type: str
                 name,  # type: str
                 network,  # type: str
                 security_groups=None,  # type: list
                 ssh_key=True,  # type: bool
                 count=1  # type: int
                 ):
        # type: (...) -> None
        """
        :param image: Image id.
        :type image: ``str``

        :param flavor: Flavor (server size) id.
        :type flavor: ``str``

        :param ssh_key_name: Name of a previously uploaded SSH key.
        :type ssh_key_name: ``str``

        :param name: Display name of the server.
        :type name: ``str``

        :param network: Network id.
        :type network: ``str``

        :param security_groups: Names of the security groups to attach.
        :type security_groups: ``list`` of ``str``

        :param ssh_key: Whether the SSH key should be installed.
        :type ssh_key: ``bool``

        :param count: Number of servers to create.
        :type count: ``int``
        """
        values = {
            'image': image,
            'flavor': flavor,
            'ssh_key_name': ssh_key_name,
            'name': name,
            'network': network,
            'security_groups': tuple(security_groups or ()),
            'ssh_key': ssh_key,
            'count': count,
        }

        for key, value in values.items():
            object.__setattr__(self, key, value)

    def __setattr__(self, name, value):
        raise AttributeError('ServerRequest is read-only')

    def to_dict(self):
        return {
            'image_id': self.image,
            'flavor_id': self.flavor,
            'key_name': self.ssh_key_name,
            'name': self.name,
            'network_id': self.network,
            'security_groups': [{'name': group}
                                for group in self.security_groups],
            'ssh_key': self.ssh_key,
            'count': self.count,
        }

    def __repr__(self):
        return (('<ServerRequest: name=%s, image=%s, flavor=%s, '
                 'network=%s>') %
                (self.name, self.image, self.flavor, self.network))


class Server(object):
    """
    Remote state of a server, as last seen by :meth:`ArvanClient.get_server`.
    """

    def __init__(self, id, ip_address, name, status, extra=None):
        self.id = id
        self.ip_address = ip_address
        self.name = name
        self.status = status
        self.extra = extra or {}

    def __repr__(self):
        return (('<Server: id=%s, name=%s, status=%s, ip_address=%s>') %
                (self.id, self.name, self.status, self.ip_address))


class ArvanResponse(JsonResponse):
    """
    Response class for the ArvanCloud API.

    Error responses are reported with the raw body untouched. Bodies of
    successful responses are only decoded for calls which return a result.
    """
    pass


class ArvanConnection(ConnectionKey):
    """
    Connection class for the ArvanCloud ECC API.

    Every request path is rooted at ``/ecc/<api version>/regions/<region>``.
    """

    host = API_HOST
    responseCls = ArvanResponse

    def __init__(self, key, secure=True, host=None, port=None, url=None,
                 region=None, api_version=API_VERSION, **kwargs):
        super(ArvanConnection, self).__init__(key, secure=secure, host=host,
                                              port=port, url=url, **kwargs)
        self.region = region
        self.api_version = api_version
        self.request_path = '/ecc/%s/regions/%s' % (api_version, region)

    def add_default_headers(self, headers):
        """
        Add headers that are necessary for every request

        This method adds the API ``key`` to the request.
        """
        headers['Authorization'] = 'Apikey %s' % (self.key)
        headers['Content-Type'] = 'application/json'
        return headers


class ArvanClient(BaseDriver):
    """
    Client for the region scoped ArvanCloud compute API.

    The client keeps no state besides its credentials, so a single instance
    can be shared or a new one built for every call.

    :keyword    key: API token used for authentication.
    :type       key: ``str``

    :keyword    region: Region code, e.g. ``nl-ams-su1``.
    :type       region: ``str``
    """

    name = 'ArvanCloud'
    website = 'https://www.arvancloud.com'
    connectionCls = ArvanConnection

    def __init__(self, key, region, secure=True, host=None, port=None,
                 api_version=API_VERSION, **kwargs):
        super(ArvanClient, self).__init__(key, secure=secure, host=host,
                                          port=port, api_version=api_version,
                                          region=region, **kwargs)

    def _ex_connection_class_kwargs(self):
        return {'region': self.region, 'api_version': self.api_version}

    def get_server(self, server_id):
        """
        Return information about a server.

        :param server_id: Server id.
        :type server_id: ``str``

        :rtype: :class:`Server`
        """
        response = self.connection.request(GET_SERVER_PATH % (server_id),
                                           expected_status=httplib.OK)
        return self._to_server(response.object)

    def upload_ssh_key(self, ssh_key):
        """
        Register a public key with the provider.

        :param ssh_key: Key to upload.
        :type ssh_key: :class:`SSHKey`
        """
        self.connection.request(UPLOAD_SSH_KEY_PATH,
                                data=json.dumps(ssh_key.to_dict()),
                                method='POST',
                                expected_status=httplib.CREATED,
                                parse_body=False)

    def remove_ssh_key(self, key_id):
        """
        Remove a public key from the provider.

        :param key_id: Key identifier (the name it was uploaded with).
        :type key_id: ``str``
        """
        self.connection.request(REMOVE_SSH_KEY_PATH % (key_id),
                                method='DELETE',
                                expected_status=httplib.OK,
                                parse_body=False)

    def create_server(self, server_request):
        """
        Create a server and return its id.

        :param server_request: Creation parameters.
        :type server_request: :class:`ServerRequest`

        :rtype: ``str``
        """
        response = self.connection.request(
            CREATE_SERVER_PATH,
            data=json.dumps(server_request.to_dict()),
            method='POST',
            expected_status=httplib.CREATED)
        return get_by_path(response.object, 'data.id')

    def start_server(self, server_id):
        self._power_action(START_SERVER_PATH, server_id)

    def stop_server(self, server_id):
        self._power_action(STOP_SERVER_PATH, server_id)

    def restart_server(self, server_id):
        self._power_action(RESTART_SERVER_PATH, server_id)

    def remove_server(self, server_id):
        self.connection.request(REMOVE_SERVER_PATH % (server_id),
                                method='DELETE',
                                expected_status=httplib.OK,
                                parse_body=False)

    def _power_action(self, path, server_id):
        # The provider only acknowledges the action, the state change
        # happens later
        self.connection.request(path % (server_id), method='POST',
                                expected_status=httplib.ACCEPTED,
                                parse_body=False)

    def _to_server(self, data):
        return Server(id=get_by_path(data, 'data.id'),
                      ip_address=get_by_path(
                          data, 'data.addresses.public1.0.addr'),
                      name=get_by_path(data, 'data.name'),
                      status=get_by_path(data, 'data.status'),
                      extra={'addresses': get_by_path(
                          data, 'data.addresses', default={})})
