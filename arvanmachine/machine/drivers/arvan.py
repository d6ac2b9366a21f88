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
ArvanCloud machine driver
"""

import time
import logging

from arvanmachine.common.arvancloud import ArvanClient
from arvanmachine.common.arvancloud import ServerRequest
from arvanmachine.common.arvancloud import SSHKey
from arvanmachine.common.types import ArvanMachineError
from arvanmachine.machine.base import MachineDriver, StringFlag
from arvanmachine.machine.ssh import generate_ssh_key
from arvanmachine.machine.types import MachineState
from arvanmachine.machine.types import ConfigurationError
from arvanmachine.machine.types import MachineStateError
from arvanmachine.machine.types import WaitTimeoutError

__all__ = [
    'ArvanMachineDriver'
]

# Defaults for the nl-ams-su1 region
DEFAULT_IMAGE = '285bcbf1-738b-4bcf-a9a9-b9940587a026'  # Ubuntu 18.04
DEFAULT_REGION = 'nl-ams-su1'  # Serverius, Amsterdam-Netherlands
DEFAULT_SERVER_FLAVOR = 'ar-2-1-15'  # Smallest flavor
DEFAULT_NETWORK = 'fe9645fc-2234-4865-895b-e3bb4bb0eb7b'  # Public1
DEFAULT_SECURITY_GROUP = '771874f3-541e-4693-97ad-d585e78999ef'
DEFAULT_SSH_USER = 'ubuntu'

# Seconds between two state lookups while waiting for a new server
DEFAULT_POLL_INTERVAL = 1
# Seconds to wait for a new server to become active
DEFAULT_WAIT_TIMEOUT = 600

logger = logging.getLogger(__name__)


class ArvanMachineDriver(MachineDriver):
    """
    Machine driver for ArvanCloud ECC servers.

    One instance manages exactly one server and the SSH key uploaded for it.

    :keyword    poll_interval: Seconds between state lookups while waiting
                               for a created server to become active.
    :type       poll_interval: ``float``

    :keyword    wait_timeout: Seconds to wait for a created server to become
                              active.
    :type       wait_timeout: ``float``
    """

    name = 'ArvanCloud'
    website = 'https://www.arvancloud.com'
    clientCls = ArvanClient

    STATUS_STATE_MAP = {'build': MachineState.STARTING,
                        'active': MachineState.RUNNING,
                        'stop': MachineState.STOPPED}

    def __init__(self, machine_name='', store_path='', config=None,
                 poll_interval=DEFAULT_POLL_INTERVAL,
                 wait_timeout=DEFAULT_WAIT_TIMEOUT):
        super(ArvanMachineDriver, self).__init__(machine_name=machine_name,
                                                 store_path=store_path,
                                                 config=config)
        if config is None:
            self.config.ssh_user = DEFAULT_SSH_USER

        self.api_token = ''
        self.image = DEFAULT_IMAGE
        self.region = DEFAULT_REGION
        self.server_flavor = DEFAULT_SERVER_FLAVOR
        self.network = DEFAULT_NETWORK
        self.security_group = DEFAULT_SECURITY_GROUP
        self.server_id = ''
        self.ssh_key_id = ''

        self.poll_interval = poll_interval
        self.wait_timeout = wait_timeout

    def driver_name(self):
        return 'arvan'

    def get_create_flags(self):
        return [
            StringFlag(env_var='ARVAN_API_TOKEN',
                       name='arvan-api-token',
                       usage='Api token'),
            StringFlag(env_var='ARVAN_IMAGE',
                       name='arvan-image',
                       usage='Image',
                       value=DEFAULT_IMAGE),
            StringFlag(env_var='ARVAN_REGION',
                       name='arvan-region',
                       usage='Region',
                       value=DEFAULT_REGION),
            StringFlag(env_var='ARVAN_SERVER_FLAVOR',
                       name='arvan-server-flavor',
                       usage='Server flavor',
                       value=DEFAULT_SERVER_FLAVOR),
            StringFlag(env_var='ARVAN_NETWORK',
                       name='arvan-network',
                       usage='Network',
                       value=DEFAULT_NETWORK),
            StringFlag(env_var='ARVAN_SECURITY_GROUP',
                       name='arvan-security-group',
                       usage='Security group',
                       value=DEFAULT_SECURITY_GROUP),
            StringFlag(env_var='ARVAN_SSH_USER',
                       name='arvan-ssh-user',
                       usage='SSH username',
                       value=DEFAULT_SSH_USER),
        ]

    def set_config_from_flags(self, flags):
        self.api_token = flags.string('arvan-api-token')
        self.image = flags.string('arvan-image')
        self.region = flags.string('arvan-region')
        self.server_flavor = flags.string('arvan-server-flavor')
        self.network = flags.string('arvan-network')
        self.security_group = flags.string('arvan-security-group')
        self.config.ssh_user = flags.string('arvan-ssh-user')

        self._check_api_token()

    def pre_create_check(self):
        self._check_api_token()

    def create(self):
        """
        Provision the machine.

        Generates the key pair, uploads its public half, creates the server,
        waits for it to become active and adopts its address. A failure at any
        step is raised as is, resources created by earlier steps are kept.
        """
        self.pre_create_check()

        self._create_ssh_key()
        self._create_server()

    def start(self):
        self._get_client().start_server(self.server_id)

    def stop(self):
        self._get_client().stop_server(self.server_id)

    def restart(self):
        self._get_client().restart_server(self.server_id)

    def kill(self):
        # There is no forced power off, kill behaves like stop
        self._get_client().stop_server(self.server_id)

    def remove(self):
        """
        Delete the server, then the SSH key.

        The key is left alone when deleting the server fails.
        """
        client = self._get_client()

        logger.info('Removing server %s', self.server_id)
        client.remove_server(self.server_id)

        logger.info('Removing SSH key %s', self.ssh_key_id)
        client.remove_ssh_key(self.ssh_key_id)

    def get_state(self):
        """
        Look up the current state of the server.

        :rtype: :class:`MachineState`

        :raises MachineStateError: the server couldn't be fetched. The error
                                   carries ``MachineState.ERROR`` and the
                                   original exception as ``cause``.
        """
        try:
            server = self._get_server()
        except ArvanMachineError as e:
            raise MachineStateError('Unable to get the state of server %s: '
                                    '%s' % (self.server_id, e),
                                    state=MachineState.ERROR, cause=e,
                                    driver=self) from e

        return self._to_state(server.status)

    def get_ssh_username(self):
        if not self.config.ssh_user:
            self.config.ssh_user = DEFAULT_SSH_USER

        return self.config.ssh_user

    def wait_until_running(self, poll_interval=None, timeout=None):
        """
        Block until the server reports the running state.

        :param poll_interval: Seconds between two lookups, defaults to
                              ``self.poll_interval``.
        :type poll_interval: ``float``

        :param timeout: Seconds to wait before giving up, defaults to
                        ``self.wait_timeout``.
        :type timeout: ``float``

        :return: Number of state lookups made.
        :rtype: ``int``

        :raises WaitTimeoutError: the server isn't running after ``timeout``
                                  seconds.
        """
        if poll_interval is None:
            poll_interval = self.poll_interval
        if timeout is None:
            timeout = self.wait_timeout

        end = time.time() + timeout
        polls = 0

        while True:
            state = self.get_state()
            polls += 1

            if state == MachineState.RUNNING:
                return polls

            if time.time() >= end:
                raise WaitTimeoutError('Server %s did not become running in '
                                       '%s seconds (last state: %s)' %
                                       (self.server_id, timeout, state),
                                       timeout=timeout, last_state=state,
                                       driver=self)

            logger.debug('Server %s is %s, waiting %s seconds',
                         self.server_id, state, poll_interval)
            time.sleep(poll_interval)

    def to_dict(self):
        data = super(ArvanMachineDriver, self).to_dict()
        data.update({
            'APIToken': self.api_token,
            'Image': self.image,
            'Region': self.region,
            'ServerID': self.server_id,
            'ServerFlavor': self.server_flavor,
            'Network': self.network,
            'SecurityGroup': self.security_group,
            'SSHKeyID': self.ssh_key_id,
        })
        return data

    def load_dict(self, data):
        super(ArvanMachineDriver, self).load_dict(data)
        self.api_token = data.get('APIToken', '')
        self.image = data.get('Image', DEFAULT_IMAGE)
        self.region = data.get('Region', DEFAULT_REGION)
        self.server_id = data.get('ServerID', '')
        self.server_flavor = data.get('ServerFlavor', DEFAULT_SERVER_FLAVOR)
        self.network = data.get('Network', DEFAULT_NETWORK)
        self.security_group = data.get('SecurityGroup',
                                       DEFAULT_SECURITY_GROUP)
        self.ssh_key_id = data.get('SSHKeyID', '')

    def _check_api_token(self):
        if not self.api_token:
            raise ConfigurationError('arvan driver requires the '
                                     '--arvan-api-token option', driver=self)

    def _get_client(self):
        return self.clientCls(self.api_token, region=self.region)

    def _get_server(self):
        return self._get_client().get_server(self.server_id)

    def _create_ssh_key(self):
        key_path = self.get_ssh_key_path()

        logger.info('Creating SSH key')
        generate_ssh_key(key_path)

        with open(key_path + '.pub') as fp:
            public_key = fp.read()

        ssh_key = SSHKey(name=self.get_machine_name(), public_key=public_key)
        self._get_client().upload_ssh_key(ssh_key)

        self.ssh_key_id = ssh_key.name

    def _create_server(self):
        server_request = ServerRequest(image=self.image,
                                       flavor=self.server_flavor,
                                       ssh_key_name=self.ssh_key_id,
                                       name=self.get_machine_name(),
                                       network=self.network,
                                       security_groups=[self.security_group],
                                       ssh_key=True,
                                       count=1)

        logger.info('Creating server %s', server_request.name)
        self.server_id = self._get_client().create_server(server_request)

        logger.info('Waiting for server %s to become active', self.server_id)
        self.wait_until_running()

        server = self._get_server()
        self.ip_address = server.ip_address
        logger.info('Server %s is running at %s', self.server_id,
                    self.ip_address)

    def _to_state(self, status):
        if not status:
            return MachineState.NONE

        if not isinstance(status, str):
            return MachineState.UNKNOWN

        return self.STATUS_STATE_MAP.get(status, MachineState.UNKNOWN)
