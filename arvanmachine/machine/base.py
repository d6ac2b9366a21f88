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
Provides the lifecycle contract every machine driver implements and the
configuration pieces the host hands to a driver.
"""

import os

from arvanmachine.common.types import ArvanMachineError

__all__ = [
    'DEFAULT_SSH_PORT',
    'DEFAULT_SSH_USER',
    'DOCKER_PORT',

    'StringFlag',
    'DriverOptions',
    'MachineConfig',
    'MachineDriver'
]

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_USER = 'root'
DOCKER_PORT = 2376


class StringFlag(object):
    """
    Describes a string option accepted by a driver's create command.
    """

    def __init__(self, name, usage='', env_var=None, value=''):
        # type: (str, str, str, str) -> None
        """
        :param name: Flag name without the leading dashes.
        :type name: ``str``

        :param usage: One line help text.
        :type usage: ``str``

        :param env_var: Environment variable the value can be read from.
        :type env_var: ``str``

        :param value: Default value.
        :type value: ``str``
        """
        self.name = name
        self.usage = usage
        self.env_var = env_var
        self.value = value

    def default(self, environ=None):
        """
        Return the value used when the flag isn't given explicitly: the
        environment variable if it is set, the flag default otherwise.
        """
        environ = os.environ if environ is None else environ

        if self.env_var and environ.get(self.env_var):
            return environ[self.env_var]

        return self.value

    def __repr__(self):
        return ('<StringFlag: name=%s, env_var=%s, default=%r>' %
                (self.name, self.env_var, self.value))


class DriverOptions(object):
    """
    Resolved flag values handed to :meth:`MachineDriver.set_config_from_flags`.
    """

    def __init__(self, values=None):
        # type: (dict) -> None
        self.values = dict(values or {})

    @classmethod
    def from_flags(cls, flags, values=None, environ=None):
        """
        Resolve every flag: an explicit (non ``None``) value wins over the
        flag's environment variable which wins over its default.

        :param flags: Flags to resolve.
        :type flags: ``list`` of :class:`StringFlag`

        :param values: Explicitly given values keyed by flag name.
        :type values: ``dict``

        :rtype: :class:`DriverOptions`
        """
        values = values or {}
        resolved = {}

        for flag in flags:
            value = values.get(flag.name)
            if value is None:
                value = flag.default(environ=environ)
            resolved[flag.name] = value

        return cls(resolved)

    def string(self, name):
        value = self.values.get(name)
        return '' if value is None else str(value)

    def int(self, name):
        value = self.values.get(name)
        return 0 if value in (None, '') else int(value)

    def bool(self, name):
        value = self.values.get(name)
        if isinstance(value, bool):
            return value
        return str(value).lower() in ['1', 'true', 'yes', 'on']


class MachineConfig(object):
    """
    Host side settings of a machine, shared by every driver.

    Drivers hold one of these instead of inheriting the fields.
    """

    def __init__(self, machine_name, store_path, ip_address='',
                 ssh_user=DEFAULT_SSH_USER, ssh_port=DEFAULT_SSH_PORT,
                 ssh_key_path=''):
        self.machine_name = machine_name
        self.store_path = store_path
        self.ip_address = ip_address
        self.ssh_user = ssh_user
        self.ssh_port = ssh_port
        self.ssh_key_path = ssh_key_path

    def resolve_store_path(self, filename):
        return os.path.join(self.store_path, 'machines', self.machine_name,
                            filename)

    def get_ssh_key_path(self):
        if not self.ssh_key_path:
            self.ssh_key_path = self.resolve_store_path('id_rsa')
        return self.ssh_key_path

    def to_dict(self):
        return {
            'MachineName': self.machine_name,
            'StorePath': self.store_path,
            'IPAddress': self.ip_address,
            'SSHUser': self.ssh_user,
            'SSHPort': self.ssh_port,
            'SSHKeyPath': self.ssh_key_path,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(machine_name=data.get('MachineName', ''),
                   store_path=data.get('StorePath', ''),
                   ip_address=data.get('IPAddress', ''),
                   ssh_user=data.get('SSHUser', DEFAULT_SSH_USER),
                   ssh_port=data.get('SSHPort', DEFAULT_SSH_PORT),
                   ssh_key_path=data.get('SSHKeyPath', ''))

    def __repr__(self):
        return ('<MachineConfig: machine_name=%s, ip_address=%s>' %
                (self.machine_name, self.ip_address))


class MachineDriver(object):
    """
    A base MachineDriver class to derive from

    The host calls these methods to manage exactly one machine. This class
    is always subclassed by a specific driver.
    """

    name = None  # type: str
    website = None  # type: str

    def __init__(self, machine_name='', store_path='', config=None):
        # type: (str, str, MachineConfig) -> None
        if config is None:
            config = MachineConfig(machine_name=machine_name,
                                   store_path=store_path)
        self.config = config

    @property
    def ip_address(self):
        return self.config.ip_address

    @ip_address.setter
    def ip_address(self, value):
        self.config.ip_address = value

    def driver_name(self):
        """
        :return: Short name the driver is registered under.
        :rtype: ``str``
        """
        raise NotImplementedError(
            'driver_name not implemented for this driver')

    def get_create_flags(self):
        """
        :return: Options accepted by the create command.
        :rtype: ``list`` of :class:`StringFlag`
        """
        raise NotImplementedError(
            'get_create_flags not implemented for this driver')

    def set_config_from_flags(self, flags):
        """
        Configure the driver from resolved flag values.

        :param flags: Flag values.
        :type flags: :class:`DriverOptions`
        """
        raise NotImplementedError(
            'set_config_from_flags not implemented for this driver')

    def pre_create_check(self):
        """
        Validate the configuration before :meth:`create` is called.
        """
        pass

    def create(self):
        raise NotImplementedError(
            'create not implemented for this driver')

    def start(self):
        raise NotImplementedError(
            'start not implemented for this driver')

    def stop(self):
        raise NotImplementedError(
            'stop not implemented for this driver')

    def restart(self):
        raise NotImplementedError(
            'restart not implemented for this driver')

    def kill(self):
        raise NotImplementedError(
            'kill not implemented for this driver')

    def remove(self):
        raise NotImplementedError(
            'remove not implemented for this driver')

    def get_state(self):
        """
        :rtype: :class:`arvanmachine.machine.types.MachineState`
        """
        raise NotImplementedError(
            'get_state not implemented for this driver')

    def get_machine_name(self):
        return self.config.machine_name

    def get_ip(self):
        """
        :return: Address of the machine.
        :rtype: ``str``

        :raises ArvanMachineError: the machine has no address yet.
        """
        if not self.config.ip_address:
            raise ArvanMachineError('IP address is not set', driver=self)
        return self.config.ip_address

    def get_ssh_hostname(self):
        return self.get_ip()

    def get_ssh_port(self):
        if not self.config.ssh_port:
            self.config.ssh_port = DEFAULT_SSH_PORT
        return self.config.ssh_port

    def get_ssh_username(self):
        if not self.config.ssh_user:
            self.config.ssh_user = DEFAULT_SSH_USER
        return self.config.ssh_user

    def get_ssh_key_path(self):
        return self.config.get_ssh_key_path()

    def get_url(self):
        """
        :return: Docker daemon URL, ``tcp://<ip>:2376``.
        :rtype: ``str``
        """
        ip = self.get_ip()
        return 'tcp://%s' % (join_host_port(ip, DOCKER_PORT))

    def to_dict(self):
        """
        Serialize the driver so the host can store it between calls.
        """
        return self.config.to_dict()

    def load_dict(self, data):
        """
        Restore state previously returned by :meth:`to_dict`.
        """
        self.config = MachineConfig.from_dict(data)

    def __repr__(self):
        return ('<%s: machine_name=%s>' %
                (self.__class__.__name__, self.config.machine_name))


def join_host_port(host, port):
    """
    Combine host and port, enclosing IPv6 literals in brackets.
    """
    if ':' in host:
        return '[%s]:%s' % (host, port)
    return '%s:%s' % (host, port)
