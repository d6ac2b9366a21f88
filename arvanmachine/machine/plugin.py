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
Command line entry point which runs a single lifecycle command of a machine
driver.

Driver state is kept between invocations in
``<storage path>/machines/<machine name>/config.json``.
"""

import os
import sys
import json
import shutil
import logging
import argparse

import arvanmachine

from arvanmachine.common.types import ArvanMachineError
from arvanmachine.machine.base import DriverOptions

__all__ = [
    'BuildInfo',
    'MachineStore',
    'register_driver',
    'main'
]

DEFAULT_STORAGE_PATH = os.path.join('~', '.docker', 'machine')
CONFIG_FILENAME = 'config.json'

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

logger = logging.getLogger(__name__)


class BuildInfo(object):
    """
    Build metadata reported by the ``version`` command.
    """

    def __init__(self, version, commit=None):
        self.version = version
        self.commit = commit

    def __str__(self):
        if self.commit:
            return '%s (%s)' % (self.version, self.commit)
        return self.version


class MachineStore(object):
    """
    Loads and saves driver state below a storage path.
    """

    def __init__(self, storage_path):
        self.storage_path = os.path.expanduser(storage_path)

    def machine_dir(self, machine_name):
        return os.path.join(self.storage_path, 'machines', machine_name)

    def config_path(self, machine_name):
        return os.path.join(self.machine_dir(machine_name), CONFIG_FILENAME)

    def exists(self, machine_name):
        return os.path.isfile(self.config_path(machine_name))

    def save(self, driver):
        machine_name = driver.get_machine_name()
        os.makedirs(self.machine_dir(machine_name), exist_ok=True)

        path = self.config_path(machine_name)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as fp:
            json.dump({'DriverName': driver.driver_name(),
                       'Driver': driver.to_dict()}, fp, indent=4,
                      sort_keys=True)

    def load(self, driver, machine_name):
        if not self.exists(machine_name):
            raise ArvanMachineError('Host does not exist: "%s"' %
                                    (machine_name))

        with open(self.config_path(machine_name)) as fp:
            data = json.load(fp)

        driver.load_dict(data['Driver'])
        return driver

    def remove(self, machine_name):
        shutil.rmtree(self.machine_dir(machine_name))


def build_parser(driver, build_info):
    parser = argparse.ArgumentParser(
        prog='docker-machine-driver-%s' % (driver.driver_name()),
        description='Manage %s machines' % (driver.name))
    parser.add_argument('--version', action='version',
                        version='%(prog)s ' + str(build_info))
    parser.add_argument('--debug', dest='debug', action='store_true',
                        default=False, help='Enable debug logging')
    parser.add_argument('--storage-path', dest='storage_path',
                        action='store',
                        default=os.environ.get('MACHINE_STORAGE_PATH',
                                               DEFAULT_STORAGE_PATH),
                        help='Directory machine state is stored in')

    subparsers = parser.add_subparsers(dest='command', metavar='command')
    subparsers.required = True

    create = subparsers.add_parser('create', help='Create a machine')
    create.add_argument('machine_name', help='Name of the machine')
    for flag in driver.get_create_flags():
        if flag.value:
            help = '%s (env: %s, default: %s)' % (flag.usage, flag.env_var,
                                                  flag.value)
        else:
            help = '%s (env: %s)' % (flag.usage, flag.env_var)
        create.add_argument('--%s' % (flag.name), dest=flag.name,
                            action='store', default=None, help=help)

    for command, help in (('start', 'Start a machine'),
                          ('stop', 'Stop a machine'),
                          ('restart', 'Restart a machine'),
                          ('kill', 'Kill a machine'),
                          ('rm', 'Remove a machine'),
                          ('status', 'Print the state of a machine'),
                          ('ip', 'Print the IP address of a machine'),
                          ('url', 'Print the docker URL of a machine')):
        subparser = subparsers.add_parser(command, help=help)
        subparser.add_argument('machine_name', help='Name of the machine')

    subparsers.add_parser('flags', help='List the create flags')
    subparsers.add_parser('version', help='Print the driver version')

    return parser


def run_command(driver_cls, store, args, build_info, out):
    if args.command == 'version':
        out.write('%s\n' % (build_info))
        return

    if args.command == 'flags':
        for flag in driver_cls().get_create_flags():
            out.write('--%s\t%s\t%s\n' % (flag.name, flag.env_var,
                                          flag.value))
        return

    driver = driver_cls(machine_name=args.machine_name,
                        store_path=store.storage_path)

    if args.command == 'create':
        if store.exists(args.machine_name):
            raise ArvanMachineError('Host already exists: "%s"' %
                                    (args.machine_name))

        flags = driver.get_create_flags()
        values = dict((flag.name, getattr(args, flag.name))
                      for flag in flags)
        driver.set_config_from_flags(DriverOptions.from_flags(flags, values))

        try:
            driver.create()
        finally:
            # Keep whatever was provisioned so it can be removed later
            store.save(driver)

        out.write('%s\n' % (driver.get_ip()))
        return

    store.load(driver, args.machine_name)

    if args.command == 'status':
        out.write('%s\n' % (driver.get_state()))
    elif args.command == 'ip':
        out.write('%s\n' % (driver.get_ip()))
    elif args.command == 'url':
        out.write('%s\n' % (driver.get_url()))
    elif args.command == 'rm':
        driver.remove()
        store.remove(args.machine_name)
    else:
        getattr(driver, args.command)()
        store.save(driver)


def register_driver(driver_cls, build_info, argv=None, out=None):
    """
    Parse ``argv`` and run the requested command against a ``driver_cls``
    instance.

    :param driver_cls: Driver class, instantiated with ``machine_name`` and
                       ``store_path`` keyword arguments.
    :type driver_cls: ``type``

    :param build_info: Build metadata of the plugin.
    :type build_info: :class:`BuildInfo`

    :return: Process exit code.
    :rtype: ``int``
    """
    out = out or sys.stdout
    parser = build_parser(driver_cls(), build_info)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format=LOG_FORMAT)

    store = MachineStore(args.storage_path)

    try:
        run_command(driver_cls, store, args, build_info, out)
    except ArvanMachineError as e:
        logger.error('%s failed: %s', args.command, e)
        return 1

    return 0


def main(argv=None):
    from arvanmachine.machine.drivers.arvan import ArvanMachineDriver

    build_info = BuildInfo(version=arvanmachine.__version__)
    return register_driver(ArvanMachineDriver, build_info, argv=argv)


if __name__ == '__main__':
    sys.exit(main())
