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
SSH key pair generation for newly provisioned machines.
"""

import os
import logging

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from arvanmachine.utils.publickey import get_pubkey_openssh_fingerprint

__all__ = [
    'KeyPair',
    'generate_ssh_key',
    'DEFAULT_KEY_SIZE'
]

DEFAULT_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537

# Both halves are only readable by the owner, ssh refuses private keys
# with wider permissions
KEY_FILE_MODE = 0o600

logger = logging.getLogger(__name__)


class KeyPair(object):
    """
    RSA key pair with the private half in PEM and the public half in
    OpenSSH ``authorized_keys`` format.
    """

    def __init__(self, private_key, public_key):
        # type: (bytes, str) -> None
        self.private_key = private_key
        self.public_key = public_key

    @classmethod
    def generate(cls, key_size=DEFAULT_KEY_SIZE):
        # type: (int) -> KeyPair
        key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT,
                                       key_size=key_size)
        private_key = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption())
        public_key = key.public_key().public_bytes(
            encoding=serialization.Encoding.OpenSSH,
            format=serialization.PublicFormat.OpenSSH)

        return cls(private_key=private_key,
                   public_key=public_key.decode('utf-8') + '\n')

    @property
    def fingerprint(self):
        return get_pubkey_openssh_fingerprint(self.public_key.strip())

    def write_to_file(self, private_key_path, public_key_path):
        for path, data in ((private_key_path, self.private_key),
                           (public_key_path, self.public_key.encode('utf-8'))):
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
                         KEY_FILE_MODE)
            with os.fdopen(fd, 'wb') as fp:
                fp.write(data)

    def __repr__(self):
        return '<KeyPair fingerprint=%s>' % (self.fingerprint)


def generate_ssh_key(path, key_size=DEFAULT_KEY_SIZE):
    """
    Write a new key pair to ``path`` and ``path + '.pub'``.

    Nothing is generated when ``path`` already exists, the existing key is
    reused.

    :param path: Location of the private key.
    :type path: ``str``

    :param key_size: RSA key size in bits.
    :type key_size: ``int``

    :return: ``True`` when a new key pair was written.
    :rtype: ``bool``
    """
    if os.path.exists(path):
        logger.debug('Reusing existing SSH key %s', path)
        return False

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    key_pair = KeyPair.generate(key_size=key_size)
    key_pair.write_to_file(path, path + '.pub')

    logger.debug('Generated SSH key %s (%s)', path, key_pair.fingerprint)
    return True
