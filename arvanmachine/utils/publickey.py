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

import base64
import hashlib

from cryptography.hazmat.primitives import serialization

__all__ = [
    'get_pubkey_openssh_fingerprint'
]


def _to_md5_fingerprint(data):
    hashed = hashlib.md5(data).hexdigest()
    return ":".join(hashed[i:i + 2] for i in range(0, len(hashed), 2))


def get_pubkey_openssh_fingerprint(pubkey):
    """
    Return the MD5 fingerprint of an OpenSSH public key, in the
    ``aa:bb:...`` format ``ssh-keygen -l -E md5`` prints.

    :param pubkey: Public key in OpenSSH (``authorized_keys``) format.
    :type pubkey: ``str``

    :rtype: ``str``
    """
    # We import and export the key to make sure it is in OpenSSH format
    public_key = serialization.load_ssh_public_key(pubkey.encode('utf-8'))
    pub_openssh = public_key.public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )
    key_blob = pub_openssh.split(b' ')[1]
    return _to_md5_fingerprint(base64.b64decode(key_blob))
