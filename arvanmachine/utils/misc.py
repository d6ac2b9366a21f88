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

__all__ = [
    'lowercase_keys',
    'get_by_path'
]


def lowercase_keys(dictionary):
    return dict(((k.lower(), v) for k, v in dictionary.items()))


def get_by_path(obj, path, default=''):
    """
    Return the value found under a dotted ``path`` in a decoded JSON
    document, e.g. ``data.addresses.public1.0.addr``.

    Numeric path components index into lists. Missing keys, out of range
    indexes and ``null`` values all yield ``default``. Scalars are returned
    as strings, containers are returned as is.

    :param obj: Decoded JSON document.
    :type obj: ``dict`` or ``list``

    :param path: Dot separated path.
    :type path: ``str``

    :rtype: ``str``
    """
    value = obj

    for component in path.split('.'):
        if isinstance(value, dict):
            if component not in value:
                return default
            value = value[component]
        elif isinstance(value, list):
            if not component.isdigit() or int(component) >= len(value):
                return default
            value = value[int(component)]
        else:
            return default

    if value is None:
        return default

    if isinstance(value, bool):
        return 'true' if value else 'false'

    if isinstance(value, (int, float)):
        return str(value)

    return value
