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

import os
import re

from setuptools import setup
from setuptools import find_packages

# NOTE: The version is read from the source instead of importing the package
# so setup.py doesn't depend on requests or cryptography being installed

INSTALL_REQUIREMENTS = [
    'requests>=2.5.0',
    'cryptography>=3.1',
]

TEST_REQUIREMENTS = [
    'requests_mock',
    'pytest',
] + INSTALL_REQUIREMENTS


def read_version_string():
    version = None
    cwd = os.path.dirname(os.path.abspath(__file__))
    version_file = os.path.join(cwd, 'arvanmachine/__init__.py')

    with open(version_file) as fp:
        content = fp.read()

    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                      content, re.M)

    if match:
        version = match.group(1)
        return version

    raise Exception('Cannot find version in arvanmachine/__init__.py')


setup(
    name='docker-machine-driver-arvan',
    version=read_version_string(),
    description='docker-machine driver which provisions ArvanCloud ECC' +
                ' servers',
    long_description=open('README.rst').read(),
    author='arvanmachine developers',
    install_requires=INSTALL_REQUIREMENTS,
    extras_require={
        'test': TEST_REQUIREMENTS,
    },
    python_requires='>=3.6, <4',
    packages=find_packages(include=['arvanmachine', 'arvanmachine.*']),
    package_dir={
        'arvanmachine': 'arvanmachine',
    },
    package_data={
        'arvanmachine': ['test/fixtures/arvancloud/*.json'],
    },
    entry_points={
        'console_scripts': [
            'docker-machine-driver-arvan = arvanmachine.machine.plugin:main',
        ],
    },
    license='Apache License (2.0)',
    zip_safe=False,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Topic :: System :: Systems Administration',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.6',
        'Programming Language :: Python :: 3.7',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: Implementation :: CPython',
        'Programming Language :: Python :: Implementation :: PyPy'
    ]
)
