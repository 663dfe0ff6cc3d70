# This file is part of cloud-agent. See LICENSE file for license information.

# Distutils magic for cloud-agent

import os
import sys
from glob import glob

import setuptools

# Python-path here is a little unpredictable as setup.py could be run
# from a directory other than the root of the repo, so ensure we can find
# our utils
sys.path.insert(0, os.path.dirname(os.path.realpath(__file__)))
# isort: off
from setup_utils import get_version, is_f, read_requires  # noqa: E402

# isort: on
del sys.path[0]

ETC = "/etc"

data_files = [
    (ETC + "/cloud-agent", [f for f in glob("config/*.cfg") if is_f(f)]),
    (ETC + "/cloud-agent/agent.cfg.d", glob("config/agent.cfg.d/*")),
]

requirements = read_requires()

setuptools.setup(
    name="cloud-agent",
    version=get_version(),
    description="Instance identity discovery from IaaS config drives",
    packages=setuptools.find_packages(exclude=["tests.*", "tests"]),
    license="Dual-licensed under GPLv3 or Apache 2.0",
    data_files=data_files,
    install_requires=requirements,
    extras_require={
        "test": read_requires("test-requirements.txt"),
    },
    entry_points={
        "console_scripts": [
            "cloud-agent-query = cloudagent.cmd.query:main",
        ],
    },
)
