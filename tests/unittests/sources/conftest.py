# This file is part of cloud-agent. See LICENSE file for license information.

import pytest

from tests.unittests.sources.fakes import FakeDNSResolver, FakePlatform


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def resolver():
    return FakeDNSResolver()
