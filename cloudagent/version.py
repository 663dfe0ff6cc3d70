# This file is part of cloud-agent. See LICENSE file for license information.

__VERSION__ = "0.4.0"
_PACKAGED_VERSION = "@@PACKAGED_VERSION@@"


def version_string():
    """Extract a version string from cloud-agent."""
    if not _PACKAGED_VERSION.startswith("@@"):
        return _PACKAGED_VERSION
    return __VERSION__
