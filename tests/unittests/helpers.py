# This file is part of cloud-agent. See LICENSE file for license information.

import json
import os
from contextlib import contextmanager
from unittest import mock  # noqa: F401

PUBKEY = "ssh-rsa AAAAB3NzaC1....sIkJhq8wdX+4I3A4cYbYP agent@server-460"


def metadata_json(instance_id="fake-instance-id", public_key=PUBKEY):
    return json.dumps(
        {
            "public_keys": {"0": {"openssh-key": public_key}},
            "instance-id": instance_id,
        }
    ).encode()


def userdata_json(
    server_name="fake-server-name",
    endpoint="fake-registry-endpoint",
    nameservers=None,
):
    userdata = {
        "server": {"name": server_name},
        "registry": {"endpoint": endpoint},
    }
    if nameservers is not None:
        userdata["dns"] = {"nameserver": nameservers}
    return json.dumps(userdata).encode()


def populate_dir(path, files):
    if not os.path.exists(path):
        os.makedirs(path)
    ret = []
    for name, content in files.items():
        p = os.path.sep.join([path, name])
        os.makedirs(os.path.dirname(p), exist_ok=True)
        with open(p, "wb") as fp:
            if isinstance(content, bytes):
                fp.write(content)
            else:
                fp.write(content.encode("utf-8"))
        ret.append(p)

    return ret


@contextmanager
def does_not_raise():
    """Context manager to parametrize tests raising and not raising exceptions

    Example:
    --------
    >>> @pytest.mark.parametrize(
    >>>     "example_input,expectation",
    >>>     [
    >>>         (1, does_not_raise()),
    >>>         (0, pytest.raises(ZeroDivisionError)),
    >>>     ],
    >>> )
    >>> def test_division(example_input, expectation):
    >>>     with expectation:
    >>>         assert (0 / example_input) is not None

    """
    yield
