# This file is part of cloud-agent. See LICENSE file for license information.
"""Records for the documents a metadata service reads.

Decoding ignores unknown keys and treats a missing or null value as the
empty value of its type.  A value of the wrong JSON type is an error.
The records are read-only, mappings included.
"""

from types import MappingProxyType
from typing import Mapping, NamedTuple, Tuple

from cloudagent import util

OPENSSH_KEY = "openssh-key"
DEFAULT_KEY_SLOT = "0"


def _get_typed(data, key, expected, default):
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, expected):
        raise ValueError(
            "'%s' expected to be of type %s, got %s"
            % (key, expected.__name__, type(value).__name__)
        )
    return value


def get_section(data, key) -> dict:
    return _get_typed(data, key, dict, {})


class Metadata(NamedTuple):
    """Contents of meta_data.json."""

    public_keys: Mapping[str, Mapping[str, str]] = MappingProxyType({})
    instance_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Metadata":
        public_keys = {}
        for slot, keys in get_section(data, "public_keys").items():
            if not isinstance(keys, dict):
                raise ValueError(
                    "'public_keys/%s' expected to be of type dict, got %s"
                    % (slot, type(keys).__name__)
                )
            public_keys[slot] = MappingProxyType(
                {
                    key_type: _get_typed(keys, key_type, str, "")
                    for key_type in keys
                }
            )
        return cls(
            public_keys=MappingProxyType(public_keys),
            instance_id=_get_typed(data, "instance-id", str, ""),
        )

    @classmethod
    def from_json(cls, blob) -> "Metadata":
        return cls.from_dict(util.load_json(blob))

    def get_public_key(self, slot=DEFAULT_KEY_SLOT, key_type=OPENSSH_KEY):
        return self.public_keys.get(slot, {}).get(key_type, "")


class UserData(NamedTuple):
    """Contents of user_data."""

    server_name: str = ""
    registry_endpoint: str = ""
    nameservers: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "UserData":
        server = get_section(data, "server")
        registry = get_section(data, "registry")
        dns = get_section(data, "dns")

        nameservers = _get_typed(dns, "nameserver", list, [])
        for nameserver in nameservers:
            if not isinstance(nameserver, str):
                raise ValueError(
                    "'dns/nameserver' entries expected to be of type str,"
                    " got %s" % type(nameserver).__name__
                )

        return cls(
            server_name=_get_typed(server, "name", str, ""),
            registry_endpoint=_get_typed(registry, "endpoint", str, ""),
            nameservers=tuple(nameservers),
        )

    @classmethod
    def from_json(cls, blob) -> "UserData":
        return cls.from_dict(util.load_json(blob))
