# This file is part of cloud-agent. See LICENSE file for license information.

import copy
import logging

from cloudagent import settings, sources, util
from cloudagent.sources.schema import Metadata, UserData, get_section

LOG = logging.getLogger(__name__)


class DataSourceFile(sources.DataSource):
    """Identity and registry location read from plain local files.

    Used when the agent is provisioned with its documents already on the
    root disk.  When user-data names no registry endpoint the settings file
    itself serves as the registry.
    """

    dsname = "File"
    description = "file metadata service"

    def __init__(
        self,
        resolver,
        platform,
        metadata_path,
        userdata_path,
        settings_path,
        log=None,
    ):
        super(DataSourceFile, self).__init__(resolver, platform, log=log)
        self.metadata_path = metadata_path
        self.userdata_path = userdata_path
        self.settings_path = settings_path
        self.networks: dict = {}

    def is_available(self):
        return self._platform.file_exists(
            self.settings_path
        ) or self._platform.file_exists(self.metadata_path)

    def load(self):
        metadata = self._read_file(
            self.metadata_path, "metadata", Metadata.from_dict
        )
        userdata, networks = self._read_file(
            self.userdata_path, "userdata", _decode_userdata
        )
        self.metadata = metadata
        self.userdata = userdata
        self.networks = networks

    def _read_file(self, path, kind, decode):
        try:
            contents = util.load_binary_file(path)
        except (IOError, OSError) as e:
            raise sources.DiskReadError(
                "Reading %s file %s: %s" % (kind, path, e)
            ) from e
        try:
            return decode(util.load_json(contents))
        except (TypeError, ValueError) as e:
            raise sources.BrokenMetadata(
                "Parsing file %s from %s: %s" % (kind, path, e)
            ) from e

    def get_public_key(self):
        if self.metadata is None:
            raise self._missing("openssh-key")
        # Keys are not required here, they may be injected otherwise
        return self._metadata.get_public_key()

    def get_registry_endpoint(self):
        if self.userdata is None:
            raise self._missing("registry endpoint")
        if not self._userdata.registry_endpoint:
            return self.settings_path
        return super(DataSourceFile, self).get_registry_endpoint()

    def get_networks(self):
        return copy.deepcopy(self.networks)


def _decode_userdata(data):
    # Only the file layout carries network settings in user-data
    return UserData.from_dict(data), get_section(data, "networks")


def from_config(ds_cfg, platform, resolver):
    cfg = util.mergemanydict(
        [ds_cfg, settings.CFG_BUILTIN["metadata_service"]["File"]]
    )
    return DataSourceFile(
        resolver,
        platform,
        metadata_path=cfg["metadata_path"],
        userdata_path=cfg["userdata_path"],
        settings_path=cfg["settings_path"],
    )
