# This file is part of cloud-agent. See LICENSE file for license information.

import logging

from cloudagent import settings, sources, util
from cloudagent.sources.schema import Metadata, UserData

LOG = logging.getLogger(__name__)

METADATA_NAME = "meta_data.json"
USERDATA_NAME = "user_data"


class DataSourceConfigDrive(sources.DataSource):
    """Identity and registry location read off a config drive.

    Both documents are requested from the platform with the full list of
    candidate disks; which disk actually provided them is up to the
    platform.
    """

    dsname = "ConfigDrive"
    description = "config drive metadata service"

    def __init__(
        self,
        resolver,
        platform,
        disk_paths,
        metadata_path,
        userdata_path,
        log=None,
    ):
        super(DataSourceConfigDrive, self).__init__(
            resolver, platform, log=log
        )
        self._disk_paths = tuple(disk_paths)
        self._metadata_path = metadata_path
        self._userdata_path = userdata_path

    def __str__(self):
        root = sources.DataSource.__str__(self)
        return "%s [disks=%s]" % (root, ",".join(self.disk_paths))

    @property
    def disk_paths(self):
        return self._disk_paths

    @property
    def metadata_path(self):
        return self._metadata_path

    @property
    def userdata_path(self):
        return self._userdata_path

    def is_available(self):
        return any(self._platform.file_exists(d) for d in self.disk_paths)

    def load(self):
        metadata = self._read_document(
            self.metadata_path, "metadata", METADATA_NAME, Metadata
        )
        userdata = self._read_document(
            self.userdata_path, "userdata", USERDATA_NAME, UserData
        )
        # Publish only once both documents decoded
        self.metadata = metadata
        self.userdata = userdata
        self.log.debug(
            "Loaded config drive metadata for instance '%s'",
            metadata.instance_id,
        )

    def _read_document(self, path, kind, name, record):
        self.log.debug(
            "Reading config drive %s %s from disks %s",
            kind,
            path,
            self.disk_paths,
        )
        try:
            contents = self._platform.get_file_contents_from_disks(
                list(self.disk_paths), path
            )
        except (IOError, OSError) as e:
            raise sources.DiskReadError(
                "Reading config drive %s from disk: %s" % (kind, e)
            ) from e
        try:
            return record.from_json(contents)
        except (TypeError, ValueError) as e:
            raise sources.BrokenMetadata(
                "Parsing config drive metadata from %s: %s" % (name, e)
            ) from e


def from_config(ds_cfg, platform, resolver):
    cfg = util.mergemanydict(
        [ds_cfg, settings.CFG_BUILTIN["metadata_service"]["ConfigDrive"]]
    )
    return DataSourceConfigDrive(
        resolver,
        platform,
        disk_paths=cfg["disk_paths"],
        metadata_path=cfg["metadata_path"],
        userdata_path=cfg["userdata_path"],
    )
