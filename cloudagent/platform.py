# This file is part of cloud-agent. See LICENSE file for license information.
"""Access to block devices attached to the instance."""

import logging
import os

from cloudagent import util

LOG = logging.getLogger(__name__)

# Filesystems a config drive is formatted with
FS_TYPES = ("vfat", "iso9660")


class NonReadable(IOError):
    pass


def _read_from_mount(mountpoint, file_path):
    path = os.path.join(mountpoint, file_path.lstrip("/"))
    if not os.path.isfile(path):
        raise NonReadable(
            "%s does not exist under %s" % (file_path, mountpoint)
        )
    return util.load_binary_file(path)


class Platform:
    """Mounts candidate disks and reads files off of them.

    Every disk handed to get_file_contents_from_disks is recorded in
    probed_disk_paths in the order it was tried.
    """

    def __init__(self, mtype=FS_TYPES):
        self.mtype = mtype
        self.probed_disk_paths = []

    def file_exists(self, path):
        return os.path.exists(path)

    def get_file_contents_from_disks(self, disk_paths, file_path) -> bytes:
        """Return the contents of file_path from the first disk holding it.

        Disks are tried in order. A disk that fails to mount or does not
        carry the file is skipped.

        @raises NonReadable: when no disk provided the file.
        """
        disk_paths = list(disk_paths)
        if not disk_paths:
            raise NonReadable(
                "No candidate disks to read %s from" % file_path
            )

        last_error = None
        for disk_path in disk_paths:
            self.probed_disk_paths.append(disk_path)
            try:
                contents = util.mount_cb(
                    disk_path,
                    _read_from_mount,
                    data=file_path,
                    mtype=self.mtype,
                )
            except util.MountFailedError as e:
                LOG.debug("Skipping disk %s: %s", disk_path, e)
                last_error = e
                continue
            except (IOError, OSError) as e:
                LOG.debug(
                    "Failed reading %s from disk %s: %s",
                    file_path,
                    disk_path,
                    e,
                )
                last_error = e
                continue
            LOG.debug(
                "Read %s (%s bytes) from disk %s",
                file_path,
                len(contents),
                disk_path,
            )
            return contents

        raise NonReadable(
            "Reading %s from disks %s: %s"
            % (file_path, ", ".join(disk_paths), last_error)
        )
