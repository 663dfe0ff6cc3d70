# This file is part of cloud-agent. See LICENSE file for license information.

import contextlib
import logging
import os
import shutil
import tempfile

LOG = logging.getLogger(__name__)
_ROOT_TMPDIR = "/run/cloud-agent/tmp"


def get_tmp_ancestor(odir=None):
    if odir is not None:
        return odir
    if os.getuid() == 0:
        return _ROOT_TMPDIR
    return os.environ.get("TMPDIR", "/tmp")


def _tempfile_dir_arg(odir=None):
    """Return the proper 'dir' argument for tempfile functions.

    When root, mount points for config drives are created under
    /run/cloud-agent/tmp so that distro boot cleanup of /tmp does not
    race with a mounted drive.
    """
    tdir = get_tmp_ancestor(odir)
    if not os.path.isdir(tdir):
        os.makedirs(tdir)
        os.chmod(tdir, 0o1777)
    return tdir


@contextlib.contextmanager
def tempdir(rmtree_ignore_errors=False, **kwargs):
    tdir = mkdtemp(**kwargs)
    try:
        yield tdir
    finally:
        shutil.rmtree(tdir, ignore_errors=rmtree_ignore_errors)


def mkdtemp(dir=None, **kwargs):
    dir = _tempfile_dir_arg(dir)
    return tempfile.mkdtemp(dir=dir, **kwargs)
