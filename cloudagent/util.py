# This file is part of cloud-agent. See LICENSE file for license information.

import contextlib
import copy as obj_copy
import glob
import json
import logging
import os
import platform
import sys
from typing import Dict, Mapping, Sequence, Union

import yaml

from cloudagent import subp, temp_utils
from cloudagent.settings import CFG_BUILTIN

LOG = logging.getLogger(__name__)


class MountFailedError(Exception):
    pass


def decode_binary(blob: Union[str, bytes], encoding="utf-8") -> str:
    # Converts a binary type into a text type using given encoding.
    return blob if isinstance(blob, str) else blob.decode(encoding)


def is_Linux():
    return "Linux" in platform.system()


def load_json(text) -> dict:
    decoded = json.loads(decode_binary(text))
    if not isinstance(decoded, dict):
        raise TypeError(
            "Expected a JSON object at the root, got %s"
            % type(decoded).__name__
        )
    return decoded


def load_yaml(blob, default=None):
    loaded = default
    blob = decode_binary(blob)
    try:
        LOG.debug("Attempting to load yaml from %s characters", len(blob))
        converted = yaml.safe_load(blob)
        if converted is None:
            LOG.debug("loaded blob returned None, returning default.")
            converted = default
        elif not isinstance(converted, dict):
            raise TypeError(
                "Yaml load allows dict root types, but got %s instead"
                % type(converted).__name__
            )
        loaded = converted
    except (yaml.YAMLError, TypeError, ValueError) as e:
        msg = "Failed loading yaml blob"
        mark = getattr(e, "problem_mark", None) or getattr(
            e, "context_mark", None
        )
        if mark:
            msg += '. Invalid format at line %s column %s: "%s"' % (
                mark.line + 1,
                mark.column + 1,
                e,
            )
        else:
            msg += ". %s" % e
        LOG.warning(msg)
    return loaded


def load_binary_file(fname: Union[str, os.PathLike]) -> bytes:
    LOG.debug("Reading from %s", fname)
    with open(fname, "rb") as ifh:
        contents = ifh.read()
    LOG.debug("Read %s bytes from %s", len(contents), fname)
    return contents


def load_text_file(fname: Union[str, os.PathLike]) -> str:
    return decode_binary(load_binary_file(fname))


def read_conf(fname) -> Dict:
    """Read a yaml config file and convert to dict; {} when missing."""
    try:
        config_file = load_text_file(fname)
    except FileNotFoundError:
        return {}
    return load_yaml(config_file, default={})


def read_conf_d(confd) -> dict:
    """Read configuration directory."""
    # Get reverse sorted list (later trumps newer)
    confs = sorted(glob.glob(os.path.join(confd, "*.cfg")), reverse=True)

    # Load them all so that they can be merged
    cfgs = []
    for fn in confs:
        try:
            cfgs.append(read_conf(fn))
        except PermissionError:
            LOG.warning(
                "REDACTED config part %s, insufficient permissions", fn
            )

    return mergemanydict(cfgs)


def read_conf_with_confd(cfgfile) -> dict:
    """Read yaml file along with optional ".d" directory, return merged config

    Given a yaml file, load the file as a dictionary. Additionally, if there
    exists a same-named directory with .d extension, read all files from
    that directory in order and return the merged config.

    A "conf_d" key inside the yaml file names an alternative directory.
    Keys in the .d directory win over keys in the base file.
    """
    cfg = read_conf(cfgfile)

    confd = None
    if "conf_d" in cfg:
        confd = cfg["conf_d"]
        if confd:
            if not isinstance(confd, str):
                raise TypeError(
                    "Config file %s contains 'conf_d' with non-string type %s"
                    % (cfgfile, type(confd).__name__)
                )
            confd = str(confd).strip()
    elif os.path.isdir(f"{cfgfile}.d"):
        confd = f"{cfgfile}.d"

    if not confd or not os.path.isdir(confd):
        return cfg

    # Conf.d settings override input configuration
    confd_cfg = read_conf_d(confd)
    return mergemanydict([confd_cfg, cfg])


def get_builtin_cfg():
    # Deep copy so that others can't modify
    return obj_copy.deepcopy(CFG_BUILTIN)


def get_cfg_by_path(yobj, keyp, default=None):
    """Return the value of the item at path C{keyp} in C{yobj}.

    example:
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'a/b/num') == 4
      get_cfg_by_path({'a': {'b': {'num': 4}}}, 'c/d') == None

    @param yobj: A dictionary.
    @param keyp: A path inside yobj.  it can be a '/' delimited string,
                 or an iterable.
    @param default: The default to return if the path does not exist.
    """
    if isinstance(keyp, str):
        keyp = keyp.split("/")
    cur = yobj
    for tok in keyp:
        if not isinstance(cur, dict) or tok not in cur:
            return default
        cur = cur[tok]
    return cur


def get_cfg_option_list(yobj, key, default=None):
    """
    Gets the C{key} config option from C{yobj} as a list of strings. If the
    key is present as a single string it will be returned as a list with one
    string arg.
    """
    if key not in yobj:
        return default
    if yobj[key] is None:
        return []
    val = yobj[key]
    if isinstance(val, (list, tuple)):
        return [str(v) for v in val]
    return [str(val)]


def _merge_into(merged: dict, cfg: Mapping):
    for key, value in cfg.items():
        if key not in merged:
            merged[key] = obj_copy.deepcopy(value)
        elif isinstance(merged[key], dict) and isinstance(value, Mapping):
            _merge_into(merged[key], value)


def mergemanydict(sources: Sequence[Mapping]) -> dict:
    """Merge multiple dicts, earlier sources taking priority.

    Nested dicts are merged recursively; any other value already present
    is kept.  The highest priority source must be specified first.

    mergemanydict([{"a": 1, "d": {"a": 1}}, {"a": 10, "d": {"f": 10}}])
    results in {"a": 1, "d": {"a": 1, "f": 10}}
    """
    merged_cfg: dict = {}
    for cfg in sources:
        if cfg:
            _merge_into(merged_cfg, cfg)
    return merged_cfg


def logexc(log, msg, *args, log_level: int = logging.WARNING) -> None:
    log.log(log_level, msg, *args)
    log.debug(msg, exc_info=True, *args)


def error(msg, rc=1, fmt="Error:\n{}", sys_exit=False):
    r"""Print error to stderr and return or exit

    @param msg: message to print
    @param rc: return code (default: 1)
    @param fmt: format string for putting message in (default: 'Error:\n {}')
    @param sys_exit: exit when called (default: false)
    """
    print(fmt.format(msg), file=sys.stderr)
    if sys_exit:
        sys.exit(rc)
    return rc


@contextlib.contextmanager
def unmounter(umount):
    try:
        yield umount
    finally:
        if umount:
            umount_cmd = ["umount", umount]
            subp.subp(umount_cmd)


def mounts():
    mounted = {}
    try:
        mount_locs = load_text_file("/proc/mounts").splitlines()
        for mpline in mount_locs:
            # /dev/sda1 /boot ext4 rw,relatime,data=ordered 0 0
            try:
                (dev, mp, fstype, opts, _freq, _passno) = mpline.split()
            except ValueError:
                continue
            # If the name of the mount point contains spaces these
            # can be escaped as '\040', so undo that..
            mp = mp.replace("\\040", " ")
            mounted[dev] = {
                "fstype": fstype,
                "mountpoint": mp,
                "opts": opts,
            }
        LOG.debug("Fetched %s mounts from /proc/mounts", mounted)
    except (IOError, OSError):
        logexc(LOG, "Failed fetching mount points")
    return mounted


def mount_cb(device, callback, data=None, mtype=None):
    """
    Mount the device read-only, call method 'callback' passing the directory
    in which it was mounted, then unmount.  Return whatever 'callback'
    returned.  If data != None, also pass data to callback.

    mtype is a filesystem type.  it may be None ("auto"), a string (a single
    fsname) or a list of fsnames tried in order.

    A device that is already mounted is read in place and left mounted.
    """
    if isinstance(mtype, str):
        mtypes = [mtype]
    elif isinstance(mtype, (list, tuple)):
        mtypes = list(mtype)
    elif mtype is None:
        mtypes = ["auto"] if is_Linux() else [""]
    else:
        raise TypeError(
            "Unsupported type provided for mtype parameter: %s" % type(mtype)
        )

    mounted = mounts()
    with temp_utils.tempdir() as tmpd:
        umount = False
        if os.path.realpath(device) in mounted:
            mountpoint = mounted[os.path.realpath(device)]["mountpoint"]
        else:
            failure_reason = None
            mountpoint = None
            for mtype in mtypes:
                mountcmd = ["mount", "-o", "ro"]
                if mtype:
                    mountcmd.extend(["-t", mtype])
                mountcmd.extend([device, tmpd])
                try:
                    subp.subp(mountcmd)
                    umount = tmpd  # This forces it to be unmounted (when set)
                    mountpoint = tmpd
                    break
                except (IOError, OSError) as exc:
                    LOG.debug(
                        "Failed to mount device: '%s' with type: '%s' "
                        "using mount command: '%s', "
                        "which caused exception: %s",
                        device,
                        mtype,
                        " ".join(mountcmd),
                        exc,
                    )
                    failure_reason = exc
            if not mountpoint:
                raise MountFailedError(
                    "Failed mounting %s to %s due to: %s"
                    % (device, tmpd, failure_reason)
                )

        # Be nice and ensure it ends with a slash
        if not mountpoint.endswith("/"):
            mountpoint += "/"
        with unmounter(umount):
            if data is None:
                ret = callback(mountpoint)
            else:
                ret = callback(mountpoint, data)
            return ret
