# This file is part of cloud-agent. See LICENSE file for license information.

import abc
import importlib
import logging
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from cloudagent import util
from cloudagent.sources.schema import Metadata, UserData

DS_PREFIX = "DataSource"

LOG = logging.getLogger(__name__)


class DataSourceError(IOError):
    """Base of the errors a metadata service reports to its callers."""


class DiskReadError(DataSourceError):
    """Raised when a document could not be read from its backing store."""


class BrokenMetadata(DataSourceError):
    """Raised when a document or a value in it cannot be decoded."""


class MissingMetadata(DataSourceError):
    """Raised when a requested value is absent or empty."""


class ResolveHostError(DataSourceError):
    """Raised when the registry endpoint host cannot be resolved."""


class DataSourceNotFoundException(Exception):
    pass


def resolve_registry_endpoint(resolver, endpoint, nameservers, log=LOG):
    """Return endpoint with its host replaced by the resolved address.

    The host is looked up once against the full nameservers list.
    Userinfo, port, path, query and fragment are kept as they are.

    @raises BrokenMetadata: endpoint has no host or an invalid port.
    @raises ResolveHostError: the resolver failed.
    """
    try:
        parsed = urlsplit(endpoint)
        host = parsed.hostname
        port = parsed.port
    except ValueError as e:
        raise BrokenMetadata(
            "Parsing registry endpoint '%s': %s" % (endpoint, e)
        ) from e
    if not host:
        raise BrokenMetadata(
            "Parsing registry endpoint '%s': no host found" % endpoint
        )

    nameservers = list(nameservers)
    log.debug(
        "Resolving registry endpoint host %s using nameservers %s",
        host,
        nameservers,
    )
    try:
        address = resolver.lookup_host(host, nameservers)
    except (IOError, ValueError) as e:
        raise ResolveHostError(
            "Resolving registry endpoint host '%s': %s" % (host, e)
        ) from e

    netloc = "[%s]" % address if ":" in address else address
    if port is not None:
        netloc = "%s:%s" % (netloc, port)
    userinfo, sep, _hostport = parsed.netloc.rpartition("@")
    resolved = urlunsplit(parsed._replace(netloc=userinfo + sep + netloc))
    log.debug("Resolved registry endpoint %s to %s", endpoint, resolved)
    return resolved


class DataSource(metaclass=abc.ABCMeta):
    """A source of the instance identity and registry location.

    Subclasses fill metadata and userdata in load(); the accessors here
    only read those two records.  Before the first successful load()
    every accessor except get_networks() raises MissingMetadata.
    """

    dsname = "_undef"

    # Used in error messages: "Failed to load <what> from <description>"
    description = "metadata service"

    def __init__(self, resolver, platform, log=None):
        self._resolver = resolver
        self._platform = platform
        self.log = log or LOG
        self.metadata: Optional[Metadata] = None
        self.userdata: Optional[UserData] = None

    def __str__(self):
        return "%s%s" % (DS_PREFIX, self.dsname)

    @abc.abstractmethod
    def is_available(self) -> bool:
        """Return True if the backing store of this source is present."""

    @abc.abstractmethod
    def load(self) -> None:
        """Read and decode both documents, replacing any loaded before."""

    def _missing(self, what):
        return MissingMetadata(
            "Failed to load %s from %s" % (what, self.description)
        )

    @property
    def _metadata(self) -> Metadata:
        return self.metadata if self.metadata is not None else Metadata()

    @property
    def _userdata(self) -> UserData:
        return self.userdata if self.userdata is not None else UserData()

    def get_public_key(self) -> str:
        key = self._metadata.get_public_key()
        if not key:
            raise self._missing("openssh-key")
        return key

    def get_instance_id(self) -> str:
        if not self._metadata.instance_id:
            raise self._missing("instance-id")
        return self._metadata.instance_id

    def get_server_name(self) -> str:
        if not self._userdata.server_name:
            raise self._missing("server name")
        return self._userdata.server_name

    def get_registry_endpoint(self) -> str:
        endpoint = self._userdata.registry_endpoint
        if not endpoint:
            raise self._missing("registry endpoint")
        nameservers = self._userdata.nameservers
        if not nameservers:
            return endpoint
        return resolve_registry_endpoint(
            self._resolver, endpoint, nameservers, log=self.log
        )

    def get_networks(self) -> dict:
        return {}


def new_datasource(name, cfg, platform, resolver) -> DataSource:
    """Build the metadata service registered under name.

    The module cloudagent.sources.DataSource<name> provides a from_config()
    that receives cfg['metadata_service'][name].
    """
    modname = "%s.%s%s" % (__name__, DS_PREFIX, name)
    try:
        mod = importlib.import_module(modname)
    except ImportError as e:
        if e.name != modname:
            raise
        raise ValueError("Unknown metadata service '%s'" % name) from e
    ds_cfg = util.get_cfg_by_path(cfg, ("metadata_service", name), {})
    return mod.from_config(ds_cfg or {}, platform, resolver)


def find_source(cfg, platform, resolver) -> DataSource:
    """Return the first configured metadata service that loads."""
    names = util.get_cfg_option_list(cfg, "metadata_service_list", [])
    tried = []
    for name in names:
        ds = new_datasource(name, cfg, platform, resolver)
        tried.append(str(ds))
        if not ds.is_available():
            LOG.debug("Metadata service %s is not available", ds)
            continue
        try:
            ds.load()
        except DataSourceError:
            util.logexc(LOG, "Failed loading metadata service %s", ds)
            continue
        LOG.debug("Using metadata service %s", ds)
        return ds
    raise DataSourceNotFoundException(
        "Did not find any metadata service, searched: %s"
        % (", ".join(tried) or "none")
    )
