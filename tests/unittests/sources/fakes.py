# This file is part of cloud-agent. See LICENSE file for license information.
"""In-memory stand-ins for the platform and the DNS resolver."""

from typing import List, NamedTuple, Tuple

from cloudagent.dns import DNSLookupError
from cloudagent.platform import NonReadable


class FakePlatform:
    def __init__(self):
        self.files = {}
        self.existing_paths = set()
        # Every disk handed to get_file_contents_from_disks, in order
        self.probed_disk_paths: List[str] = []
        self.get_file_contents_from_disks_calls: List[
            Tuple[List[str], str]
        ] = []

    def set_file_contents_from_disks(self, file_path, contents, error=None):
        self.files[file_path] = (contents, error)

    def file_exists(self, path):
        return path in self.existing_paths

    def get_file_contents_from_disks(self, disk_paths, file_path):
        self.get_file_contents_from_disks_calls.append(
            (list(disk_paths), file_path)
        )
        self.probed_disk_paths.extend(disk_paths)
        contents, error = self.files.get(
            file_path, (b"", NonReadable("%s not found" % file_path))
        )
        if error is not None:
            raise error
        return contents


class FakeDNSRecord(NamedTuple):
    nameservers: Tuple[str, ...]
    host: str
    ip: str


class FakeDNSResolver:
    def __init__(self):
        self.records: List[FakeDNSRecord] = []
        self.lookup_host_err = None
        self.lookup_host_calls: List[Tuple[str, List[str]]] = []

    def register_record(self, nameservers, host, ip):
        self.records.append(FakeDNSRecord(tuple(nameservers), host, ip))

    def lookup_host(self, host, nameservers):
        self.lookup_host_calls.append((host, list(nameservers)))
        if self.lookup_host_err is not None:
            raise self.lookup_host_err
        for record in self.records:
            if record.host == host and record.nameservers == tuple(
                nameservers
            ):
                return record.ip
        raise DNSLookupError("No record for %s" % host)
