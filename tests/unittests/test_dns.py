# This file is part of cloud-agent. See LICENSE file for license information.

import pytest

from cloudagent import dns, subp
from tests.unittests.helpers import mock

M_PATH = "cloudagent.dns."


def _dig(nameserver, host, timeout=1):
    return mock.call(
        ["dig", "@%s" % nameserver, host, "+short", "+time=%s" % timeout],
        timeout=timeout * dns.DIG_TRIES + 1,
    )


class TestIsIpAddress:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10.0.0.1", True),
            ("fd00::1", True),
            ("host.example", False),
            ("", False),
            ("10.0.0", False),
        ],
    )
    def test_is_ip_address(self, value, expected):
        assert expected is dns.is_ip_address(value)


@mock.patch(M_PATH + "subp.subp")
class TestDigDNSResolver:
    def test_localhost(self, m_subp):
        resolver = dns.DigDNSResolver()
        assert "127.0.0.1" == resolver.lookup_host("localhost", [])
        assert 0 == m_subp.call_count

    @pytest.mark.parametrize("host", ["10.0.0.5", "fd00::5"])
    def test_ip_literal(self, m_subp, host):
        resolver = dns.DigDNSResolver()
        assert host == resolver.lookup_host(host, ["10.0.0.1"])
        assert 0 == m_subp.call_count

    def test_resolves_with_first_nameserver(self, m_subp):
        m_subp.return_value = subp.SubpResult("10.0.0.2\n", "")
        resolver = dns.DigDNSResolver(timeout=3)
        assert "10.0.0.2" == resolver.lookup_host(
            "host.example", ["10.0.0.1", "10.0.0.9"]
        )
        assert [_dig("10.0.0.1", "host.example", 3)] == m_subp.call_args_list

    def test_cname_lines_are_skipped(self, m_subp):
        m_subp.return_value = subp.SubpResult(
            "alias.example.\nhost.example.\n10.0.0.2\n10.0.0.3\n", ""
        )
        resolver = dns.DigDNSResolver()
        assert "10.0.0.2" == resolver.lookup_host("alias.example", ["ns"])

    def test_falls_back_to_next_nameserver(self, m_subp):
        m_subp.side_effect = [
            subp.ProcessExecutionError(
                cmd="dig", exit_code=9, stderr="timed out"
            ),
            subp.SubpResult("", ""),
            subp.SubpResult("10.0.0.2\n", ""),
        ]
        resolver = dns.DigDNSResolver()
        assert "10.0.0.2" == resolver.lookup_host(
            "host.example", ["10.0.0.1", "10.0.0.2", "10.0.0.3"]
        )
        assert [
            _dig("10.0.0.1", "host.example"),
            _dig("10.0.0.2", "host.example"),
            _dig("10.0.0.3", "host.example"),
        ] == m_subp.call_args_list

    def test_all_nameservers_fail(self, m_subp):
        m_subp.return_value = subp.SubpResult("", "")
        resolver = dns.DigDNSResolver()
        with pytest.raises(dns.DNSLookupError) as exc_info:
            resolver.lookup_host("host.example", ["10.0.0.1", "10.0.0.2"])
        # Callers handle lookup failures as IO errors
        assert isinstance(exc_info.value, IOError)
        assert (
            "Resolving host.example with nameservers 10.0.0.1, 10.0.0.2"
            in str(exc_info.value)
        )
        assert "No address for host.example from nameserver 10.0.0.2" in str(
            exc_info.value
        )

    def test_no_nameservers(self, m_subp):
        resolver = dns.DigDNSResolver()
        with pytest.raises(dns.DNSLookupError, match="No nameservers"):
            resolver.lookup_host("host.example", [])
        assert 0 == m_subp.call_count
