# This file is part of cloud-agent. See LICENSE file for license information.
"""Helpers for running the external tools the agent relies on."""

import collections
import logging
import subprocess
import time
from typing import List

LOG = logging.getLogger(__name__)

SubpResult = collections.namedtuple("SubpResult", ["stdout", "stderr"])


class ProcessExecutionError(IOError):
    MESSAGE_TMPL = (
        "%(description)s\n"
        "Command: %(cmd)s\n"
        "Exit code: %(exit_code)s\n"
        "Reason: %(reason)s\n"
        "Stdout: %(stdout)s\n"
        "Stderr: %(stderr)s"
    )
    empty_attr = "-"

    def __init__(
        self,
        stdout=None,
        stderr=None,
        exit_code=None,
        cmd=None,
        description=None,
        reason=None,
        errno=None,
    ):
        self.cmd = cmd or self.empty_attr
        self.description = (
            description or "Unexpected error while running command."
        )
        self.exit_code = (
            exit_code if isinstance(exit_code, int) else self.empty_attr
        )
        self.stdout = self._indent_text(stdout)
        self.stderr = self._indent_text(stderr)
        self.reason = reason or self.empty_attr
        message = self.MESSAGE_TMPL % {
            "description": self.description,
            "cmd": self.cmd,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "reason": self.reason,
        }
        IOError.__init__(self, message)
        if errno:
            self.errno = errno

    def _indent_text(self, text, indent_level=8):
        """Indent all but the first line of captured output."""
        if text is None:
            return self.empty_attr
        if isinstance(text, bytes):
            text = text.decode("utf-8", "replace")
        return text.rstrip("\n").replace("\n", "\n" + " " * indent_level)

def subp(args: List[str], *, timeout=None) -> SubpResult:
    """Run a command and return its decoded (stdout, stderr).

    :param args: command to run in a list. [cmd, arg1, arg2...]
    :param timeout: seconds to wait for the command before killing it.

    :raises ProcessExecutionError: the command could not be run, timed out
        or exited non-zero.
    """
    LOG.debug("Running command %s (timeout=%s)", args, timeout)

    try:
        before = time.monotonic()
        sp = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
        )
        out, err = sp.communicate(timeout=timeout)
        total = time.monotonic() - before
        if total > 0.1:
            LOG.debug("%s took %.3ss to run", args, total)
    except subprocess.TimeoutExpired as e:
        sp.kill()
        sp.communicate()
        raise ProcessExecutionError(
            cmd=args, reason="Timed out after %ss" % timeout
        ) from e
    except OSError as e:
        raise ProcessExecutionError(
            cmd=args, reason=e, errno=e.errno
        ) from e

    out = out.decode("utf-8", "replace")
    err = err.decode("utf-8", "replace")
    if sp.returncode != 0:
        raise ProcessExecutionError(
            stdout=out, stderr=err, exit_code=sp.returncode, cmd=args
        )
    return SubpResult(out, err)
