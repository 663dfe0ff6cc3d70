#!/usr/bin/env python3

# This file is part of cloud-agent. See LICENSE file for license information.

"""Query the instance identity the agent reads from its metadata service.

Without a key, print every value as json.  With a key, print only that
value, exiting non-zero if it is not available.
"""

import argparse
import json
import logging
import os
import sys

from cloudagent import dns, log, settings, sources, util, version
from cloudagent.config.schema import (
    SchemaValidationError,
    validate_agent_config,
)
from cloudagent.platform import Platform

NAME = "cloud-agent-query"
LOG = logging.getLogger(__name__)

# query key -> DataSource accessor
QUERY_KEYS = {
    "public-key": "get_public_key",
    "instance-id": "get_instance_id",
    "server-name": "get_server_name",
    "registry-endpoint": "get_registry_endpoint",
    "networks": "get_networks",
}


def get_parser(parser=None):
    """Build or extend an arg parser for the query utility.

    @param parser: Optional existing ArgumentParser instance representing the
        query subcommand which will be extended to support the args of
        this utility.

    @returns: ArgumentParser with proper argument configuration.
    """
    if not parser:
        parser = argparse.ArgumentParser(
            prog=NAME,
            description="Query the agent metadata service",
        )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=settings.AGENT_CONFIG,
        help=(
            "Path to the agent config file, overridden by $%s. Default is %s"
            % (settings.CFG_ENV_NAME, settings.AGENT_CONFIG)
        ),
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=False,
        help="Add verbose messages during query.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s " + version.version_string(),
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail when the agent config does not match its schema.",
    )
    parser.add_argument(
        "key",
        nargs="?",
        choices=sorted(QUERY_KEYS),
        help="The value to print. Default is all of them as json.",
    )
    return parser


def read_agent_config(path):
    """Return the agent config from path, layered over the builtin config."""
    path = os.environ.get(settings.CFG_ENV_NAME) or path
    cfg = util.read_conf_with_confd(path)
    return util.mergemanydict([cfg, util.get_builtin_cfg()])


def _format(value):
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=1, sort_keys=True, separators=(",", ": "))


def handle_args(name, args):
    """Handle calls to 'cloud-agent-query' cli.

    @return: 0 on success, 1 on error.
    """
    cfg = read_agent_config(args.config)
    log.setup_logging(
        cfg, level=logging.DEBUG if args.debug else logging.WARNING
    )
    try:
        validate_agent_config(cfg, strict=args.strict)
    except SchemaValidationError as e:
        return util.error(str(e))

    resolver = dns.DigDNSResolver(
        timeout=util.get_cfg_by_path(
            cfg, "dns/lookup_timeout", dns.DEFAULT_LOOKUP_TIMEOUT
        )
    )
    try:
        ds = sources.find_source(cfg, Platform(), resolver)
    except (sources.DataSourceNotFoundException, ValueError) as e:
        return util.error(str(e))

    if args.key:
        try:
            value = getattr(ds, QUERY_KEYS[args.key])()
        except sources.DataSourceError as e:
            return util.error(str(e))
        sys.stdout.write("%s\n" % _format(value))
        return 0

    response = {}
    for key, accessor in sorted(QUERY_KEYS.items()):
        try:
            response[key] = getattr(ds, accessor)()
        except sources.DataSourceError as e:
            LOG.warning("Unable to query %s from %s: %s", key, ds, e)
            response[key] = None
    sys.stdout.write("%s\n" % _format(response))
    return 0


def main():
    """Tool to query values from the agent metadata service."""
    log.configure_root_logger()
    parser = get_parser()
    sys.exit(handle_args(NAME, parser.parse_args()))


if __name__ == "__main__":
    main()
