# This file is part of cloud-agent. See LICENSE file for license information.

# Set and read for determining the agent config file location
CFG_ENV_NAME = "CLOUD_AGENT_CFG"

# This is expected to be a yaml formatted file
AGENT_CONFIG = "/etc/cloud-agent/agent.cfg"

# Layout of the config drive as written by the IaaS
CONFIG_DRIVE_LABELS = ("CONFIG-2", "config-2")
CONFIG_DRIVE_METADATA_PATH = "openstack/latest/meta_data.json"
CONFIG_DRIVE_USERDATA_PATH = "openstack/latest/user_data"

# What u get if no config is provided
CFG_BUILTIN = {
    "metadata_service_list": [
        "ConfigDrive",
        # At the end as a fallback for agents provisioned with local files
        "File",
    ],
    "metadata_service": {
        "ConfigDrive": {
            "disk_paths": [
                "/dev/disk/by-label/%s" % label
                for label in CONFIG_DRIVE_LABELS
            ],
            "metadata_path": CONFIG_DRIVE_METADATA_PATH,
            "userdata_path": CONFIG_DRIVE_USERDATA_PATH,
        },
        "File": {
            "metadata_path": "/var/vcap/bosh/meta_data.json",
            "userdata_path": "/var/vcap/bosh/user_data.json",
            "settings_path": "/var/vcap/bosh/settings.json",
        },
    },
    "dns": {
        "lookup_timeout": 1,
    },
    "log_cfgs": [],
    "log_basic": True,
}
