"""Fixed values of the OpenCloud deployment.

These describe the image and the host identity it expects; none of them
are operator input.
"""

IMAGE_REFERENCE = "opencloudeu/opencloud:latest"

SERVICE_NAME = "opencloud"
CONTAINER_NAME = "opencloud_tenant"
INIT_CONTAINER_NAME = "opencloud_init"

INTERNAL_PORT = 9200
DATA_MOUNT = "/var/lib/opencloud"
CONFIG_MOUNT = "/etc/opencloud"

# Runtime identity of the opencloud user inside the image
SERVICE_UID = 1000
SERVICE_GID = 1000
DIRECTORY_MODE = 0o750

# Prompt defaults
DEFAULT_PORT = 8080
DEFAULT_STORAGE_PATH = "/mnt/clouddata"

REQUIRED_TOOLS = ("docker", "tailscale")
SNAP_PREFIX = "/snap/"
SNAP_REMEDIATION = "snap remove docker && curl -fsSL https://get.docker.com | sh"

# Lines of container log shown when the service turns unhealthy
LOG_TAIL_LINES = 50
