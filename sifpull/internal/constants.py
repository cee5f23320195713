APP_NAME = "sifpull"
ENV_PREFIX = "SIFPULL_"

# ---------------------------------------------------------------------
# Remote endpoint defaults
# ---------------------------------------------------------------------

DEFAULT_LIBRARY_URI = "https://library.sylabs.io"
DEFAULT_KEYSERVER_URI = "https://keys.sylabs.io"
DEFAULT_SHUB_REGISTRY = "singularity-hub.org"
REMOTE_CONFIG_FILE_NAME = "remote.json"

# ---------------------------------------------------------------------
# Transfer
# ---------------------------------------------------------------------

CHUNK_SIZE = 1024 * 1024
HTTP_TIMEOUT = 60
USER_AGENT = "sifpull"

SIF_LAYER_MEDIA_TYPE = "application/vnd.sylabs.sif.layer.v1.sif"
OCI_MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"

# Exit code used for every fatal pull condition
FATAL_EXIT_CODE = 255
