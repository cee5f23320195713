"""
ORAS backend: pulls a SIF stored as an OCI artifact from an OCI registry.

    oras://registry[:port]/repository[:tag|@digest]
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from sifpull.adapters.transfer import check_cancel, download, materialize, new_session
from sifpull.internal.constants import HTTP_TIMEOUT, OCI_MANIFEST_MEDIA_TYPE, SIF_LAYER_MEDIA_TYPE
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import CancelToken, DockerCredentials, ImageCache, OrasPullOptions
from sifpull.kernel.locator import split

logger = get_logger(__name__)

CACHE_KIND = "oras"

_CHALLENGE_RE = re.compile(r'(\w+)="([^"]*)"')


@dataclass(frozen=True)
class OrasRef:
    registry: str
    repository: str
    reference: str  # tag or digest

    @property
    def base_url(self) -> str:
        return f"https://{self.registry}/v2/{self.repository}"


def parse_oras_ref(locator: str) -> OrasRef:
    _, ref = split(locator)
    registry, sep, rest = ref.strip("/").partition("/")
    if not sep or not registry or not rest:
        raise ValueError(f"oras URI must be oras://registry/repository[:tag|@digest]: {locator}")

    if "@" in rest:
        repository, reference = rest.split("@", 1)
        if ":" in repository.rsplit("/", 1)[-1]:
            repository = repository.rsplit(":", 1)[0]
    elif ":" in rest.rsplit("/", 1)[-1]:
        repository, reference = rest.rsplit(":", 1)
    else:
        repository, reference = rest, "latest"
    if not repository or not reference:
        raise ValueError(f"invalid oras reference: {locator}")
    return OrasRef(registry=registry, repository=repository, reference=reference)


class RegistrySession:
    """
    A requests session that answers the registry's auth challenge once,
    using docker credentials when they are provided.
    """

    def __init__(self, credentials: Optional[DockerCredentials] = None):
        self.session = new_session()
        self.credentials = credentials

    def _authenticate(self, challenge: str) -> None:
        scheme, _, params = challenge.partition(" ")
        creds = (self.credentials.username, self.credentials.password) if self.credentials else None

        if scheme.lower() == "basic":
            if creds is None:
                raise RuntimeError("registry requires credentials")
            self.session.auth = creds
            return

        fields = dict(_CHALLENGE_RE.findall(params))
        realm = fields.pop("realm", None)
        if scheme.lower() != "bearer" or not realm:
            raise RuntimeError(f"unsupported registry auth challenge: {challenge}")

        r = self.session.get(realm, params=fields, auth=creds, timeout=HTTP_TIMEOUT)
        r.raise_for_status()
        body = r.json()
        token = body.get("token") or body.get("access_token")
        if not token:
            raise RuntimeError("registry token endpoint returned no token")
        self.session.headers["Authorization"] = f"Bearer {token}"

    def get(self, url: str, **kwargs) -> requests.Response:
        r = self.session.get(url, timeout=HTTP_TIMEOUT, **kwargs)
        challenge = r.headers.get("WWW-Authenticate")
        if r.status_code == 401 and challenge:
            self._authenticate(challenge)
            r = self.session.get(url, timeout=HTTP_TIMEOUT, **kwargs)
        r.raise_for_status()
        return r


def sif_layer_digest(manifest: dict) -> str:
    for layer in manifest.get("layers", []):
        if layer.get("mediaType") == SIF_LAYER_MEDIA_TYPE:
            return layer["digest"]
    raise RuntimeError("no SIF layer found in manifest")


class OrasAdapter:
    def pull_to_file(self, cache: ImageCache, dest: Path, source: str, options: OrasPullOptions,
                     cancel: CancelToken = None) -> Path:
        ref = parse_oras_ref(source)
        registry = RegistrySession(options.credentials)

        check_cancel(cancel)
        manifest = registry.get(
            f"{ref.base_url}/manifests/{ref.reference}",
            headers={"Accept": OCI_MANIFEST_MEDIA_TYPE},
        ).json()
        digest = sif_layer_digest(manifest)
        algorithm, _, hexdigest = digest.partition(":")
        if algorithm != "sha256" or not hexdigest:
            raise RuntimeError(f"unsupported layer digest: {digest}")
        logger.info("Resolved oras image", registry=ref.registry, repository=ref.repository, digest=digest)

        def fetch() -> Path:
            return download(registry.session, f"{ref.base_url}/blobs/{digest}", options.tmp_dir,
                            expected_sha256=hexdigest, cancel=cancel)

        return materialize(cache, CACHE_KIND, hexdigest, dest, fetch)
