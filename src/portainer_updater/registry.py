"""
Docker Hub registry client for resolving remote image digests.

Resolves the config digest of the published image for one platform without
pulling it: token -> manifest list -> platform manifest -> ``config.digest``.
Missing response fields degrade to an empty digest, which callers treat as
"unknown"; transport and HTTP failures raise ``RegistryError``.
"""

import logging
from typing import Any, Optional

import requests

from portainer_updater.constants import (
    MEDIA_TYPE_MANIFEST,
    MEDIA_TYPE_MANIFEST_LIST,
    MEDIA_TYPE_OCI_INDEX,
    MEDIA_TYPE_OCI_MANIFEST,
    REGISTRY_API_URL,
    REGISTRY_AUTH_URL,
    REGISTRY_SERVICE,
)
from portainer_updater.exceptions import RegistryError
from portainer_updater.models import ImageReference

logger = logging.getLogger(__name__)


class RegistryClient:
    """
    Client for the Docker Hub token and manifest endpoints.

    Uses a requests Session for connection reuse across the three calls of a
    digest lookup. No caching: every run queries the registry.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        auth_url: str = REGISTRY_AUTH_URL,
        api_url: str = REGISTRY_API_URL,
    ):
        self._session = session or requests.Session()
        self._auth_url = auth_url
        self._api_url = api_url

    def _get_json(self, url: str, **kwargs: Any) -> Any:
        """GET ``url`` and decode the JSON body, raising RegistryError on failure."""
        try:
            response = self._session.get(url, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            raise RegistryError(url, f"HTTP {status}") from e
        except requests.RequestException as e:
            raise RegistryError(url, str(e)) from e
        except ValueError as e:
            raise RegistryError(url, f"invalid JSON response: {e}") from e

    def get_token(self, repository: str) -> str:
        """
        Obtain a pull-scoped bearer token for ``repository``.

        Returns:
            Token string, or "" if the response carries none
        """
        data = self._get_json(
            self._auth_url,
            params={
                "service": REGISTRY_SERVICE,
                "scope": f"repository:{repository}:pull",
            },
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            logger.warning(f"Registry returned no token for {repository}")
            return ""
        return token

    def _manifest(self, repository: str, reference: str, token: str, accept: str) -> Any:
        headers = {"Accept": accept}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return self._get_json(
            f"{self._api_url}/{repository}/manifests/{reference}", headers=headers
        )

    def get_manifest_list(self, repository: str, tag: str, token: str) -> dict:
        """Fetch the multi-platform manifest list for ``repository:tag``."""
        data = self._manifest(
            repository,
            tag,
            token,
            accept=f"{MEDIA_TYPE_MANIFEST_LIST}, {MEDIA_TYPE_OCI_INDEX}",
        )
        return data if isinstance(data, dict) else {}

    @staticmethod
    def select_platform_digest(manifest_list: dict, arch: str, os_name: str) -> str:
        """
        Pick the manifest digest for one platform from a manifest list.

        Args:
            manifest_list: Decoded manifest list
            arch: Registry architecture name (e.g. "amd64")
            os_name: Operating system (e.g. "linux")

        Returns:
            Manifest digest, or "" if no entry matches
        """
        manifests = manifest_list.get("manifests")
        if not isinstance(manifests, list):
            return ""
        for entry in manifests:
            if not isinstance(entry, dict):
                continue
            platform = entry.get("platform")
            if not isinstance(platform, dict):
                continue
            if platform.get("architecture") == arch and platform.get("os") == os_name:
                digest = entry.get("digest")
                return digest if isinstance(digest, str) else ""
        return ""

    def get_config_digest(self, repository: str, digest: str, token: str) -> str:
        """
        Fetch a single-platform manifest and return its config digest.

        The config digest identifies the image content and matches the image
        ID the runtime reports for a container.
        """
        data = self._manifest(
            repository,
            digest,
            token,
            accept=f"{MEDIA_TYPE_MANIFEST}, {MEDIA_TYPE_OCI_MANIFEST}",
        )
        config = data.get("config") if isinstance(data, dict) else None
        if not isinstance(config, dict):
            return ""
        config_digest = config.get("digest")
        return config_digest if isinstance(config_digest, str) else ""

    def resolve_remote_digest(self, image: str, arch: str, os_name: str) -> str:
        """
        Resolve the config digest currently published for ``image``.

        Args:
            image: Image reference (e.g. "portainer/portainer-ce:lts")
            arch: Registry architecture name
            os_name: Operating system

        Returns:
            Config digest, or "" when any step yields nothing
        """
        ref = ImageReference.parse(image)
        if not ref.is_docker_hub:
            logger.warning(f"Digest lookup only supports Docker Hub, not {ref.registry}")
            return ""

        token = self.get_token(ref.repository)
        manifest_list = self.get_manifest_list(ref.repository, ref.tag, token)
        platform_digest = self.select_platform_digest(manifest_list, arch, os_name)
        if not platform_digest:
            logger.warning(f"No {os_name}/{arch} manifest found for {ref}")
            return ""

        logger.debug(f"{os_name}/{arch} manifest digest for {ref}: {platform_digest}")
        return self.get_config_digest(ref.repository, platform_digest, token)
