import base64
import re
import requests
from requests.exceptions import HTTPError, RequestException
from typing import Dict, Optional
from urllib.parse import urljoin
from pydantic import ValidationError
from .models import CatalogResponse, ManifestV1, RegistryConfig, TagsResponse
from .exceptions import (
    RegistryConnectionError,
    RegistryNotFoundError,
    RegistryValidationError,
)
import logging

logger = logging.getLogger(__name__)

MANIFEST_V1_MEDIA_TYPES = ", ".join(
    [
        "application/vnd.docker.distribution.manifest.v1+prettyjws",
        "application/vnd.docker.distribution.manifest.v1+json",
    ]
)

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


class Registry:
    """Docker Registry v2 client with Pydantic validation"""

    def __init__(self, config: Optional[RegistryConfig] = None):
        self.config = config or RegistryConfig()
        self.url = str(self.config.url)
        self.domain = self.config.domain
        self._tokens: Dict[str, str] = {}
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create configured requests session"""
        session = requests.session()
        session.headers.update({"User-Agent": "reg-server/0.1.0"})
        session.verify = self.config.verify_tls
        if self.config.username:
            session.auth = (self.config.username, self.config.password or "")
        return session

    def _fetch_token(self, challenge: str) -> Optional[str]:
        """Exchange a Bearer challenge for a token from the auth realm"""
        params = dict(_CHALLENGE_PARAM.findall(challenge))
        realm = params.pop("realm", None)
        if not realm:
            return None

        scope = params.get("scope", "")
        # A challenge means any cached token for this scope is no longer accepted
        self._tokens.pop(scope, None)

        logger.debug(f"Requesting registry token from {realm} (scope={scope})")
        response = self._session.get(realm, params=params, timeout=self.config.timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            logger.debug(f"Unexpected token response from {realm}: {data!r}")
            return None
        token = data.get("token") or data.get("access_token")
        if token:
            self._tokens[scope] = token
        return token

    def _get(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """GET with one Bearer-token retry; raises for HTTP errors"""
        headers = dict(headers or {})
        response = self._session.get(url, headers=headers, timeout=self.config.timeout)

        challenge = response.headers.get("WWW-Authenticate", "")
        if response.status_code == 401 and challenge.lower().startswith("bearer"):
            token = self._fetch_token(challenge)
            if token:
                headers["Authorization"] = f"Bearer {token}"
                response = self._session.get(
                    url, headers=headers, timeout=self.config.timeout
                )

        response.raise_for_status()
        return response

    def auth_headers(self, repo: str) -> Dict[str, str]:
        """Headers a third party needs to pull blobs of ``repo``"""
        token = self._tokens.get(f"repository:{repo}:pull")
        if token:
            return {"Authorization": f"Bearer {token}"}
        if self.config.username:
            credentials = f"{self.config.username}:{self.config.password or ''}"
            encoded = base64.b64encode(credentials.encode()).decode()
            return {"Authorization": f"Basic {encoded}"}
        return {}

    def blob_url(self, repo: str, digest: str) -> str:
        """Absolute URL of a layer blob"""
        return f"{self.url}/v2/{repo}/blobs/{digest}"

    def is_alive(self) -> bool:
        """Check if registry is alive"""
        try:
            response = self._session.get(f"{self.url}/v2/", timeout=self.config.timeout)
            return response.status_code in (200, 401)
        except RequestException as e:
            logger.debug(f"Registry health check failed: {e}")
            return False

    def list_repositories(self) -> CatalogResponse:
        """
        List all repositories in the catalog, following pagination links

        Returns:
            CatalogResponse with repository list in registry order

        Raises:
            RegistryConnectionError: If request fails
            RegistryValidationError: If response doesn't match schema
        """
        repositories = []
        seen = set()
        url = f"{self.url}/v2/_catalog"
        try:
            while url and url not in seen:
                seen.add(url)
                response = self._get(url)
                page = CatalogResponse.model_validate(response.json())
                repositories.extend(page.repositories)

                next_link = response.links.get("next", {}).get("url")
                url = urljoin(self.url, next_link) if next_link else None

            return CatalogResponse(repositories=repositories)

        except RequestException as e:
            logger.debug(f"Failed to list repositories: {e}")
            raise RegistryConnectionError(f"Repository listing failed: {e}")
        except (ValidationError, ValueError) as e:
            logger.debug(f"Invalid catalog response: {e}")
            raise RegistryValidationError(f"Invalid catalog format: {e}")

    def list_tags(self, repo: str) -> TagsResponse:
        """
        List all tags for a repository

        Args:
            repo: Repository name (e.g., "library/alpine")

        Returns:
            TagsResponse with tags in registry order
        """
        try:
            url = f"{self.url}/v2/{repo}/tags/list"
            logger.debug(f"Fetching tags from: {url}")

            response = self._get(url)

            return TagsResponse.model_validate(response.json())

        except HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise RegistryNotFoundError(f"Repository {repo} not found")
            logger.debug(f"Failed to list tags for {repo}: {e}")
            raise RegistryConnectionError(f"Tag listing failed: {e}")
        except RequestException as e:
            logger.debug(f"Failed to list tags for {repo}: {e}")
            raise RegistryConnectionError(f"Tag listing failed: {e}")
        except (ValidationError, ValueError) as e:
            logger.debug(f"Invalid tags response for {repo}: {e}")
            raise RegistryValidationError(f"Invalid tags format: {e}")

    def get_manifest_v1(self, repo: str, tag: str) -> ManifestV1:
        """
        Get the schema 1 manifest for a specific tag

        Schema 1 is the only manifest format that embeds per-layer history,
        which carries the image creation time.

        Args:
            repo: Repository name
            tag: Tag identifier

        Returns:
            ManifestV1 with layers and history
        """
        try:
            response = self._get(
                f"{self.url}/v2/{repo}/manifests/{tag}",
                headers={"Accept": MANIFEST_V1_MEDIA_TYPES},
            )

            # prettyjws manifests are not served as application/json
            return ManifestV1.model_validate_json(response.content)

        except HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise RegistryNotFoundError(f"Manifest {repo}:{tag} not found")
            logger.debug(f"Failed to get manifest {repo}:{tag}: {e}")
            raise RegistryConnectionError(f"Manifest fetch failed: {e}")
        except RequestException as e:
            logger.debug(f"Failed to get manifest {repo}:{tag}: {e}")
            raise RegistryConnectionError(f"Manifest fetch failed: {e}")
        except ValidationError as e:
            logger.debug(f"Invalid manifest response for {repo}:{tag}: {e}")
            raise RegistryValidationError(f"Invalid manifest format: {e}")

    def close(self):
        """Close the underlying session"""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exec_type, exec_val, exec_tb):
        self.close()
