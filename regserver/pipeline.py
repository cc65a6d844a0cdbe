"""Aggregation of registry metadata and scan results into view models."""

import logging
from datetime import datetime
from typing import List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from regserver.errors import (
    ManifestUnavailable,
    RegistryUnavailable,
    ScanError,
    TagListUnavailable,
)
from regserver.history import decode_first_entry, extract_created_at
from regserver.registry.client import Registry
from regserver.registry.exceptions import RegistryError
from regserver.registry.models import ManifestV1
from regserver.scanner.clair import ScannerError
from regserver.scanner.models import VulnerabilityReport

logger = logging.getLogger(__name__)

LATEST_TAG = "latest"


class VulnerabilityScanner(Protocol):
    """Anything that can produce a report for a manifest."""

    def vulnerabilities(
        self, registry: Registry, repo: str, tag: str, manifest: ManifestV1
    ) -> VulnerabilityReport: ...


class RepositoryRecord(BaseModel):
    """One row of a repository or tag listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    tag: Optional[str] = None
    created: Optional[datetime] = None
    uri: str
    vulnerabilities: Optional[VulnerabilityReport] = Field(
        default=None, serialization_alias="vulnerability"
    )


class AggregationResult(BaseModel):
    """Ordered records for one request, plus where they came from."""

    registry_domain: str = Field(serialization_alias="registrydomain")
    name: Optional[str] = None
    repositories: List[RepositoryRecord] = Field(default_factory=list)


def image_uri(domain: str, repo: str, tag: Optional[str] = None) -> str:
    """Pullable reference; ``latest`` is implied and left off."""
    uri = f"{domain}/{repo}"
    if tag and tag != LATEST_TAG:
        uri += f":{tag}"
    return uri


class AggregationPipeline:
    """Builds listings and reports from a registry and an optional scanner.

    Passing ``scanner=None`` disables scanning: records carry no
    vulnerability data and the vulnerability lookup returns an empty report.
    """

    def __init__(self, registry: Registry, scanner: Optional[VulnerabilityScanner] = None):
        self.registry = registry
        self.scanner = scanner

    @property
    def domain(self) -> str:
        return self.registry.domain

    @property
    def scanning_enabled(self) -> bool:
        return self.scanner is not None

    def list_repositories(self) -> AggregationResult:
        """
        List every repository in the registry catalog

        Raises:
            RegistryUnavailable: If the catalog cannot be fetched
        """
        try:
            catalog = self.registry.list_repositories()
        except RegistryError as e:
            raise RegistryUnavailable(f"getting catalog failed: {e}") from e

        records = [
            RepositoryRecord(name=repo, uri=image_uri(self.domain, repo))
            for repo in catalog.repositories
        ]
        return AggregationResult(registry_domain=self.domain, repositories=records)

    def _fetch_manifest(self, repo: str, tag: str) -> ManifestV1:
        try:
            return self.registry.get_manifest_v1(repo, tag)
        except RegistryError as e:
            raise ManifestUnavailable(
                f"getting v1 manifest for {repo}:{tag} failed: {e}"
            ) from e

    def _scan(self, repo: str, tag: str, manifest: ManifestV1) -> VulnerabilityReport:
        try:
            return self.scanner.vulnerabilities(self.registry, repo, tag, manifest)
        except (ScannerError, RegistryError) as e:
            raise ScanError(f"vulnerability scanning for {repo}:{tag} failed: {e}") from e

    def _build_tag_record(self, repo: str, tag: str) -> RepositoryRecord:
        manifest = self._fetch_manifest(repo, tag)
        created = extract_created_at(manifest)

        vulnerabilities = None
        if self.scanning_enabled:
            vulnerabilities = self._scan(repo, tag, manifest)

        return RepositoryRecord(
            name=repo,
            tag=tag,
            created=created,
            uri=image_uri(self.domain, repo, tag),
            vulnerabilities=vulnerabilities,
        )

    def list_tags(self, repo: str) -> AggregationResult:
        """
        List the tags of a repository with creation time and scan results

        Tags are processed one at a time in registry order. The first tag
        that fails aborts the whole listing; no partial result is returned.

        Raises:
            TagListUnavailable: If the tag list cannot be fetched
            ManifestUnavailable: If any tag's manifest cannot be fetched
            ManifestDecodeError: If any tag's history cannot be decoded
            ScanError: If scanning any tag fails
        """
        try:
            tags = self.registry.list_tags(repo).tags
        except RegistryError as e:
            raise TagListUnavailable(f"getting tags for {repo} failed: {e}") from e

        records = [self._build_tag_record(repo, tag) for tag in tags]
        logger.debug(f"Aggregated {len(records)} tags for {repo}")

        return AggregationResult(
            registry_domain=self.domain, name=repo, repositories=records
        )

    def get_vulnerabilities(self, repo: str, tag: str) -> VulnerabilityReport:
        """
        Vulnerability report for a single image

        Without a scanner this is the empty report, not an error.

        Raises:
            ManifestUnavailable: If the manifest cannot be fetched
            ManifestDecodeError: If the manifest history cannot be decoded
            ScanError: If the scan fails
        """
        manifest = self._fetch_manifest(repo, tag)

        # Reject malformed manifests before handing them to the scanner
        decode_first_entry(manifest)

        if not self.scanning_enabled:
            return VulnerabilityReport()

        return self._scan(repo, tag, manifest)
