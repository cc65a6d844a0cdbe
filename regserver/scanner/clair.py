"""Clair v1 vulnerability scanner client.

Clair pulls layer blobs from the registry itself; the client only tells it
where each layer lives (and how to authenticate), then reads back the
features and vulnerabilities indexed for the topmost layer.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import requests
from pydantic import BaseModel, Field, ValidationError
from requests.exceptions import RequestException

from regserver.registry.client import Registry
from regserver.registry.models import ManifestV1
from regserver.scanner.models import Vulnerability, VulnerabilityReport

logger = logging.getLogger(__name__)

# Digest of the empty tar layer docker writes for metadata-only instructions
EMPTY_LAYER_BLOB_SUM = (
    "sha256:a3ed95caeb02ffe68cdd9fd84406680ae93d633cb16422d00e8a7c22955b46ef"
)

BAD_SEVERITIES = {"High", "Critical", "Defcon1"}


class ScannerError(Exception):
    """Vulnerability scanner request failed"""

    pass


class ClairFeature(BaseModel):
    name: str = Field(alias="Name")
    version: str = Field(default="", alias="Version")
    vulnerabilities: List[Vulnerability] = Field(
        default_factory=list, alias="Vulnerabilities"
    )


class ClairLayer(BaseModel):
    name: str = Field(alias="Name")
    features: List[ClairFeature] = Field(default_factory=list, alias="Features")


class ClairLayerEnvelope(BaseModel):
    layer: ClairLayer = Field(alias="Layer")


class ClairScanner:
    """Client for the Clair v1 layer API."""

    def __init__(self, url: str, timeout: int = 120):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._session = requests.session()
        self._session.headers.update({"User-Agent": "reg-server/0.1.0"})

    @staticmethod
    def layer_digests(manifest: ManifestV1) -> List[str]:
        """Layer digests oldest first, without empty layers."""
        digests = []
        for layer in reversed(manifest.fsLayers):
            if layer.blobSum == EMPTY_LAYER_BLOB_SUM:
                continue
            digests.append(layer.blobSum)
        return digests

    def _post_layer(
        self,
        registry: Registry,
        repo: str,
        digest: str,
        parent: Optional[str],
        headers: Dict[str, str],
    ):
        body = {
            "Layer": {
                "Name": digest,
                "Path": registry.blob_url(repo, digest),
                "ParentName": parent or "",
                "Format": "Docker",
                "Headers": headers,
            }
        }
        response = self._session.post(
            f"{self.url}/v1/layers", json=body, timeout=self.timeout
        )
        response.raise_for_status()

    def _get_layer(self, digest: str) -> ClairLayer:
        response = self._session.get(
            f"{self.url}/v1/layers/{digest}",
            params={"features": "", "vulnerabilities": ""},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return ClairLayerEnvelope.model_validate(response.json()).layer

    def vulnerabilities(
        self, registry: Registry, repo: str, tag: str, manifest: ManifestV1
    ) -> VulnerabilityReport:
        """
        Scan an image and build its vulnerability report

        Args:
            registry: Registry the image lives in (Clair pulls blobs from it)
            repo: Repository name
            tag: Tag identifier
            manifest: Schema 1 manifest of repo:tag

        Returns:
            VulnerabilityReport for the image

        Raises:
            ScannerError: If any Clair request fails
        """
        report = VulnerabilityReport(
            registry_url=registry.domain,
            repo=repo,
            tag=tag,
            date=datetime.now(timezone.utc),
        )

        digests = self.layer_digests(manifest)
        if not digests:
            logger.debug(f"No layers to scan for {repo}:{tag}")
            return report

        headers = registry.auth_headers(repo)
        try:
            parent = None
            for digest in digests:
                logger.debug(f"Submitting layer {digest} of {repo}:{tag} to clair")
                self._post_layer(registry, repo, digest, parent, headers)
                parent = digest

            layer = self._get_layer(digests[-1])

        except RequestException as e:
            logger.debug(f"Clair scan of {repo}:{tag} failed: {e}")
            raise ScannerError(f"Clair request failed: {e}")
        except ValidationError as e:
            logger.debug(f"Invalid clair response for {repo}:{tag}: {e}")
            raise ScannerError(f"Invalid clair layer format: {e}")

        for feature in layer.features:
            for vuln in feature.vulnerabilities:
                report.vulns.append(vuln)
                report.vulns_by_severity.setdefault(vuln.severity, []).append(vuln)
                if vuln.severity in BAD_SEVERITIES:
                    report.bad_vulns += 1

        logger.info(
            f"Scanned {repo}:{tag}: {len(report.vulns)} vulnerabilities, "
            f"{report.bad_vulns} high or above"
        )
        return report

    def close(self):
        """Close the underlying session"""
        self._session.close()
