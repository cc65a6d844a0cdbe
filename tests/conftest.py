"""Shared fixtures for tests."""

import pytest
from unittest.mock import Mock

from regserver.pipeline import AggregationPipeline
from regserver.registry.client import Registry
from regserver.registry.models import CatalogResponse, ManifestV1, TagsResponse
from regserver.scanner.models import VulnerabilityReport
from tests.fixtures.sample_data import (
    ALPINE_MANIFEST_V1,
    ALPINE_TAGS,
    REGISTRY_CATALOG,
    REGISTRY_DOMAIN,
    SAMPLE_REPORT,
)


@pytest.fixture
def alpine_manifest() -> ManifestV1:
    """Schema 1 manifest for library/alpine:3.18."""
    return ManifestV1.model_validate(ALPINE_MANIFEST_V1)


@pytest.fixture
def sample_report() -> VulnerabilityReport:
    """Scanner report for library/alpine:3.18."""
    return VulnerabilityReport.model_validate(SAMPLE_REPORT)


@pytest.fixture
def mock_registry(alpine_manifest):
    """Registry client double serving library/alpine."""
    registry = Mock(spec=Registry)
    registry.domain = REGISTRY_DOMAIN
    registry.list_repositories.return_value = CatalogResponse(**REGISTRY_CATALOG)
    registry.list_tags.return_value = TagsResponse(**ALPINE_TAGS)
    registry.get_manifest_v1.return_value = alpine_manifest
    return registry


@pytest.fixture
def mock_scanner(sample_report):
    """Scanner double returning the sample report."""
    scanner = Mock()
    scanner.vulnerabilities.return_value = sample_report
    return scanner


@pytest.fixture
def pipeline(mock_registry) -> AggregationPipeline:
    """Pipeline with scanning disabled."""
    return AggregationPipeline(mock_registry)


@pytest.fixture
def scanning_pipeline(mock_registry, mock_scanner) -> AggregationPipeline:
    """Pipeline with scanning enabled."""
    return AggregationPipeline(mock_registry, mock_scanner)
