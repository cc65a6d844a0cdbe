"""Tests for JSON/HTML response rendering."""

import json

import pytest

from regserver.errors import RenderError, SerializationError
from regserver.pipeline import AggregationResult, RepositoryRecord
from regserver.renderer import (
    HTML_MEDIA_TYPE,
    JSON_MEDIA_TYPE,
    ResponseRenderer,
    format_time,
    wants_json,
)
from regserver.scanner.models import VulnerabilityReport
from tests.fixtures.sample_data import REGISTRY_DOMAIN, SAMPLE_REPORT


@pytest.fixture
def renderer():
    return ResponseRenderer()


@pytest.fixture
def tags_result(sample_report):
    return AggregationResult(
        registry_domain=REGISTRY_DOMAIN,
        name="library/alpine",
        repositories=[
            RepositoryRecord(
                name="library/alpine",
                tag="latest",
                uri=f"{REGISTRY_DOMAIN}/library/alpine",
            ),
            RepositoryRecord(
                name="library/alpine",
                tag="3.18",
                uri=f"{REGISTRY_DOMAIN}/library/alpine:3.18",
                vulnerabilities=sample_report,
            ),
        ],
    )


class TestWantsJson:
    """Tests for content negotiation."""

    def test_accept_encoding_json(self):
        assert wants_json({"Accept-Encoding": "application/json"})

    def test_header_names_are_case_insensitive(self):
        assert wants_json({"accept-encoding": "application/json"})

    def test_accept_header_alone_renders_html(self):
        assert not wants_json({"Accept": "application/json"})

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Accept-Encoding": "gzip, deflate"},
            {"Accept": "*/*"},
            {"Accept": "text/html,application/json;q=0.9"},
        ],
    )
    def test_html_otherwise(self, headers):
        assert not wants_json(headers)


class TestToJson:
    """Tests for JSON output."""

    def test_report_passes_through(self, renderer, sample_report):
        """Test that a report is encoded with its wire names unchanged."""
        rendered = renderer.to_json(sample_report)

        assert rendered.media_type == JSON_MEDIA_TYPE
        data = json.loads(rendered.body)
        assert data["BadVulns"] == SAMPLE_REPORT["BadVulns"]
        assert data["Vulns"][0]["Name"] == "CVE-2023-5363"
        assert data["VulnsBySeverity"].keys() == SAMPLE_REPORT["VulnsBySeverity"].keys()
        assert rendered.body == sample_report.model_dump_json(by_alias=True).encode()

    def test_result(self, renderer, tags_result):
        data = json.loads(renderer.to_json(tags_result).body)
        assert data["registrydomain"] == REGISTRY_DOMAIN
        assert data["name"] == "library/alpine"
        assert [r["tag"] for r in data["repositories"]] == ["latest", "3.18"]
        assert data["repositories"][0]["vulnerability"] is None

    def test_unserializable_result(self, renderer):
        class Broken:
            def model_dump_json(self, **kwargs):
                raise ValueError("cannot encode")

        with pytest.raises(SerializationError):
            renderer.to_json(Broken())


class TestToHtml:
    """Tests for template output."""

    def test_repositories_view(self, renderer):
        result = AggregationResult(
            registry_domain=REGISTRY_DOMAIN,
            repositories=[
                RepositoryRecord(name="library/alpine", uri=f"{REGISTRY_DOMAIN}/library/alpine")
            ],
        )
        rendered = renderer.to_html("repositories", result)

        assert rendered.media_type == HTML_MEDIA_TYPE
        body = rendered.body.decode()
        assert "/repo/library/alpine/tags" in body
        assert f"docker pull {REGISTRY_DOMAIN}/library/alpine" in body

    def test_tags_view(self, renderer, tags_result):
        body = renderer.to_html("tags", tags_result).body.decode()

        assert body.index(">latest<") < body.index(">3.18<")
        assert "/repo/library/alpine/tag/3.18/vulns" in body
        assert "1 high or above" in body

    def test_vulns_view(self, renderer, sample_report):
        body = renderer.to_html("vulns", sample_report).body.decode()
        assert "CVE-2023-5363" in body
        assert "High (1)" in body

    def test_vulns_view_without_report(self, renderer):
        body = renderer.to_html("vulns", VulnerabilityReport()).body.decode()
        assert "No vulnerability report available" in body

    def test_values_are_escaped(self, renderer):
        result = AggregationResult(
            registry_domain=REGISTRY_DOMAIN,
            repositories=[RepositoryRecord(name="<script>", uri="x")],
        )
        body = renderer.to_html("repositories", result).body.decode()
        assert "<script>" not in body

    def test_unknown_view(self, renderer, tags_result):
        with pytest.raises(RenderError) as exc_info:
            renderer.to_html("missing", tags_result)
        assert exc_info.value.status_code == 500

    def test_broken_template(self, renderer, tags_result, tmp_path):
        (tmp_path / "tags.html").write_text("{{ result.nope.deeper }}")
        broken = ResponseRenderer(template_dir=tmp_path)
        with pytest.raises(RenderError):
            broken.to_html("tags", tags_result)


class TestRender:
    """Tests for render dispatch."""

    def test_json_requested(self, renderer, tags_result):
        rendered = renderer.render("tags", tags_result, {"Accept-Encoding": "application/json"})
        assert rendered.media_type == JSON_MEDIA_TYPE

    def test_html_by_default(self, renderer, tags_result):
        rendered = renderer.render("tags", tags_result, {"Accept-Encoding": "gzip"})
        assert rendered.media_type == HTML_MEDIA_TYPE


def test_format_time():
    assert format_time(None) == "-"
