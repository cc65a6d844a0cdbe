"""Vulnerability report models.

Field aliases follow the Clair v1 wire format so reports can be read
straight from the scanner and written back out unchanged.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Vulnerability(BaseModel):
    """A single known vulnerability affecting an image feature."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    namespace_name: str = Field(default="", alias="NamespaceName")
    description: str = Field(default="", alias="Description")
    link: str = Field(default="", alias="Link")
    severity: str = Field(default="Unknown", alias="Severity")
    fixed_by: str = Field(default="", alias="FixedBy")
    metadata: Optional[Dict[str, Any]] = Field(default=None, alias="Metadata")


class VulnerabilityReport(BaseModel):
    """Scan result for one repository:tag.

    The zero value (no arguments) is the report for an unscanned image.
    """

    model_config = ConfigDict(populate_by_name=True)

    registry_url: str = Field(default="", alias="RegistryURL")
    repo: str = Field(default="", alias="Repo")
    tag: str = Field(default="", alias="Tag")
    date: Optional[datetime] = Field(default=None, alias="Date")
    vulns: List[Vulnerability] = Field(default_factory=list, alias="Vulns")
    vulns_by_severity: Dict[str, List[Vulnerability]] = Field(
        default_factory=dict, alias="VulnsBySeverity"
    )
    bad_vulns: int = Field(default=0, alias="BadVulns")
