"""
Request errors raised by the aggregation pipeline and renderer

Each error is terminal for the current request and maps to exactly one
HTTP status and a short plain-text body.
"""


class AggregationError(Exception):
    """Base exception for request handling failures"""

    status_code = 500
    message = ""


class MissingRepository(AggregationError):
    """Repository path value was empty"""

    status_code = 404
    message = "Empty repo"


class MissingTag(AggregationError):
    """Tag path value was empty"""

    status_code = 404
    message = "Empty tag"


class RegistryUnavailable(AggregationError):
    """Registry catalog could not be fetched"""

    pass


class TagListUnavailable(AggregationError):
    """Tag list for a repository could not be fetched"""

    status_code = 404
    message = "No tags found"


class ManifestUnavailable(AggregationError):
    """Manifest for a repository:tag could not be fetched"""

    status_code = 404
    message = "Manifest not found"


class ManifestDecodeError(AggregationError):
    """Manifest history entry is not valid v1 compatibility JSON"""

    pass


class ScanError(AggregationError):
    """Vulnerability scan failed"""

    pass


class SerializationError(AggregationError):
    """Result could not be encoded as JSON"""

    pass


class RenderError(AggregationError):
    """View template could not be rendered"""

    pass
