"""
Registry smoke runner - exercises the client and pipeline against a live registry
How to run:
   REG_SERVER_REGISTRY_URL=http://localhost:5000 uv run python -m tests.runners.util_registry
"""

from regserver.config import ServerConfig
from regserver.errors import AggregationError
from regserver.history import extract_created_at
from regserver.pipeline import AggregationPipeline
from regserver.registry.client import Registry
from regserver.registry.exceptions import (
    RegistryError,
    RegistryConnectionError,
    RegistryNotFoundError,
)
import sys


def check_registry_operations(registry: Registry):
    """Walk catalog, tags and manifests with proper error handling"""

    # Check 1: Health check
    print("=" * 50)
    print(f"Checking registry health ({registry.url})...")
    if not registry.is_alive():
        print("❌ Registry is not accessible")
        sys.exit(1)
    print("✅ Registry is alive")

    # Check 2: List repositories
    print("\n" + "=" * 50)
    print("Checking repository listing...")
    try:
        catalog = registry.list_repositories()
        print(f"✅ Found {len(catalog.repositories)} repositories:")
        for repo in catalog.repositories:
            print(f"  - {repo}")
    except RegistryError as e:
        print(f"❌ Catalog failed: {e}")
        sys.exit(1)

    # Check 3: Tags and creation dates for each repository
    print("\n" + "=" * 50)
    print("Checking tags and manifests...")
    for repo in catalog.repositories:
        try:
            tags = registry.list_tags(repo)
        except RegistryError as e:
            print(f"❌ Failed to get tags for {repo}: {e}")
            continue

        for tag in tags.tags:
            try:
                manifest = registry.get_manifest_v1(repo, tag)
                created = extract_created_at(manifest)
                print(f"✅ {repo}:{tag}")
                print(f"   Layers: {len(manifest.fsLayers)}")
                print(f"   Created: {created or 'unknown'}")
            except (RegistryError, AggregationError) as e:
                print(f"❌ Failed to read {repo}:{tag}: {e}")


def check_pipeline(registry: Registry):
    """Run the tag listing the web UI shows for the first repository"""
    print("\n" + "=" * 50)
    print("Checking aggregation pipeline...")

    pipeline = AggregationPipeline(registry)
    result = pipeline.list_repositories()
    if not result.repositories:
        print("⚠️  Empty catalog, nothing to aggregate")
        return

    repo = result.repositories[0].name
    try:
        tags = pipeline.list_tags(repo)
        for record in tags.repositories:
            print(f"✅ {record.uri} (created {record.created})")
    except AggregationError as e:
        print(f"❌ Tag listing for {repo} failed with {e.status_code}: {e}")


def check_error_handling(registry: Registry):
    """Check error handling for invalid scenarios"""
    print("\n" + "=" * 50)
    print("Checking error handling...")

    try:
        registry.list_tags("nonexistent/repo")
        print("❌ Should have raised RegistryNotFoundError")
    except RegistryNotFoundError:
        print("✅ Correctly raised not found for non-existent repo")
    except RegistryConnectionError as e:
        print(f"⚠️  Registry answered with an error instead of 404: {e}")


if __name__ == "__main__":
    config = ServerConfig.from_env()
    try:
        with Registry(config.registry_config()) as registry:
            check_registry_operations(registry)
            check_pipeline(registry)
            check_error_handling(registry)
        print("\n🎉 All checks passed!")
        sys.exit(0)
    except Exception as e:
        print(f"\n💥 Unexpected error: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)
