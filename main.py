"""reg-server - web UI for a container image registry.

Main entry point.

Usage:
  python main.py --registry https://registry.example.com
  python main.py --registry http://localhost:5000 --clair http://localhost:6060
  REG_SERVER_REGISTRY_URL=http://localhost:5000 python main.py --port 9000
"""

import argparse
import logging

import uvicorn

from regserver.config import ServerConfig
from regserver.logging_config import configure_server_logging
from regserver.pipeline import AggregationPipeline
from regserver.registry.client import Registry
from regserver.scanner.clair import ClairScanner
from regserver.server import create_app

logger = logging.getLogger("regserver.main")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Browse a container image registry and its vulnerability scans",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Every option can also be set with a REG_SERVER_* environment variable.",
    )
    parser.add_argument("--registry", help="Registry URL (e.g. https://r.example.com)")
    parser.add_argument("--username", help="Registry username")
    parser.add_argument("--password", help="Registry password")
    parser.add_argument("--clair", help="Clair URL; scanning is disabled if unset")
    parser.add_argument("--host", help="Address to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument("--timeout", type=int, help="Registry request timeout in seconds")
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=None,
        help="Do not verify the registry TLS certificate",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ServerConfig:
    return ServerConfig.from_env(
        registry_url=args.registry,
        registry_username=args.username,
        registry_password=args.password,
        registry_timeout=args.timeout,
        verify_tls=False if args.insecure else None,
        clair_url=args.clair,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


def main(argv=None):
    config = build_config(parse_args(argv))
    configure_server_logging(config.log_level)

    registry = Registry(config.registry_config())
    scanner = None
    if config.scanning_enabled:
        scanner = ClairScanner(str(config.clair_url), timeout=config.clair_timeout)
        logger.info(f"Vulnerability scanning enabled via {config.clair_url}")
    else:
        logger.info("No clair URL configured, vulnerability scanning disabled")

    if not registry.is_alive():
        logger.warning(f"Registry at {registry.url} is not responding")

    app = create_app(AggregationPipeline(registry, scanner))
    logger.info(f"Serving {registry.domain} on http://{config.host}:{config.port}")

    try:
        uvicorn.run(app, host=config.host, port=config.port, log_config=None)
    finally:
        registry.close()
        if scanner:
            scanner.close()


if __name__ == "__main__":
    main()
