#!/usr/bin/env python3
"""clientgen - Entry point."""
import json
import logging
import sys
import os
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import click
from colorama import Fore, Style, init

from config import app_config
from clientgen import __version__
from clientgen.introspection.example_fetcher import ExampleFetcher
from clientgen.pipeline.generator import Generator
from clientgen.pipeline.service_processor import ServiceProcessor
from clientgen.schema.errors import ClientGenError
from clientgen.schema.overrides import load_registry

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    print(f"{Fore.CYAN}{'=' * 44}")
    print(f"{Fore.CYAN}║   {Fore.WHITE}clientgen{Fore.CYAN}                            ║")
    print(f"{Fore.CYAN}║   {Fore.WHITE}Typed clients from API examples{Fore.CYAN}      ║")
    print(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    print()


def configure_logging(verbose: bool):
    """Configure root logger."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s",
    )


def build_fetcher(host, auth) -> ExampleFetcher:
    """Example fetcher from CLI options and config."""
    api = app_config.sonar_api
    cache_dir = app_config.generator.cache_dir
    return ExampleFetcher(
        host=host or api.host,
        auth=auth or api.auth or None,
        timeout=api.timeout,
        cache_dir=Path(cache_dir) if cache_dir else None,
        cache_ttl=app_config.generator.cache_ttl,
    )


def load_overrides(overrides):
    """Override registry from the defaults and an optional rules file."""
    path = overrides or app_config.generator.overrides_file
    return load_registry(Path(path) if path else None)


@click.group()
@click.version_option(version=__version__)
def cli():
    """clientgen - Generate typed API clients from response examples."""
    pass


@cli.command()
@click.option("--host", help="Server URL (default: $SONAR_HOST)")
@click.option("--auth", help="Authorization header value, e.g. 'Basic YWRtaW46YWRtaW4='")
@click.option("--internal", is_flag=True, help="Include internal web services")
@click.option("--output", type=click.Path(file_okay=False), help="Output directory")
@click.option("--overrides", type=click.Path(exists=True, dir_okay=False), help="JSON override rules")
@click.option("--workers", type=int, help="Services processed in parallel")
@click.option("--snapshot/--no-snapshot", default=None, help="Write schemas.json next to the modules")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def generate(host, auth, internal, output, overrides, workers, snapshot, verbose):
    """Generate typed modules for every web service."""
    configure_logging(verbose)
    print_banner()

    config = app_config.generator
    if output:
        config.output_dir = output
    if workers:
        config.workers = workers
    if snapshot is not None:
        config.snapshot = snapshot

    try:
        registry = load_overrides(overrides)
        fetcher = build_fetcher(host, auth)
        click.echo(f"{Fore.CYAN}Connecting to {fetcher.host}...")
        catalog = fetcher.fetch_catalog(include_internals=internal or app_config.sonar_api.include_internals)
    except ClientGenError as e:
        click.echo(f"{Fore.RED}Error: {e}")
        sys.exit(1)

    click.echo(f"{Fore.GREEN}Found {len(catalog.services)} web services")
    results = Generator(fetcher, registry, config).run(catalog)

    if any(not result.ok for result in results):
        sys.exit(1)
    click.echo(f"{Fore.GREEN}✅ Generated into {config.output_dir}")


@cli.command()
@click.argument("endpoint")
@click.argument("action")
@click.option("--host", help="Server URL (default: $SONAR_HOST)")
@click.option("--auth", help="Authorization header value")
@click.option("--overrides", type=click.Path(exists=True, dir_okay=False), help="JSON override rules")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def inspect(endpoint, action, host, auth, overrides, verbose):
    """Print the inferred schema of one action as JSON."""
    configure_logging(verbose)

    try:
        registry = load_overrides(overrides)
        fetcher = build_fetcher(host, auth)
        catalog = fetcher.fetch_catalog(include_internals=True)
    except ClientGenError as e:
        click.echo(f"{Fore.RED}Error: {e}")
        sys.exit(1)

    service = catalog.get_service(endpoint)
    found = service.get_action(action) if service else None
    if found is None:
        click.echo(f"{Fore.RED}Unknown action {endpoint}/{action}")
        sys.exit(1)

    processor = ServiceProcessor(fetcher, registry, app_config.generator)
    result = processor.process_action(service.endpoint, found)
    if result.error is not None:
        click.echo(f"{Fore.RED}Error: {result.error}")
        sys.exit(1)

    click.echo(json.dumps(result.to_dict(), indent=2, sort_keys=True))


@cli.command()
@click.option("--host", help="Server URL (default: $SONAR_HOST)")
@click.option("--auth", help="Authorization header value")
@click.option("--internal", is_flag=True, help="Include internal web services")
def list_services(host, auth, internal):
    """List web services and their actions."""
    try:
        catalog = build_fetcher(host, auth).fetch_catalog(include_internals=internal)
    except ClientGenError as e:
        click.echo(f"{Fore.RED}Error: {e}")
        sys.exit(1)

    for service in catalog.services:
        skipped = app_config.generator.is_endpoint_skipped(service.endpoint)
        marker = f" {Fore.YELLOW}(skipped)" if skipped else ""
        click.echo(f"📍 {service.path}{marker}")
        for action in service.actions:
            flags = []
            if action.post:
                flags.append("POST")
            if action.has_response_example:
                flags.append("example")
            if action.has_paging():
                flags.append("paged")
            click.echo(f"  {action.key:30s} {', '.join(flags)}")


if __name__ == "__main__":
    cli()
