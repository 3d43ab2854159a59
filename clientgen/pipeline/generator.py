"""Generate typed client modules for every web service, one worker per service."""
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional
import logging

import click
from colorama import Fore

from config import GeneratorConfig
from clientgen.builder.template_engine import GENERATED_WARNING
from clientgen.builder.type_renderer import TypeRenderer
from clientgen.exporter.json_exporter import SchemaExporter
from clientgen.introspection.example_fetcher import ExampleFetcher
from clientgen.introspection.models import WebServiceCatalog
from clientgen.schema.errors import ClientGenError
from clientgen.schema.overrides import OverrideRegistry

from .service_processor import ServiceProcessor, ServiceResult

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "schemas.json"


class Generator:
    """Runs the service processors concurrently and writes their modules."""

    def __init__(
        self,
        fetcher: ExampleFetcher,
        registry: OverrideRegistry,
        config: Optional[GeneratorConfig] = None,
        renderer: Optional[TypeRenderer] = None,
    ):
        """
        Initialize generator.

        Args:
            fetcher: Example source, shared by all workers
            registry: Override rules, built once and never mutated
            config: Output directory, worker count, skip lists
            renderer: Type renderer for the generated modules
        """
        self.config = config or GeneratorConfig()
        self.processor = ServiceProcessor(fetcher, registry, self.config)
        self.renderer = renderer or TypeRenderer()

    def run(self, catalog: WebServiceCatalog, write: bool = True) -> List[ServiceResult]:
        """
        Process every service of the catalog.

        Services run in parallel; results keep catalog order.

        Returns:
            One ServiceResult per service
        """
        workers = max(1, self.config.workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="service") as pool:
            results = list(pool.map(self._run_service, catalog.services))

        if write:
            self.write_package(results)
        self.print_summary(results)
        return results

    def _run_service(self, service) -> ServiceResult:
        logger.info(f"Processing service at path {service.path}")
        try:
            return self.processor.process(service)
        except Exception as e:
            # one broken service must not cancel the others still in the pool
            logger.exception(f"Unexpected error in service {service.path}")
            error = e if isinstance(e, ClientGenError) else ClientGenError(f"unexpected {type(e).__name__}: {e}")
            return ServiceResult(service=service, error=error.with_context(service.endpoint, None))

    def write_package(self, results: List[ServiceResult]) -> Path:
        """Write one module per service, an __init__.py and the JSON snapshot."""
        output = self.config.output_path
        output.mkdir(parents=True, exist_ok=True)

        modules = []
        for result in results:
            if result.skipped or result.error is not None:
                continue
            try:
                source = self.renderer.render_service(result)
            except ClientGenError as e:
                e.with_context(result.endpoint, None)
                logger.error(f"Could not render module for {result.endpoint}: {e}")
                click.echo(f"{Fore.RED}   ❌ {e}")
                continue

            module = self.renderer.module_name(result.endpoint)
            with open(output / f"{module}.py", "w") as f:
                f.write(source)
            modules.append(module)

        with open(output / "__init__.py", "w") as f:
            f.write(f"{GENERATED_WARNING}\n")

        if self.config.snapshot:
            SchemaExporter().export(output / SNAPSHOT_FILENAME, results)

        logger.info(f"Wrote {len(modules)} modules to {output}")
        return output

    def print_summary(self, results: List[ServiceResult]) -> None:
        """Print per-service outcome and totals."""
        click.echo(f"\n{Fore.CYAN}{'=' * 70}")
        click.echo(f"{Fore.CYAN}📈 GENERATION SUMMARY")
        click.echo(f"{Fore.CYAN}{'=' * 70}\n")

        total_actions = 0
        total_errors = 0

        for result in results:
            if result.skipped:
                click.echo(f"{Fore.YELLOW}⏭  {result.endpoint:30s} → skipped")
                continue

            errors = len(result.errors)
            generated = sum(1 for action in result.actions if action.ok)
            status_icon = "✅" if errors == 0 else "❌"
            click.echo(f"{status_icon} {result.endpoint:30s} → {generated:4d} actions, {errors:4d} errors")
            for error in result.errors:
                click.echo(f"{Fore.RED}      {error}")

            total_actions += generated
            total_errors += errors

        color = Fore.GREEN if total_errors == 0 else Fore.RED
        click.echo(f"\n{color}TOTAL: {total_actions} actions generated, {total_errors} errors\n")
