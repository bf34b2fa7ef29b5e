import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from .config import load_config
from .errors import DeployerError
from .reconciler import Reconciler
from .runtime import connect
from .settings import get_settings

console = Console()

USAGE = "Usage: docker-services-deployer <services-file>"


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def deploy(source: str) -> None:
    """Loads the services file and runs a single reconciliation pass against its runtime."""
    cfg = load_config(source)
    runtime = connect(cfg.docker)

    console.print(
        Panel.fit(
            "[bold]Docker Services Deployer[/bold]\n"
            f"Config: [blue]{source}[/blue]\n"
            f"Services: [blue]{', '.join(s.name for s in cfg.services) or '-'}[/blue]",
            title="Reconcile",
        )
    )
    Reconciler(runtime).reconcile(cfg.services)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    p = argparse.ArgumentParser(
        prog="docker-services-deployer",
        description="Pull images and (re)create containers for the services in a services file",
    )
    p.add_argument("services_file", nargs="?", help="Path or http(s) URL of the services file")
    p.add_argument("--debug", action="store_true", help="Verbose output")
    args = p.parse_args(argv)

    setup_logging(args.debug or settings.DEBUG)

    source = args.services_file or settings.SERVICES_FILE
    if not source:
        console.print(f"[bold red]{USAGE}[/bold red]")
        return 1

    try:
        deploy(source)
    except DeployerError as e:
        console.print(f"[bold red]❌ ERROR:[/bold red] {escape(str(e))}")
        return 1

    console.print("[bold green]✅ All services reconciled.[/bold green]")
    return 0


def run() -> None:
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
