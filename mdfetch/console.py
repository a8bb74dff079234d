import logging
from rich.console import Console
from rich.logging import RichHandler

# stdout is reserved for the markdown itself
console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    logger = logging.getLogger("mdfetch")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=console, show_time=False, show_path=False, markup=False))
    logger.setLevel(logging.INFO if verbose else logging.WARNING)
