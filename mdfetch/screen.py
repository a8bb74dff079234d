import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from mdfetch.console import configure_logging, console
from mdfetch.constants import (
    DEFAULT_SCREENSHOT_QUALITY,
    DEFAULT_TIMEOUT,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    DEFAULT_WAIT_UNTIL,
    SCREENSHOT_FORMATS,
    VERSION,
    WAIT_UNTIL_OPTIONS,
)
from mdfetch.errors import ValidationError
from mdfetch.models.options import BrowserOptions, ScreenshotOptions
from mdfetch.models.results import ScreenshotResult
from mdfetch.renderer.screenshot import Screenshotter

logger = logging.getLogger(__name__)

out = Console()


def int_option(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")


def float_option(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mdfetch-screen", description="Take screenshots of web pages using a headless browser")
    parser.add_argument("urls", nargs="+", help="URLs to screenshot")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-f", "--full-page", action="store_true", help="Full page screenshot (default)")
    parser.add_argument("--viewport", action="store_true", help="Viewport-only screenshot (ignored with --full-page)")
    parser.add_argument("-W", "--width", type=int_option, default=DEFAULT_VIEWPORT_WIDTH, help="Viewport width in pixels")
    parser.add_argument("-H", "--height", type=int_option, default=DEFAULT_VIEWPORT_HEIGHT, help="Viewport height in pixels")
    parser.add_argument("--scale", type=float_option, default=1, help="Device scale factor for high-DPI screenshots (1/2/3)")
    parser.add_argument("--output", default=".", help="Output directory")
    parser.add_argument("--format", default="png", help="Image format (png|jpeg|webp)")
    parser.add_argument("--quality", type=int_option, default=DEFAULT_SCREENSHOT_QUALITY, help="JPEG/WebP quality (0-100)")
    parser.add_argument("--browser-path", help="Custom Chrome/Chromium executable path")
    parser.add_argument("--wait-until", choices=WAIT_UNTIL_OPTIONS, default=DEFAULT_WAIT_UNTIL, help="Browser wait condition")
    parser.add_argument("--timeout", type=int_option, default=DEFAULT_TIMEOUT, help="Request timeout in milliseconds")
    parser.add_argument("--user-agent", help="Custom user agent")
    parser.add_argument("--proxy", help="Proxy server URL")
    parser.add_argument("--delay", type=int_option, default=0, help="Delay before screenshot in milliseconds")
    parser.add_argument("--selector", help="CSS selector to screenshot a specific element")
    parser.add_argument("--hide", help="CSS selectors to hide (comma-separated)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def parse_hide_selectors(hide: Optional[str]) -> List[str]:
    if not hide:
        return []
    return [s.strip() for s in hide.split(",") if s.strip()]


def build_screenshot_options(args: argparse.Namespace) -> ScreenshotOptions:
    """
    Validates the raw flags and turns them into ScreenshotOptions.
    """
    fmt = (args.format or "png").lower()
    if fmt not in SCREENSHOT_FORMATS:
        raise ValidationError("Format must be png, jpeg, or webp")
    if args.scale < 1 or args.scale > 3:
        raise ValidationError("Scale must be between 1 and 3")
    if args.quality is not None and not 0 <= args.quality <= 100:
        raise ValidationError("Quality must be between 0 and 100")
    if args.width <= 0:
        raise ValidationError("Width must be a positive number")
    if args.height <= 0:
        raise ValidationError("Height must be a positive number")
    if args.timeout <= 0:
        raise ValidationError("Timeout must be a positive number")
    if args.delay < 0:
        raise ValidationError("Delay must not be negative")

    return ScreenshotOptions(
        full_page=args.full_page or not args.viewport,
        width=args.width,
        height=args.height,
        device_scale_factor=args.scale,
        output_dir=args.output or ".",
        format=fmt,
        quality=args.quality,
        browser_options=BrowserOptions(
            executable_path=args.browser_path,
            wait_until=args.wait_until,
            timeout=args.timeout,
            user_agent=args.user_agent,
            proxy=args.proxy,
            headless=True,
        ),
        delay=args.delay,
        selector=args.selector,
        hide_selectors=parse_hide_selectors(args.hide),
        verbose=args.verbose,
    )


def describe_options(options: ScreenshotOptions) -> None:
    logger.info("Screenshot options:")
    logger.info(f"  Mode: {'Full page' if options.full_page else 'Viewport only'}")
    logger.info(f"  Viewport size: {options.width}x{options.height}")
    logger.info(f"  Device scale factor: {options.device_scale_factor}x")
    if options.full_page:
        logger.info("  Note: in full-page mode the viewport sets the window size, the image size follows the page content")
    else:
        logger.info(
            f"  Expected image size: {int(options.width * options.device_scale_factor)}x"
            f"{int(options.height * options.device_scale_factor)} pixels"
        )
    logger.info(f"  Format: {options.format}")
    logger.info(f"  Output: {options.output_dir}")


def print_results(results: List[ScreenshotResult]) -> int:
    """
    Prints one entry per URL plus a summary for batches; returns the failure count.
    """
    failures = 0
    for result in results:
        if result.success:
            out.print(f"[green]✓[/green] {escape(result.url)}")
            out.print(f"  Saved to: {escape(result.filepath)}")
        else:
            failures += 1
            console.print(f"[red]✗[/red] {escape(result.url)}")
            console.print(f"  Error: {escape(result.error.message)}")
        out.print()

    if len(results) > 1:
        out.print(f"Summary: {len(results) - failures} succeeded, {failures} failed")
    return failures


async def take_screenshots(urls: List[str], options: ScreenshotOptions) -> List[ScreenshotResult]:
    async with Screenshotter(options) as screenshotter:
        return await screenshotter.screenshot_batch(urls)


def main(argv: Optional[List[str]] = None):
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = build_screenshot_options(args)
        describe_options(options)
        results = asyncio.run(take_screenshots(args.urls, options))
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if print_results(results) > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
