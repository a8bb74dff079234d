import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from rich.markup import escape

from mdfetch.config import FileConfig, load_config
from mdfetch.console import configure_logging, console
from mdfetch.constants import (
    DEFAULT_CONCURRENT,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    DEFAULT_WAIT_UNTIL,
    VERSION,
    WAIT_UNTIL_OPTIONS,
)
from mdfetch.errors import ValidationError
from mdfetch.models.options import BrowserOptions, FetchOptions, ProcessOptions
from mdfetch.models.results import FetchResult
from mdfetch.refinery.processor import ContentProcessor

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Must be a positive number: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdfetch",
        description="Convert web pages to clean Markdown using HTTP or a headless browser, readability and markdownify",
    )
    parser.add_argument("urls", nargs="*", help="URLs to convert to Markdown")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-o", "--output", help="Output to file instead of stdout")
    parser.add_argument("-b", "--browser", action="store_true", help="Use headless browser mode (for SPA pages)")
    parser.add_argument("--browser-path", help="Custom Chrome/Chromium executable path")
    parser.add_argument("-R", "--no-readability", dest="readability", action="store_const", const=False, default=None,
                        help="Disable readability, keep full HTML content")
    parser.add_argument("-s", "--selector", help="Custom CSS selector to extract content")
    parser.add_argument("-f", "--file", help="Read URLs from file (one per line, # for comments)")
    parser.add_argument("-H", "--header", action="append", default=[], help="Custom HTTP header 'Key: Value' (can be repeated)")
    parser.add_argument("--proxy", help="Proxy server URL (also reads HTTP_PROXY/HTTPS_PROXY env vars)")
    parser.add_argument("-t", "--timeout", type=positive_int, help=f"Request timeout in milliseconds (default {DEFAULT_TIMEOUT})")
    parser.add_argument("--config", help="Config file path (JSON or YAML)")
    parser.add_argument("--user-agent", help=f"Custom user agent (default {DEFAULT_USER_AGENT})")
    parser.add_argument("--wait-until", choices=WAIT_UNTIL_OPTIONS, help=f"Browser wait condition (default {DEFAULT_WAIT_UNTIL})")
    parser.add_argument("--concurrent", type=positive_int,
                        help=f"Concurrent requests for batch mode (default {DEFAULT_CONCURRENT}); batches currently run sequentially")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def parse_headers(header_strings: List[str]) -> Dict[str, str]:
    """
    Parses 'Key: Value' strings. Anything without a colon is skipped with a warning.
    """
    headers = {}
    for header in header_strings:
        key, sep, value = header.partition(":")
        if not sep or not key.strip():
            logger.warning(f'Invalid header format "{header}", expected "Key: Value"')
            continue
        headers[key.strip()] = value.strip()
    return headers


def read_url_file(path: str) -> List[str]:
    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ValidationError(f"Failed to read URL file {path}: {e}") from e
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]


def build_process_options(args: argparse.Namespace, config: Optional[FileConfig] = None) -> ProcessOptions:
    """
    Resolves CLI flags over config file values over built-in defaults, once.
    """
    config = config or FileConfig()

    timeout = args.timeout or config.fetch.timeout or DEFAULT_TIMEOUT
    user_agent = args.user_agent or config.fetch.user_agent or DEFAULT_USER_AGENT
    proxy = args.proxy or config.fetch.proxy
    headers = {**config.fetch.headers, **parse_headers(args.header)}

    if args.readability is not None:
        use_readability = args.readability
    elif config.defaults.use_readability is not None:
        use_readability = config.defaults.use_readability
    else:
        use_readability = True

    browser_options = None
    if args.browser:
        browser_options = BrowserOptions(
            executable_path=args.browser_path or config.browser.executable_path,
            wait_until=args.wait_until or config.browser.wait_until or DEFAULT_WAIT_UNTIL,
            timeout=timeout,
            user_agent=user_agent,
            proxy=proxy,
        )

    return ProcessOptions(
        use_browser=args.browser,
        use_readability=use_readability,
        selector=args.selector,
        fetch_options=FetchOptions(headers=headers, proxy=proxy, timeout=timeout, user_agent=user_agent),
        browser_options=browser_options,
        conversion_options=config.conversion.to_options(),
        verbose=args.verbose,
    )


def combine_results(results: List[FetchResult]) -> str:
    parts = []
    for index, result in enumerate(results):
        if result.success:
            separator = "" if index == 0 else "\n\n---\n\n"
            parts.append(f"{separator}<!-- Source: {result.url} -->\n\n{result.markdown}")
        else:
            parts.append(f"<!-- Error processing {result.url}: {result.error.message} -->")
    return "\n".join(parts)


def report_failures(results: List[FetchResult]) -> None:
    failures = [r for r in results if not r.success]
    if not failures:
        return
    console.print(f"\n[yellow]Warning: {len(failures)} of {len(results)} URLs failed to process:[/yellow]")
    for failure in failures:
        console.print(f"  - {escape(failure.url)}: {escape(failure.error.message)}")


async def fetch_markdown(urls: List[str], options: ProcessOptions) -> str:
    processor = ContentProcessor()
    try:
        if len(urls) == 1:
            return await processor.process(urls[0], options)

        results = await processor.process_batch(urls, options)
        report_failures(results)
        return combine_results(results)
    finally:
        await processor.cleanup()


def write_output(path: str, content: str) -> None:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OSError(f"Failed to write to file {path}: {e}") from e


def main(argv: Optional[List[str]] = None):
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        urls = list(args.urls)
        if args.file:
            urls.extend(read_url_file(args.file))
        if not urls:
            raise ValidationError("At least one URL is required")

        config = load_config(args.config)
        options = build_process_options(args, config)

        concurrent = args.concurrent or config.defaults.concurrent or DEFAULT_CONCURRENT
        logger.debug(f"Batch concurrency {concurrent} requested; URLs are processed sequentially")

        markdown = asyncio.run(fetch_markdown(urls, options))

        if args.output:
            write_output(args.output, markdown)
            logger.info(f"Output written to: {args.output}")
        else:
            sys.stdout.write(markdown)
            sys.stdout.flush()
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
