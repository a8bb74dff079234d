import logging

import pytest

import mdfetch.main as main_module
import mdfetch.screen as screen_module
from mdfetch.config import FileConfig
from mdfetch.errors import ValidationError
from mdfetch.models.results import ErrorInfo, FetchFailure, FetchSuccess, ScreenshotFailure, ScreenshotSuccess


def parse(*argv):
    return main_module.build_parser().parse_args(list(argv))


def test_parse_headers_skips_malformed(caplog):
    with caplog.at_level(logging.WARNING, logger="mdfetch"):
        headers = main_module.parse_headers(["Authorization: Bearer a:b", "broken", ": empty", "X-Test:  1 "])

    assert headers == {"Authorization": "Bearer a:b", "X-Test": "1"}
    assert 'Invalid header format "broken"' in caplog.text
    assert 'Invalid header format ": empty"' in caplog.text


def test_read_url_file(tmp_path):
    path = tmp_path / "urls.txt"
    path.write_text("# list\nhttps://a.example\n\n   \n  https://b.example  \n#https://c.example\n")
    assert main_module.read_url_file(str(path)) == ["https://a.example", "https://b.example"]

    with pytest.raises(ValidationError):
        main_module.read_url_file(str(tmp_path / "missing.txt"))


def test_combine_results():
    results = [
        FetchSuccess(url="https://a.example", markdown="# A\n"),
        FetchFailure(url="https://b.example", error=ErrorInfo(kind="FetchError", message="HTTP 404: Not Found", status_code=404)),
        FetchSuccess(url="https://c.example", markdown="# C\n"),
    ]

    combined = main_module.combine_results(results)

    assert combined == (
        "<!-- Source: https://a.example -->\n\n# A\n"
        "\n<!-- Error processing https://b.example: HTTP 404: Not Found -->"
        "\n\n\n---\n\n<!-- Source: https://c.example -->\n\n# C\n"
    )


def test_defaults_without_config():
    options = main_module.build_process_options(parse("https://a.example"))

    assert options.use_browser is False
    assert options.use_readability is True
    assert options.browser_options is None
    assert options.conversion_options is None
    assert options.fetch_options.timeout == 30000
    assert options.fetch_options.user_agent == "mdfetch/1.0.0"


def test_cli_flags_override_config():
    config = FileConfig.model_validate({
        "browser": {"executablePath": "/opt/chrome", "waitUntil": "load"},
        "fetch": {"timeout": 5000, "userAgent": "cfg/1", "headers": {"X-A": "cfg", "X-B": "cfg"}, "proxy": "http://cfg:1"},
        "defaults": {"useReadability": False},
    })
    args = parse("https://a.example", "-b", "-t", "9000", "-H", "X-A: cli", "--wait-until", "domcontentloaded", "-s", "main")

    options = main_module.build_process_options(args, config)

    assert options.use_browser is True
    assert options.use_readability is False
    assert options.selector == "main"
    assert options.fetch_options.timeout == 9000
    assert options.fetch_options.user_agent == "cfg/1"
    assert options.fetch_options.headers == {"X-A": "cli", "X-B": "cfg"}
    assert options.fetch_options.proxy == "http://cfg:1"
    assert options.browser_options.executable_path == "/opt/chrome"
    assert options.browser_options.wait_until == "domcontentloaded"
    assert options.browser_options.timeout == 9000


def test_no_readability_flag_beats_config():
    config = FileConfig.model_validate({"defaults": {"useReadability": True}})
    options = main_module.build_process_options(parse("https://a.example", "-R"), config)
    assert options.use_readability is False


def test_timeout_must_be_positive():
    with pytest.raises(SystemExit):
        parse("https://a.example", "-t", "0")


def test_main_writes_markdown_to_stdout(monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)
    seen = {}

    async def fake_fetch_markdown(urls, options):
        seen["urls"] = urls
        seen["options"] = options
        return "# Hello\n"

    monkeypatch.setattr(main_module, "fetch_markdown", fake_fetch_markdown)
    (tmp_path / "urls.txt").write_text("https://b.example\n")

    main_module.main(["https://a.example", "-f", "urls.txt", "-R"])

    assert capsys.readouterr().out == "# Hello\n"
    assert seen["urls"] == ["https://a.example", "https://b.example"]
    assert seen["options"].use_readability is False


def test_main_writes_output_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    async def fake_fetch_markdown(urls, options):
        return "body\n"

    monkeypatch.setattr(main_module, "fetch_markdown", fake_fetch_markdown)
    main_module.main(["https://a.example", "-o", "out/page.md"])

    assert (tmp_path / "out" / "page.md").read_text() == "body\n"


def test_main_requires_a_url(monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as exc_info:
        main_module.main([])
    assert exc_info.value.code == 1
    assert "At least one URL is required" in capsys.readouterr().err


def test_main_reports_fetch_errors(monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)

    async def failing_fetch_markdown(urls, options):
        raise RuntimeError("HTTP 500: Internal Server Error")

    monkeypatch.setattr(main_module, "fetch_markdown", failing_fetch_markdown)

    with pytest.raises(SystemExit) as exc_info:
        main_module.main(["https://a.example"])
    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Error: HTTP 500: Internal Server Error" in captured.err


def screen_args(*argv):
    return screen_module.build_parser().parse_args(["https://a.example", *argv])


@pytest.mark.parametrize(
    "argv, message",
    [
        (["--format", "gif"], "Format must be png, jpeg, or webp"),
        (["--scale", "4"], "Scale must be between 1 and 3"),
        (["--quality", "101"], "Quality must be between 0 and 100"),
        (["-W", "0"], "Width must be a positive number"),
        (["-H", "-5"], "Height must be a positive number"),
    ],
)
def test_screen_validation(argv, message):
    with pytest.raises(ValidationError, match=message):
        screen_module.build_screenshot_options(screen_args(*argv))


def test_screen_options():
    options = screen_module.build_screenshot_options(
        screen_args("--viewport", "--format", "JPEG", "--scale", "2", "--hide", ".a, #b,,", "--wait-until", "load")
    )

    assert options.full_page is False
    assert options.format == "jpeg"
    assert options.device_scale_factor == 2
    assert options.quality == 90
    assert options.hide_selectors == [".a", "#b"]
    assert options.browser_options.wait_until == "load"
    assert options.browser_options.headless is True


def test_print_results_counts_failures(capsys):
    results = [
        ScreenshotSuccess(url="https://a.example", filepath="shots/a.png"),
        ScreenshotFailure(url="https://b.example", error=ErrorInfo(kind="ScreenshotError", message="boom")),
    ]

    assert screen_module.print_results(results) == 1
    captured = capsys.readouterr()
    assert "Saved to: shots/a.png" in captured.out
    assert "Summary: 1 succeeded, 1 failed" in captured.out
    assert "Error: boom" in captured.err


def test_screen_main_exits_on_failures(monkeypatch):
    async def fake_take_screenshots(urls, options):
        return [ScreenshotFailure(url=urls[0], error=ErrorInfo(kind="ScreenshotError", message="boom"))]

    monkeypatch.setattr(screen_module, "take_screenshots", fake_take_screenshots)
    with pytest.raises(SystemExit) as exc_info:
        screen_module.main(["https://a.example"])
    assert exc_info.value.code == 1


def test_screen_full_page_flag_wins_over_viewport():
    assert screen_module.build_screenshot_options(screen_args()).full_page is True
    assert screen_module.build_screenshot_options(screen_args("--viewport")).full_page is False
    assert screen_module.build_screenshot_options(screen_args("--viewport", "-f")).full_page is True
