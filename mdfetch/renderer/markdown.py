import re
from typing import Optional
from bs4 import Tag
from markdownify import ASTERISK, ATX, UNDERLINED
from markdownify import MarkdownConverter as BaseMarkdownConverter
from mdfetch.errors import ConversionError
from mdfetch.models.options import ConversionOptions

LANGUAGE_CLASS = re.compile(r"language-(\w+)")


def clean_markdown(markdown: str) -> str:
    """
    Strips trailing whitespace on every line, collapses runs of blank lines
    to a single one and ends the document with exactly one newline.
    """
    markdown = re.sub(r"[ \t]+$", "", markdown, flags=re.MULTILINE)
    markdown = re.sub(r"\n{3,}", "\n\n", markdown)
    return markdown.lstrip("\n").rstrip() + "\n"


def _leading_code(el: Tag) -> Optional[Tag]:
    for child in el.children:
        if isinstance(child, Tag):
            return child if child.name == "code" else None
        if str(child).strip():
            return None
    return None


class PageConverter(BaseMarkdownConverter):
    """
    markdownify with image and code block rules that keep titles and
    `language-xxx` hints.
    """

    def __init__(self, code_block_style: str = "fenced", **kwargs):
        super().__init__(**kwargs)
        self.code_block_style = code_block_style

    def convert_img(self, el, text, parent_tags):
        src = el.get("src") or ""
        alt = el.get("alt") or ""
        title = el.get("title") or ""

        if not src:
            return ""
        if title:
            return f'![{alt}]({src} "{title}")'
        return f"![{alt}]({src})"

    def convert_pre(self, el, text, parent_tags):
        code_el = _leading_code(el)
        code = (code_el or el).get_text().rstrip("\n")

        if self.code_block_style == "indented":
            indented = "\n".join(f"    {line}" if line else "" for line in code.split("\n"))
            return f"\n\n{indented}\n\n"

        if code_el is None:
            return super().convert_pre(el, text, parent_tags)

        match = LANGUAGE_CLASS.search(" ".join(code_el.get("class") or []))
        language = match.group(1) if match else ""
        return f"\n```{language}\n{code}\n```\n"


class MarkdownConverter:
    def __init__(self, options: Optional[ConversionOptions] = None):
        self.options = options or ConversionOptions()
        self._converter = PageConverter(
            code_block_style=self.options.code_block_style,
            heading_style=ATX if self.options.heading_style == "atx" else UNDERLINED,
            bullets=self.options.bullet_list_marker,
            strong_em_symbol=ASTERISK,
        )

    def convert(self, html: str) -> str:
        try:
            markdown = self._converter.convert(html)
        except Exception as e:
            raise ConversionError(f"Failed to convert HTML to Markdown: {e}") from e
        return clean_markdown(markdown)
