from mdfetch.models.page import PageMetadata

YAML_SPECIAL = (":", "#", "[", "]", "{", "}", "\n", '"', "'")


def escape_yaml_string(value: str) -> str:
    """
    Double-quotes a YAML scalar when it would otherwise be misread.
    """
    if any(ch in value for ch in YAML_SPECIAL) or value.startswith(" ") or value.endswith(" "):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return value


def generate_frontmatter(metadata: PageMetadata) -> str:
    """
    Renders page metadata as a `---` delimited YAML block followed by a blank line.
    Fields without a value are left out.
    """
    lines = ["---"]

    if metadata.title:
        lines.append(f"title: {escape_yaml_string(metadata.title)}")
    if metadata.url:
        lines.append(f"url: {metadata.url}")
    if metadata.description:
        lines.append(f"description: {escape_yaml_string(metadata.description)}")
    if metadata.author:
        lines.append(f"author: {escape_yaml_string(metadata.author)}")
    if metadata.site_name:
        lines.append(f"siteName: {escape_yaml_string(metadata.site_name)}")
    if metadata.published_time:
        lines.append(f"publishedTime: {metadata.published_time}")
    if metadata.modified_time:
        lines.append(f"modifiedTime: {metadata.modified_time}")
    if metadata.keywords:
        lines.append("keywords:")
        for keyword in metadata.keywords:
            lines.append(f"  - {escape_yaml_string(keyword)}")
    if metadata.image:
        lines.append(f"image: {metadata.image}")
    if metadata.lang:
        lines.append(f"lang: {metadata.lang}")

    lines.append("---")
    lines.append("")
    lines.append("")
    return "\n".join(lines)
