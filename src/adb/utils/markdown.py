"""
Small markdown helpers for pulling list items out of ticket documents.

These are deliberately line-based: ticket files are written by people and
assistants, not by a markdown renderer, so the parser only needs to find
``## Heading`` blocks and ``- item`` lines.
"""

import re

_HEADING = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_CHECKBOX = re.compile(r"^\[[ xX]\]\s*")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def extract_list_items(content: str) -> list[str]:
    """
    Extract top-level list items from markdown.

    Checkbox markers are stripped. Template placeholders such as
    ``- [Questions needing answers]`` are skipped.

    Example:
        >>> extract_list_items("- one\\n- [x] two\\n  - nested\\n- [placeholder]")
        ['one', 'two']
    """
    items: list[str] = []
    for line in content.splitlines():
        if not line.startswith(("- ", "* ")):
            continue
        item = _CHECKBOX.sub("", line[2:].strip()).strip()
        if item and not item.startswith("["):
            items.append(item)
    return items


def extract_section(content: str, *headings: str) -> str | None:
    """
    Return the body under the first matching heading, up to the next heading
    of the same or higher level.

    Heading comparison ignores case and the number of leading ``#``.
    """
    wanted = {h.lstrip("#").strip().lower() for h in headings}
    lines = content.splitlines()
    for i, line in enumerate(lines):
        match = _HEADING.match(line)
        if not match or match.group(2).strip().lower() not in wanted:
            continue
        level = len(match.group(1))
        body: list[str] = []
        for following in lines[i + 1 :]:
            next_heading = _HEADING.match(following)
            if next_heading and len(next_heading.group(1)) <= level:
                break
            body.append(following)
        return "\n".join(body)
    return None


def extract_section_items(content: str, *headings: str) -> list[str]:
    """List items under the first of ``headings`` found, or [] if none is present."""
    section = extract_section(content, *headings)
    if section is None:
        return []
    return extract_list_items(section)


def has_section(content: str, *headings: str) -> bool:
    return extract_section(content, *headings) is not None


def extract_links(content: str) -> list[str]:
    """Targets of ``[text](target)`` links, in order of appearance."""
    return [target.strip() for _, target in _LINK.findall(content)]


def extract_first_paragraph(content: str) -> str:
    """First non-heading, non-list line of text; used for summaries."""
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or _HEADING.match(stripped) or stripped.startswith(("- ", "* ", "[")):
            continue
        return stripped
    return ""
