"""Render Notion blocks as markdown."""

from typing import Any, Dict, List

Block = Dict[str, Any]


def rich_text_to_markdown(rich_text: List[Dict[str, Any]]) -> str:
    """Join rich text spans, applying annotations and links."""
    parts = []
    for span in rich_text:
        text = span.get("plain_text", "")
        if not text:
            continue
        annotations = span.get("annotations") or {}
        if annotations.get("code"):
            text = f"`{text}`"
        if annotations.get("bold"):
            text = f"**{text}**"
        if annotations.get("italic"):
            text = f"_{text}_"
        if annotations.get("strikethrough"):
            text = f"~~{text}~~"
        href = span.get("href")
        if href:
            text = f"[{text}]({href})"
        parts.append(text)
    return "".join(parts)


def plain_text(rich_text: List[Dict[str, Any]]) -> str:
    """Concatenate the plain text of rich text spans."""
    return "".join(span.get("plain_text", "") for span in rich_text)


def _file_url(payload: Dict[str, Any]) -> str:
    kind = payload.get("type")
    if kind in ("file", "external"):
        return payload.get(kind, {}).get("url", "")
    return ""


def _indent(text: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line if line else line for line in text.splitlines())


def block_to_markdown(block: Block, number: int = 1) -> str:
    """Render one block (and its nested ``children``) as markdown."""
    kind = block.get("type", "")
    payload = block.get(kind) or {}
    text = rich_text_to_markdown(payload.get("rich_text", []))
    children = blocks_to_markdown(block.get("children", []))

    if kind == "paragraph":
        rendered = text
    elif kind in ("heading_1", "heading_2", "heading_3"):
        rendered = "#" * int(kind[-1]) + " " + text
    elif kind == "bulleted_list_item":
        rendered = f"- {text}"
    elif kind == "numbered_list_item":
        rendered = f"{number}. {text}"
    elif kind == "to_do":
        mark = "x" if payload.get("checked") else " "
        rendered = f"- [{mark}] {text}"
    elif kind == "quote":
        rendered = "\n".join(f"> {line}" for line in text.splitlines() or [""])
    elif kind == "callout":
        icon = (payload.get("icon") or {}).get("emoji", "")
        rendered = f"> {icon} {text}".rstrip()
    elif kind == "code":
        language = payload.get("language", "")
        rendered = f"```{language}\n{plain_text(payload.get('rich_text', []))}\n```"
    elif kind == "equation":
        rendered = f"$$\n{payload.get('expression', '')}\n$$"
    elif kind == "divider":
        rendered = "---"
    elif kind == "image":
        caption = plain_text(payload.get("caption", []))
        rendered = f"![{caption}]({_file_url(payload)})"
    elif kind in ("bookmark", "embed", "link_preview"):
        url = payload.get("url", "")
        rendered = f"[{url}]({url})" if url else ""
    elif kind == "toggle":
        rendered = f"<details>\n<summary>{text}</summary>\n\n{children}\n</details>"
        children = ""
    else:
        rendered = text

    if children:
        if kind in ("bulleted_list_item", "numbered_list_item", "to_do"):
            rendered = f"{rendered}\n{_indent(children)}"
        else:
            rendered = f"{rendered}\n\n{children}"
    return rendered


def blocks_to_markdown(blocks: List[Block]) -> str:
    """Render a list of sibling blocks."""
    lines: List[str] = []
    number = 0
    previous_kind = None
    for block in blocks:
        kind = block.get("type")
        number = number + 1 if kind == "numbered_list_item" else 0
        rendered = block_to_markdown(block, number=number or 1)
        list_run = kind == previous_kind and kind in (
            "bulleted_list_item",
            "numbered_list_item",
            "to_do",
        )
        if lines and list_run:
            lines[-1] = f"{lines[-1]}\n{rendered}"
        else:
            lines.append(rendered)
        previous_kind = kind
    return "\n\n".join(line for line in lines if line)
