"""
File helpers for the command-line interface
"""
import os
from pathlib import Path

from lxml.html import HTMLParser
from lxml import etree


def get_unique_output_path(output_path: str) -> str:
    """
    Return output_path, or the first "name (n).ext" variant that does not exist yet.

    Args:
        output_path: Desired output file path

    Returns:
        A path that does not exist on disk
    """
    if not os.path.exists(output_path):
        return output_path

    base, ext = os.path.splitext(output_path)
    counter = 1
    while True:
        candidate = f"{base} ({counter}){ext}"
        if not os.path.exists(candidate):
            return candidate
        counter += 1


def default_output_path(input_path: str, target_language: str) -> str:
    """'page.html' -> 'page (French).html'"""
    base, ext = os.path.splitext(input_path)
    return f"{base} ({target_language}){ext}"


def read_html_file(path: str) -> str:
    """
    Read an HTML file as text.

    The declared charset (BOM or <meta charset>) is honoured by letting lxml
    decode the bytes; the document is returned re-serialized as a string.
    """
    data = Path(path).read_bytes()
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError:
        root = etree.fromstring(data, HTMLParser())
        return etree.tostring(root.getroottree(), method='html', encoding='unicode')


def write_text_file(path: str, content: str) -> None:
    """Write content as UTF-8, creating parent directories."""
    target = Path(path)
    if target.parent and not target.parent.exists():
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding='utf-8')
