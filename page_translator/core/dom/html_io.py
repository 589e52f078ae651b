"""
HTML parsing and serialization helpers for content units.

Inner markup is always produced by serializing a bare <div> wrapper holding
the element's text and copies of its children, so the same libxml2 escaping
rules apply to extraction, placeholder protection and reinsertion.
"""
import copy
from typing import Optional

from lxml import etree
import lxml.html

WRAPPER_TAG = 'div'
_WRAPPER_OPEN = f'<{WRAPPER_TAG}>'
_WRAPPER_CLOSE = f'</{WRAPPER_TAG}>'


def parse_document(html: str) -> etree._Element:
    """Parse a full HTML document (or a fragment, wrapped into html/body)."""
    return lxml.html.document_fromstring(html)


def local_name(element: etree._Element) -> str:
    """Lower-case tag name without namespace ('' for comments and PIs)."""
    if not isinstance(element.tag, str):
        return ''
    return etree.QName(element).localname.lower()


def find_body(root: etree._Element) -> Optional[etree._Element]:
    """Return the <body> element, with or without XHTML namespace."""
    if local_name(root) == 'body':
        return root
    body = root.find('.//{http://www.w3.org/1999/xhtml}body')
    if body is None:
        body = root.find('.//body')
    return body


def snapshot_children(element: etree._Element) -> etree._Element:
    """Detached wrapper holding element.text and deep copies of its children."""
    wrapper = etree.Element(WRAPPER_TAG)
    wrapper.text = element.text
    for child in element:
        wrapper.append(copy.deepcopy(child))
    return wrapper


def serialize_wrapper(wrapper: etree._Element) -> str:
    """Serialize a wrapper produced by snapshot_children/parse_fragment without its own tags."""
    html = etree.tostring(wrapper, method='html', encoding='unicode', with_tail=False)
    if html == f'<{WRAPPER_TAG}/>':
        return ''
    return html[len(_WRAPPER_OPEN):-len(_WRAPPER_CLOSE)]


def inner_markup(element: etree._Element) -> str:
    """Markup content of an element (text plus children, without the element's own tags)."""
    return serialize_wrapper(snapshot_children(element))


def outer_markup(element: etree._Element) -> str:
    """Markup of the element itself, excluding its tail text."""
    return etree.tostring(element, method='html', encoding='unicode', with_tail=False)


def parse_fragment(markup: str) -> etree._Element:
    """
    Parse inner markup into a detached wrapper element.

    Raises:
        etree.ParserError: If the markup does not parse into a single wrapper
            (e.g. a stray closing tag for the wrapper).
    """
    return lxml.html.fragment_fromstring(f'{_WRAPPER_OPEN}{markup}{_WRAPPER_CLOSE}')


def replace_children(element: etree._Element, wrapper: etree._Element) -> None:
    """Replace element's text and children with those of wrapper (wrapper is emptied)."""
    for child in list(element):
        element.remove(child)
    element.text = wrapper.text
    for child in list(wrapper):
        element.append(child)


def replace_inner_markup(element: etree._Element, markup: str) -> None:
    """Parse markup and install it as the element's children, replacing prior children."""
    replace_children(element, parse_fragment(markup))


def text_of(element: etree._Element) -> str:
    """Rendered text of an element and its descendants."""
    return ''.join(element.itertext())


def is_attached(element: etree._Element, root: etree._Element) -> bool:
    """True if element is root or one of its descendants."""
    if element is root:
        return True
    for ancestor in element.iterancestors():
        if ancestor is root:
            return True
    return False


def serialize_document(root: etree._Element) -> str:
    """Serialize a parsed document back to an HTML string."""
    tree = root.getroottree()
    doctype = tree.docinfo.doctype
    html = lxml.html.tostring(tree.getroot(), encoding='unicode', method='html')
    if doctype:
        return f"{doctype}\n{html}"
    return html
