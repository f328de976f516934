"""
Minimal DOM helpers for Synapse configuration files.

Synapse tags are matched on their qualified name (``wsp:Policy``,
``xs:schema``), so documents are read with ``xml.dom.minidom`` which keeps
prefixes in ``nodeName`` instead of expanding them to namespace URIs.
"""

import logging
from pathlib import Path
from typing import List
from xml.dom import minidom
from xml.dom.minidom import Document, Element, Node
from xml.parsers.expat import ExpatError

logger = logging.getLogger(__name__)

XML_EXTENSION = ".xml"


def is_xml_file(path: Path) -> bool:
    return path.name.endswith(XML_EXTENSION)


def load_document(path: Path) -> Document | None:
    """Parse an XML file, returning None when it is unreadable or malformed."""
    try:
        return minidom.parse(str(path))
    except (ExpatError, OSError, ValueError) as e:
        logger.debug(f"Could not parse {path}: {e}")
        return None


def root_element(document: Document | None) -> Element | None:
    if document is None:
        return None
    return document.documentElement


def child_elements(element: Element) -> List[Element]:
    return [n for n in element.childNodes if n.nodeType == Node.ELEMENT_NODE]


def first_child_element(element: Element) -> Element | None:
    children = child_elements(element)
    return children[0] if children else None


def child_element(element: Element, name: str) -> Element | None:
    """First direct child element with the given qualified name."""
    for child in child_elements(element):
        if child.nodeName == name:
            return child
    return None


def inline_text(element: Element) -> str | None:
    """Text content of an element's first child node, stripped."""
    node = element.firstChild
    if node is None or node.nodeType not in (Node.TEXT_NODE, Node.CDATA_SECTION_NODE):
        return None
    text = node.data.strip()
    return text or None


def artifact_name(element: Element) -> str | None:
    """
    Resolve the display name of an artifact root element.

    APIs use ``name`` plus ``:v{version}`` when versioned. Everything else
    falls back from the ``name`` attribute to ``key`` to a ``<name>`` child.
    """
    if element.nodeName.lower() == "api":
        name = element.getAttribute("name")
        if element.hasAttribute("version"):
            name += f":v{element.getAttribute('version')}"
        return name

    if element.hasAttribute("name"):
        return element.getAttribute("name")
    if element.hasAttribute("key"):
        return element.getAttribute("key")

    name_node = child_element(element, "name")
    if name_node is not None:
        return inline_text(name_node)
    return None
