"""
Scene document model.

A small ordered tree of tagged nodes with string attributes and text payloads,
built from ``xml.etree.ElementTree``. Accessors come in two flavours:

- required (``child``, ``attr``): raise ParseError when the schema is not met
- optional (``find``, ``get``): return None / a default

Repeated children (sources, inputs, animation channels) are always returned as
ordered lists by ``children_named``.
"""

from typing import Dict, Iterator, List, Optional, Union
from pathlib import Path
from xml.etree import ElementTree
import logging

from ..core.constants import JOINT_NODE_TYPE
from ..core.exceptions import ParseError

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Strip an ElementTree '{namespace}' prefix from a tag."""
    if tag.startswith('{'):
        return tag.split('}', 1)[1]
    return tag


class DocumentNode:
    """
    Single node of a parsed scene document.

    Nodes are treated as read-only once built.
    """

    def __init__(
        self,
        tag: str,
        attributes: Optional[Dict[str, str]] = None,
        text: str = '',
        children: Optional[List['DocumentNode']] = None
    ):
        """
        Args:
            tag: Element name without namespace
            attributes: Attribute name -> value
            text: Text payload (stripped)
            children: Ordered child nodes
        """
        self.tag = tag
        self.attributes = dict(attributes or {})
        self.text = text
        self.children: List['DocumentNode'] = list(children or [])

    @classmethod
    def from_element(cls, element: ElementTree.Element) -> 'DocumentNode':
        """Recursively convert an ElementTree element."""
        return cls(
            tag=_local_name(element.tag),
            attributes=dict(element.attrib),
            text=(element.text or '').strip(),
            children=[cls.from_element(child) for child in element],
        )

    def __repr__(self) -> str:
        ident = self.attributes.get('id') or self.attributes.get('sid') or self.attributes.get('name')
        if ident:
            return f"<{self.tag} '{ident}'>"
        return f"<{self.tag}>"

    # -------------------------------------------------------------------------
    # Child access
    # -------------------------------------------------------------------------

    def find(self, tag: str) -> Optional['DocumentNode']:
        """First child with the given tag, or None."""
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def child(self, tag: str) -> 'DocumentNode':
        """
        First child with the given tag.

        Raises:
            ParseError: If no such child exists
        """
        node = self.find(tag)
        if node is None:
            raise ParseError(f"{self!r} has no <{tag}> child")
        return node

    def children_named(self, tag: str) -> List['DocumentNode']:
        """All children with the given tag, in document order."""
        return [child for child in self.children if child.tag == tag]

    def iter(self, tag: Optional[str] = None) -> Iterator['DocumentNode']:
        """Depth-first iteration over this node and its descendants."""
        if tag is None or self.tag == tag:
            yield self
        for child in self.children:
            yield from child.iter(tag)

    def find_by_id(self, node_id: str) -> Optional['DocumentNode']:
        """Descendant whose 'id' attribute equals node_id (a leading '#' is ignored)."""
        node_id = node_id.lstrip('#')
        for node in self.iter():
            if node.attributes.get('id') == node_id:
                return node
        return None

    # -------------------------------------------------------------------------
    # Attribute access
    # -------------------------------------------------------------------------

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Attribute value or default."""
        return self.attributes.get(name, default)

    def attr(self, name: str) -> str:
        """
        Required attribute value.

        Raises:
            ParseError: If the attribute is missing
        """
        if name not in self.attributes:
            raise ParseError(f"{self!r} is missing attribute '{name}'")
        return self.attributes[name]

    @property
    def id(self) -> Optional[str]:
        return self.attributes.get('id')

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get('name')

    @property
    def short_id(self) -> Optional[str]:
        """Scoped id ('sid'), falling back to the global 'id'."""
        return self.attributes.get('sid') or self.attributes.get('id')

    @property
    def node_type(self) -> str:
        return self.attributes.get('type', 'NODE')

    @property
    def is_joint(self) -> bool:
        return self.tag == 'node' and self.node_type.upper() == JOINT_NODE_TYPE

    # -------------------------------------------------------------------------
    # Text payloads
    # -------------------------------------------------------------------------

    def float_values(self) -> List[float]:
        """Whitespace separated floats of the text payload."""
        try:
            return [float(token) for token in self.text.split()]
        except ValueError as e:
            raise ParseError(f"{self!r} holds non-numeric text: {e}") from e

    def int_values(self) -> List[int]:
        """Whitespace separated integers of the text payload."""
        try:
            return [int(token) for token in self.text.split()]
        except ValueError as e:
            raise ParseError(f"{self!r} holds non-integer text: {e}") from e

    def name_values(self) -> List[str]:
        """Whitespace separated names of the text payload."""
        return self.text.split()


# =============================================================================
# Parsing
# =============================================================================

def parse_document_string(text: Union[str, bytes]) -> DocumentNode:
    """
    Parse XML text into a DocumentNode tree.

    Raises:
        ParseError: If the text is not well-formed XML
    """
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise ParseError(f"Malformed document: {e}") from e
    return DocumentNode.from_element(root)


def parse_document(path: Union[str, Path]) -> DocumentNode:
    """
    Parse an XML file into a DocumentNode tree.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ParseError: If the file is not well-formed XML
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    logger.debug(f"Parsing document: {path}")
    try:
        root = ElementTree.parse(str(path)).getroot()
    except ElementTree.ParseError as e:
        raise ParseError(f"Malformed document {path}: {e}") from e
    return DocumentNode.from_element(root)
