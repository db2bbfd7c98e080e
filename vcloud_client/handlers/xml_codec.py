"""
XML codec module for vCloud Director Client.
Converts between wire XML and plain mappings.
"""

from typing import Any, Dict, Optional, Union
from lxml import etree


XML_NAMESPACE = 'http://www.w3.org/XML/1998/namespace'
TEXT_KEY = '#text'
ATTRIBUTE_PREFIX = '-'


class XMLCodecError(Exception):
    """Raised when XML cannot be decoded or a mapping cannot be encoded."""
    pass


class XMLCodec:
    """
    Translates XML documents to mappings and back.

    Mapping layout:
        ``{'Root': {'-attr': 'value', '#text': 'text', 'Child': [...]}}``

    * element names keep their namespace prefix (``vcd:Name``)
    * attributes are keys prefixed with ``-``; namespace declarations made on
      an element appear as ``-xmlns`` / ``-xmlns:prefix``
      (a declaration repeating one already in scope is dropped on encode, so it
      never appears in a decoded mapping)
    * an element with neither attributes nor children decodes to its text
    * repeated children decode to a list in document order
    """

    def __init__(self):
        """Initialize XML codec."""
        self.logger = None

    def _get_logger(self):
        """Lazy logger initialization."""
        if self.logger is None:
            from vcloud_client.core.logger import get_logger
            self.logger = get_logger()
        return self.logger

    # ------------------------------------------------------------------
    # decoding

    def decode(self, content: Optional[Union[bytes, str]]) -> Dict[str, Any]:
        """
        Decode an XML document into a mapping.

        Args:
            content: XML document as bytes or text

        Returns:
            Mapping with a single root key, or an empty mapping for an empty body

        Raises:
            XMLCodecError: If the document is not well-formed XML
        """
        if content is None:
            return {}
        if isinstance(content, str):
            content = content.encode('utf-8')
        if not content.strip():
            return {}

        try:
            root = etree.fromstring(content, parser=self._parser())
        except etree.XMLSyntaxError as e:
            self._get_logger().debug(f"XML syntax error: {e}")
            raise XMLCodecError(f"Malformed XML: {e}") from e

        return {self._element_name(root): self._element_to_value(root, {})}

    @staticmethod
    def _parser():
        # lxml parsers are not thread safe, so each decode gets its own
        return etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            remove_comments=True,
            remove_pis=True,
        )

    def _element_to_value(self, element, parent_nsmap: Dict) -> Any:
        result: Dict[str, Any] = {}

        for prefix, uri in element.nsmap.items():
            if prefix not in parent_nsmap or parent_nsmap[prefix] != uri:
                key = 'xmlns' if prefix is None else f'xmlns:{prefix}'
                result[ATTRIBUTE_PREFIX + key] = uri

        for name, value in element.attrib.items():
            result[ATTRIBUTE_PREFIX + self._attribute_name(element, name)] = value

        children = [child for child in element if isinstance(child.tag, str)]
        text = ''.join(
            part for part in [element.text] + [child.tail for child in element] if part
        ).strip()

        if not result and not children:
            return text

        if text:
            result[TEXT_KEY] = text

        for child in children:
            name = self._element_name(child)
            value = self._element_to_value(child, element.nsmap)
            if name not in result:
                result[name] = value
            elif isinstance(result[name], list):
                result[name].append(value)
            else:
                result[name] = [result[name], value]

        return result

    @staticmethod
    def _element_name(element) -> str:
        local = etree.QName(element).localname
        return f"{element.prefix}:{local}" if element.prefix else local

    @staticmethod
    def _attribute_name(element, name: str) -> str:
        if not name.startswith('{'):
            return name
        qname = etree.QName(name)
        if qname.namespace == XML_NAMESPACE:
            return f"xml:{qname.localname}"
        for prefix, uri in element.nsmap.items():
            if prefix is not None and uri == qname.namespace:
                return f"{prefix}:{qname.localname}"
        return qname.localname

    # ------------------------------------------------------------------
    # encoding

    def encode(self, data: Dict[str, Any]) -> bytes:
        """
        Encode a mapping into an XML document.

        Args:
            data: Mapping with exactly one root key

        Returns:
            UTF-8 encoded XML document with declaration

        Raises:
            XMLCodecError: If the mapping cannot be represented as XML
        """
        if not isinstance(data, dict) or len(data) != 1:
            raise XMLCodecError("Mapping must have exactly one root element")

        (name, value), = data.items()
        if isinstance(value, list):
            raise XMLCodecError(f"Root element '{name}' cannot repeat")

        try:
            root = self._build_element(None, name, value, {})
        except ValueError as e:
            raise XMLCodecError(f"Cannot encode mapping: {e}") from e

        return etree.tostring(root, xml_declaration=True, encoding='UTF-8')

    def _build_element(self, parent, name: str, value: Any, scope: Dict):
        declared = {}
        if isinstance(value, dict):
            for key, uri in value.items():
                if key == '-xmlns':
                    declared[None] = str(uri)
                elif key.startswith('-xmlns:'):
                    declared[key[len('-xmlns:'):]] = str(uri)
        nsmap = {
            prefix: uri for prefix, uri in declared.items()
            if prefix not in scope or scope[prefix] != uri
        }
        scope = dict(scope)
        scope.update(nsmap)

        tag = self._clark_name(name, scope, element=True)
        if parent is None:
            element = etree.Element(tag, nsmap=nsmap or None)
        else:
            element = etree.SubElement(parent, tag, nsmap=nsmap or None)

        if isinstance(value, dict):
            for key, item in value.items():
                if key == TEXT_KEY:
                    element.text = self._text(item)
                elif key.startswith(ATTRIBUTE_PREFIX):
                    if key == '-xmlns' or key.startswith('-xmlns:'):
                        continue
                    attribute = self._clark_name(key[1:], scope, element=False)
                    element.set(attribute, self._text(item))
                else:
                    items = item if isinstance(item, list) else [item]
                    for child in items:
                        if isinstance(child, list):
                            raise XMLCodecError(f"Nested list under '{key}' cannot be encoded")
                        self._build_element(element, key, child, scope)
        elif isinstance(value, list):
            raise XMLCodecError(f"Nested list under '{name}' cannot be encoded")
        elif value is not None:
            element.text = self._text(value)

        return element

    @staticmethod
    def _clark_name(name: str, scope: Dict, element: bool) -> str:
        if ':' in name:
            prefix, local = name.split(':', 1)
            if prefix == 'xml':
                return f"{{{XML_NAMESPACE}}}{local}"
            if prefix not in scope:
                raise XMLCodecError(f"Undeclared namespace prefix '{prefix}' in '{name}'")
            return f"{{{scope[prefix]}}}{local}"
        # unprefixed attributes never take the default namespace
        if element and scope.get(None):
            return f"{{{scope[None]}}}{name}"
        return name

    @staticmethod
    def _text(value: Any) -> str:
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return str(value)
