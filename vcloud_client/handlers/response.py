"""
Response wrapper for decoded vCloud Director documents.
"""

from typing import Any, Dict, List, Optional


class VCloudObject:
    """
    A decoded XML document bound to the client that fetched it.

    The client reference lets callers follow links embedded in the document
    (``Link`` elements, the root ``href``) without threading the client around.
    """

    def __init__(self, data: Dict[str, Any], api):
        """
        Args:
            data: Decoded document, as returned by XMLCodec.decode
            api: APIClient used for follow-up requests
        """
        self.data = data
        self.api = api

    def __repr__(self):
        href = self.href
        return f"<VCloudObject {self.type or 'empty'}{' ' + href if href else ''}>"

    def __bool__(self):
        return bool(self.data)

    @property
    def root_name(self) -> Optional[str]:
        """Root element name as it appears in the document."""
        return next(iter(self.data), None)

    @property
    def type(self) -> Optional[str]:
        """Root element name without namespace prefix, e.g. ``Org`` or ``Task``."""
        name = self.root_name
        return name.split(':', 1)[-1] if name else None

    @property
    def root(self) -> Any:
        name = self.root_name
        return self.data[name] if name else {}

    @property
    def attributes(self) -> Dict[str, str]:
        """Attributes of the root element, without the ``-`` prefix."""
        root = self.root
        if not isinstance(root, dict):
            return {}
        return {
            key[1:]: value for key, value in root.items()
            if key.startswith('-') and key != '-xmlns' and not key.startswith('-xmlns:')
        }

    @property
    def href(self) -> Optional[str]:
        return self.attributes.get('href')

    @property
    def name(self) -> Optional[str]:
        return self.attributes.get('name')

    @property
    def id(self) -> Optional[str]:
        return self.attributes.get('id')

    def __getitem__(self, key: str) -> Any:
        root = self.root
        if not isinstance(root, dict):
            raise KeyError(key)
        return root[key]

    def get(self, path: str, default: Any = None) -> Any:
        """
        Look up a value below the root element.

        Args:
            path: ``/``-separated element names, e.g. ``'Owner/User/-name'``;
                numeric segments index into repeated elements
            default: Returned when any segment is missing

        Returns:
            The value found, or default
        """
        value = self.root
        for segment in path.strip('/').split('/'):
            if isinstance(value, list) and segment.isdigit():
                index = int(segment)
                if index >= len(value):
                    return default
                value = value[index]
            elif isinstance(value, dict) and segment in value:
                value = value[segment]
            else:
                return default
        return value

    def links(self, rel: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Return the root's ``Link`` elements.

        Args:
            rel: Only return links with this ``rel`` attribute
        """
        root = self.root
        found = root.get('Link', []) if isinstance(root, dict) else []
        if isinstance(found, dict):
            found = [found]
        if rel is None:
            return list(found)
        return [link for link in found if link.get('-rel') == rel]

    def follow(self, rel: str) -> 'VCloudObject':
        """
        GET the first link with the given ``rel``.

        Raises:
            KeyError: If the document has no such link
        """
        for link in self.links(rel):
            if link.get('-href'):
                return self.api.get(link['-href'])
        raise KeyError(f"No '{rel}' link on {self.type}")

    def refetch(self) -> 'VCloudObject':
        """
        GET the document again from its own ``href``.

        Raises:
            KeyError: If the root element carries no href
        """
        if not self.href:
            raise KeyError(f"{self.type} has no href")
        return self.api.get(self.href)
