#!/usr/bin/env python
"""
A minimal tree-of-elements representation for request bodies, and its
serialization to wire format XML.

A node has a qualified name (a ``(namespace, local_name)`` tuple), an
ordered list of ``(key, value)`` attributes, an ordered list of child
nodes and an optional scalar value::

    skeleton, _set, prop = get_root_skeleton(
        (NS.DAV, "propertyupdate"), (NS.DAV, "set"), (NS.DAV, "prop")
    )
    prop.append(XMLNode((NS.DAV, "displayname"), value="Personal"))
    body = serialize(skeleton)
"""
import sys
from collections.abc import Mapping
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from lxml import etree
from lxml.etree import _Element

from cdav.lib import error
from cdav.lib import namespace as NS

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self

Name = Tuple[str, str]


class PrefixMap:
    """
    Namespace prefixes handed out during one serialization.  Known
    namespaces get their usual prefix, everything else gets x0, x1, ...
    in the order the namespaces are met.
    """

    def __init__(self) -> None:
        self.prefixes: Dict[str, str] = {}
        self._counter = 0

    def prefix(self, namespace: str) -> str:
        if namespace not in self.prefixes:
            prefix = NS.prefixes.get(namespace)
            if prefix is None:
                prefix = "x%d" % self._counter
                self._counter += 1
            self.prefixes[namespace] = prefix
        return self.prefixes[namespace]

    @property
    def nsmap(self) -> Dict[str, str]:
        return {prefix: namespace for namespace, prefix in self.prefixes.items()}


def _href_of(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        return value.get("href")
    return getattr(value, "href", None)


class XMLNode:
    name: Name
    value: Any = None
    attributes: List[Tuple[str, str]]
    children: List["XMLNode"]

    def __init__(
        self,
        name: Name,
        value: Any = None,
        attributes: Optional[Iterable[Tuple[str, str]]] = None,
        children: Optional[Iterable["XMLNode"]] = None,
    ) -> None:
        self.name = tuple(name)
        self.value = value
        self.attributes = list(attributes or [])
        self.children = list(children or [])

    @property
    def tag(self) -> str:
        if not self.name[0]:
            return self.name[1]
        return NS.qname(*self.name)

    def __add__(self, other: Union["XMLNode", Iterable["XMLNode"]]) -> Self:
        return self.append(other)

    def append(self, element: Union["XMLNode", Iterable["XMLNode"]]) -> Self:
        if isinstance(element, XMLNode):
            self.children.append(element)
        else:
            self.children.extend(element)
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, XMLNode):
            return NotImplemented
        return (
            self.name == other.name
            and self.value == other.value
            and self.attributes == other.attributes
            and self.children == other.children
        )

    def __repr__(self) -> str:
        return "XMLNode(%s)" % self.tag

    def __str__(self) -> str:
        return serialize(self)

    def _namespaces(self) -> Iterable[str]:
        if self.name[0]:
            yield self.name[0]
        if self.value is not None and _href_of(self.value) is not None:
            yield NS.DAV
        for child in self.children:
            yield from child._namespaces()

    def xmlelement(self, prefix_map: Optional[PrefixMap] = None) -> _Element:
        """
        Build the lxml element tree.  All namespaces used anywhere in the
        tree get their prefix in document order and are declared on the
        root element.
        """
        if prefix_map is None:
            prefix_map = PrefixMap()
        for namespace in self._namespaces():
            prefix_map.prefix(namespace)
        root = etree.Element(self.tag, nsmap=prefix_map.nsmap)
        self._fill(root)
        return root

    def _fill(self, element: _Element) -> None:
        for key, value in self.attributes:
            element.set(key, value)

        if self.value is not None:
            href = _href_of(self.value)
            if href is not None:
                etree.SubElement(element, NS.qname(NS.DAV, "href")).text = href
            else:
                element.text = str(self.value)

        for child in self.children:
            child._fill(etree.SubElement(element, child.tag))


def get_root_skeleton(root: Name, *nested: Name) -> Tuple[Any, ...]:
    """
    Build a root node with a chain of single nested children.

    Returns the root node followed by the children list of every
    nested node, innermost last.  Without nested names the children
    list of the root itself is returned.
    """
    skeleton = XMLNode(root)
    handles = []
    children = skeleton.children
    for name in nested:
        level = XMLNode(name)
        children.append(level)
        children = level.children
        handles.append(children)
    if not handles:
        handles.append(skeleton.children)
    return (skeleton, *handles)


def serialize(node: XMLNode) -> str:
    """Serialize a skeleton into an XML document (a str)"""
    xml = etree.tostring(
        node.xmlelement(),
        encoding="utf-8",
        xml_declaration=True,
        pretty_print=error.debug_dump_communication,
    )
    return xml.decode("utf-8")
