#!/usr/bin/env python
"""
Base classes for the nodes of a DAV tree.

Every node type declares the properties it exposes as class attributes::

    class DavCollection(DavNode):
        displayname = DAVProperty(NS.DAV, "displayname", mutable=True)
        owner = DAVProperty(NS.DAV, "owner")

Reading such an attribute looks the qualified name up in ``node.props``,
assigning to a mutable one stores the value and marks the property as
dirty, so the next ``update()`` sends it to the server.
"""
import weakref
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import ClassVar
from typing import Dict
from typing import List
from typing import Mapping
from typing import Optional
from typing import Set
from typing import Tuple

from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.namespace import qname

if TYPE_CHECKING:
    from cdav.collection import DavCollection
    from cdav.davclient import DAVClient

PropSetFactory = Callable[[Dict[str, Any]], List[XMLNode]]


class DAVProperty:
    """
    Exposes one DAV property of a node as an attribute.
    """

    def __init__(self, namespace: str, name: str, mutable: bool = False) -> None:
        self.namespace = namespace
        self.name = name
        self.mutable = mutable
        self.qname = qname(namespace, name)
        self.attribute: Optional[str] = None

    def __set_name__(self, owner: type, attribute: str) -> None:
        self.attribute = attribute

    def __get__(self, instance: Optional["DavNode"], owner: type) -> Any:
        if instance is None:
            return self
        return instance.props.get(self.qname)

    def __set__(self, instance: "DavNode", value: Any) -> None:
        if not self.mutable:
            raise AttributeError(f"{self.attribute} ({self.qname}) is read-only")
        instance.props[self.qname] = value
        instance.dirty.add(self.qname)

    def __repr__(self) -> str:
        return "DAVProperty(%s%s)" % (self.qname, ", mutable" if self.mutable else "")


class DavNode:
    """
    Common ancestor of collections and objects.

    A node keeps a weak reference to the collection it was found in, the
    canonical path of the resource, the properties last seen on the
    server and the set of properties changed locally since then.
    """

    url: str
    props: Dict[str, Any]
    dirty: Set[str]

    ## property names asked for in a PROPFIND, on top of the exposed ones
    extra_prop_find_list: ClassVar[List[Tuple[str, str]]] = []
    ## encoders turning changed properties into XML for a PROPPATCH
    prop_set_factories: ClassVar[List[PropSetFactory]] = []

    def __init__(
        self,
        parent: Optional["DavCollection"],
        client: "DAVClient",
        url: str,
        props: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._parent = weakref.ref(parent) if parent is not None else None
        self.client = client
        self.url = url
        self.props = props if props is not None else {}
        self.dirty = set()
        self._prop_set_factories: List[PropSetFactory] = list(type(self).prop_set_factories)

    @property
    def parent(self) -> Optional["DavCollection"]:
        if self._parent is None:
            return None
        return self._parent()

    @classmethod
    def exposed_properties(cls) -> Dict[str, DAVProperty]:
        """All exposed properties of this node type, by attribute name"""
        exposed: Dict[str, DAVProperty] = {}
        for klass in reversed(cls.__mro__):
            for attribute, value in vars(klass).items():
                if isinstance(value, DAVProperty):
                    exposed[attribute] = value
        return exposed

    @classmethod
    def get_prop_find_list(cls) -> List[Tuple[str, str]]:
        """
        A list of all property names that should be included in
        propfind requests that may include this kind of node
        """
        names = [(p.namespace, p.name) for p in cls.exposed_properties().values()]
        for klass in reversed(cls.__mro__):
            names.extend(vars(klass).get("extra_prop_find_list", []))
        return list(dict.fromkeys(names))

    def _register_prop_set_factory(self, factory: PropSetFactory) -> None:
        self._prop_set_factories.append(factory)

    async def _update_props_from_server(self) -> None:
        """Replace the properties of this node with fresh ones from the server"""
        response = await self.client.propfind(self.url, type(self).get_prop_find_list())
        self.props = response.body or {}
        self.dirty.clear()

    async def _update_properties(self) -> bool:
        """
        Send a PROPPATCH with all properties changed since the last
        update.  Nothing is sent if no property was changed.

        Returns:
            True if a request was made
        """
        if not self.dirty:
            return False

        properties = {name: self.props.get(name) for name in sorted(self.dirty)}
        prop_set: List[XMLNode] = []
        for factory in self._prop_set_factories:
            prop_set.extend(factory(properties))

        skeleton, _set, prop = get_root_skeleton(
            (NS.DAV, "propertyupdate"), (NS.DAV, "set"), (NS.DAV, "prop")
        )
        prop.extend(prop_set)

        ## TODO: the propstat statuses in the 207 answer are not looked at, a
        ## property the server refused is forgotten like an accepted one
        await self.client.proppatch(self.url, {}, serialize(skeleton))
        self.dirty.difference_update(properties)
        return True

    def __repr__(self) -> str:
        return "%s(%s)" % (self.__class__.__name__, self.url)


class DavObject(DavNode):
    """
    A resource that is not a collection, i.e. an event or a contact.

    The body of the resource is available as ``data``.  Objects found
    through a query that did not return the body are *partial*, use
    ``fetch_complete_data`` to get it.
    """

    etag = DAVProperty(NS.DAV, "getetag", mutable=True)
    contenttype = DAVProperty(NS.DAV, "getcontenttype")
    size = DAVProperty(NS.DAV, "getcontentlength")

    extra_prop_find_list = [(NS.DAV, "resourcetype")]

    ## property holding the body, if the server delivers it in a PROPFIND / REPORT
    data_property: ClassVar[Optional[str]] = None

    def __init__(
        self,
        parent: Optional["DavCollection"],
        client: "DAVClient",
        url: str,
        props: Optional[Dict[str, Any]] = None,
        is_partial: bool = False,
    ) -> None:
        super().__init__(parent, client, url, props)
        self._is_partial = is_partial
        self._is_dirty = False
        self._data: Optional[str] = None

    @property
    def data(self) -> Optional[str]:
        if self.data_property is not None:
            return self.props.get(self.data_property)
        return self._data

    @data.setter
    def data(self, value: Optional[str]) -> None:
        self._set_data(value)
        self._is_dirty = True

    def _set_data(self, value: Optional[str]) -> None:
        if self.data_property is not None:
            self.props[self.data_property] = value
        else:
            self._data = value

    def is_partial(self) -> bool:
        return self._is_partial

    def is_dirty(self) -> bool:
        return self._is_dirty

    async def fetch_complete_data(self, force_refetch: bool = False) -> None:
        """
        Download the body of this object, unless it is known already.
        """
        if not force_refetch and not self.is_partial():
            return

        response = await self.client.get(self.url)
        self._set_data(response.body)
        self._is_partial = False
        self._is_dirty = False
        etag = response.headers.get("etag")
        if etag:
            self.props[DavObject.etag.qname] = etag

    async def copy(
        self,
        collection: "DavCollection",
        overwrite: bool = False,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "DavNode":
        """
        Copy this object into another collection.

        Returns:
            the copy, as found in the target collection
        """
        log.debug(f"copying {self.url} to {collection.url}")
        if self.parent is not None and not collection.is_same_collection_type_as(self.parent):
            raise TypeError(f"can't copy {self.url} into a different kind of collection")

        uri = self.url.rstrip("/").rpartition("/")[2]
        destination = collection.url + uri
        await self.client.copy(self.url, destination, 0, overwrite, headers)
        return await collection.find(uri)

    async def move(
        self,
        collection: "DavCollection",
        overwrite: bool = False,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Move this object into another collection.  The object keeps
        being usable, its url changes to the new location.
        """
        log.debug(f"moving {self.url} to {collection.url}")
        if self.parent is not None and not collection.is_same_collection_type_as(self.parent):
            raise TypeError(f"can't move {self.url} into a different kind of collection")

        uri = self.url.rstrip("/").rpartition("/")[2]
        destination = collection.url + uri
        await self.client.move(self.url, destination, overwrite, headers)
        self.url = destination
        self._parent = weakref.ref(collection)

    async def update(self) -> None:
        """
        Upload the body of this object, if it was changed.  The etag
        known for the object is sent along, so the server refuses the
        update if someone else changed the object in the meantime.
        """
        if not self._is_dirty:
            return

        contenttype = (self.contenttype or "application/octet-stream").split(";")[0]
        headers = {"Content-Type": f"{contenttype}; charset=utf-8"}
        if self.etag:
            headers["If-Match"] = self.etag

        response = await self.client.put(self.url, headers, self.data)
        self._is_dirty = False
        self.dirty.discard(DavObject.etag.qname)

        ## The server may or may not tell us the new etag
        etag = response.headers.get("etag")
        if not etag:
            found = await self.client.propfind(self.url, [(NS.DAV, "getetag")])
            etag = (found.body or {}).get(DavObject.etag.qname)
        self.props[DavObject.etag.qname] = etag

    async def delete(self, headers: Optional[Mapping[str, str]] = None) -> None:
        """Delete this object on the server"""
        headers = dict(headers or {})
        if self.etag and "If-Match" not in headers:
            headers["If-Match"] = self.etag
        await self.client.delete(self.url, headers)
