#!/usr/bin/env python
"""
A collection is a DAV resource containing other resources, i.e. a
calendar, an address book or the home collection holding all calendars
of a user.

The members of a collection are found through a depth 1 PROPFIND.  Every
path in the answer is turned into a node of the most specific type
known to the collection: objects are picked by their content type,
collections by their resource type.  The mapping from those identifiers
to node classes is held in a ``FactoryRegistry``; the concrete models
register the types they know how to handle, and anything unknown ends
up as a plain ``DavObject`` or ``DavCollection``.
"""
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

from cdav.davobject import DAVProperty
from cdav.davobject import DavNode
from cdav.davobject import DavObject
from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.namespace import qname
from cdav.lib.string_utility import uri as available_uri
from cdav.models.eventlistener import DAVEventListener
from cdav.propset import dav_collection_prop_set

if TYPE_CHECKING:
    from cdav.davclient import DAVClient
    from cdav.davclient import DAVResponse

NodeFactory = Callable[..., DavNode]

RESOURCETYPE = qname(NS.DAV, "resourcetype")
GETCONTENTTYPE = qname(NS.DAV, "getcontenttype")
COLLECTION = qname(NS.DAV, "collection")


class FactoryRegistry:
    """
    Maps resource types (``{namespace}name`` of an element inside
    ``d:resourcetype``) to collection classes and content types
    (``text/calendar``) to object classes.  A later registration for the
    same identifier replaces the earlier one.
    """

    def __init__(
        self,
        collection_factories: Optional[Mapping[str, NodeFactory]] = None,
        object_factories: Optional[Mapping[str, NodeFactory]] = None,
    ) -> None:
        self.collection_factories: Dict[str, NodeFactory] = dict(collection_factories or {})
        self.object_factories: Dict[str, NodeFactory] = dict(object_factories or {})

    def register_collection_factory(self, identifier: str, factory: NodeFactory) -> None:
        self.collection_factories[identifier] = factory

    def register_object_factory(self, identifier: str, factory: NodeFactory) -> None:
        self.object_factories[identifier] = factory

    def collection_factory(self, identifier: Optional[str]) -> Optional[NodeFactory]:
        if identifier is None:
            return None
        return self.collection_factories.get(identifier)

    def object_factory(self, identifier: str) -> Optional[NodeFactory]:
        return self.object_factories.get(identifier)


class DavCollection(DAVEventListener, DavNode):
    """
    A generic WebDAV collection.

    Events dispatched: ``update`` (after a successful PROPPATCH, with the
    names of the properties sent) and ``delete`` (after the collection
    was deleted on the server).
    """

    displayname = DAVProperty(NS.DAV, "displayname", mutable=True)
    owner = DAVProperty(NS.DAV, "owner")
    resourcetype = DAVProperty(NS.DAV, "resourcetype")
    sync_token = DAVProperty(NS.DAV, "sync-token")
    current_user_privilege_set = DAVProperty(NS.DAV, "current-user-privilege-set")

    ## defaults, copied into the registry of every instance
    collection_factories: ClassVar[Dict[str, NodeFactory]] = {}
    object_factories: ClassVar[Dict[str, NodeFactory]] = {}
    prop_set_factories = [dav_collection_prop_set]

    def __init__(
        self,
        parent: Optional["DavCollection"],
        client: "DAVClient",
        url: str,
        props: Optional[Dict[str, Any]] = None,
    ) -> None:
        ## This is a collection, so always make sure to end with a /
        if not url.endswith("/"):
            url += "/"
        super().__init__(parent, client, url, props)

        self.registry = FactoryRegistry()
        self.children_names: Set[str] = set()
        self._prop_find_list: List[Tuple[str, str]] = (
            DavObject.get_prop_find_list() + DavCollection.get_prop_find_list()
        )
        for identifier, factory in type(self).collection_factories.items():
            self._register_collection_factory(identifier, factory)
        for identifier, factory in type(self).object_factories.items():
            self._register_object_factory(identifier, factory)

    @property
    def prop_find_list(self) -> List[Tuple[str, str]]:
        """What a PROPFIND for the members of this collection asks for"""
        return list(dict.fromkeys(self._prop_find_list))

    async def find_all(self) -> List[DavNode]:
        """
        Returns:
            all members of this collection
        """
        response = await self.client.propfind(self.url, self.prop_find_list, 1)
        return self._handle_multi_status_response(response, False)

    async def find_all_by_filter(self, predicate: Callable[[DavNode], bool]) -> List[DavNode]:
        """
        Returns:
            all members of this collection ``predicate`` returns True for
        """
        return [node for node in await self.find_all() if predicate(node)]

    async def find(self, uri: str) -> DavNode:
        """
        Find one member of this collection by its name.

        Args:
            uri: the name of the member, relative to this collection

        Raises:
            IndexError if the server did not return the resource
        """
        path = self.url + uri
        response = await self.client.propfind(path, self.prop_find_list, 0)
        response.body = {path: response.body} if response.body is not None else {}
        return self._handle_multi_status_response(response, False)[0]

    async def create_collection(
        self, name: str, props: Optional[List[XMLNode]] = None
    ) -> DavNode:
        """
        Create a new collection inside this one, RFC 5689 extended MKCOL.

        You usually don't want to call this method directly but use
        ``CalendarHome.create_calendar_collection`` or
        ``AddressBookHome.create_address_book_collection`` instead.

        Args:
            name: a display name, the actual name of the collection is
                  derived from it.
            props: XML nodes of the properties to set on creation.
        """
        log.debug(f"creating a collection in {self.url}")

        if not props:
            props = [
                XMLNode((NS.DAV, "resourcetype"), children=[XMLNode((NS.DAV, "collection"))])
            ]

        skeleton, _set, prop = get_root_skeleton(
            (NS.DAV, "mkcol"), (NS.DAV, "set"), (NS.DAV, "prop")
        )
        prop.extend(props)

        uri = self._get_available_name_from_token(name)
        await self.client.mkcol(self.url + uri, {}, serialize(skeleton))
        return await self.find(uri + "/")

    async def create_object(
        self, name: str, headers: Optional[Mapping[str, str]], data: Any
    ) -> DavNode:
        """
        Upload a new object into this collection.

        You usually don't want to call this method directly but use
        ``Calendar.create_vobject`` or ``AddressBook.create_vcard``.
        """
        log.debug(f"creating an object in {self.url}")

        await self.client.put(self.url + name, headers, data)
        return await self.find(name)

    async def update(self) -> None:
        """
        Send a PROPPATCH with all properties that were changed.  No
        request is made if nothing changed.
        """
        sent = set(self.dirty)
        if await self._update_properties():
            self.dispatch_event("update", sent)

    async def delete(self, headers: Optional[Mapping[str, str]] = None) -> None:
        """Delete this collection on the server, with everything in it"""
        await self.client.delete(self.url, headers)
        self.dispatch_event("delete")

    def is_readable(self) -> bool:
        return qname(NS.DAV, "read") in (self.current_user_privilege_set or [])

    def is_writeable(self) -> bool:
        return qname(NS.DAV, "write") in (self.current_user_privilege_set or [])

    def is_same_collection_type_as(self, collection: "DavCollection") -> bool:
        """True if both collections have exactly the same resource types"""
        return set(self.resourcetype or []) == set(collection.resourcetype or [])

    def _register_collection_factory(self, identifier: str, factory: NodeFactory) -> None:
        self.registry.register_collection_factory(identifier, factory)
        if hasattr(factory, "get_prop_find_list"):
            self._prop_find_list.extend(factory.get_prop_find_list())

    def _register_object_factory(self, identifier: str, factory: NodeFactory) -> None:
        self.registry.register_object_factory(identifier, factory)
        if hasattr(factory, "get_prop_find_list"):
            self._prop_find_list.extend(factory.get_prop_find_list())

    def _get_available_name_from_token(self, token: str) -> str:
        taken = {self.client.pathname(path) for path in self.children_names}

        def is_available(name: str) -> bool:
            candidate = self.client.pathname(self.url + name)
            return candidate not in taken and candidate + "/" not in taken

        return available_uri(token, is_available)

    def _is_own_path(self, path: str) -> bool:
        if path == self.url or path + "/" == self.url:
            return True
        own = self.client.pathname(self.url).rstrip("/")
        return self.client.pathname(path).rstrip("/") == own

    def _handle_multi_status_response(
        self,
        response: "DAVResponse",
        is_partial: bool = False,
        registry: Optional[FactoryRegistry] = None,
    ) -> List[DavNode]:
        """
        Turn a reduced multi status answer into member nodes.

        Args:
            response: the response, its body ``{path: {property: value}}``
            is_partial: whether the objects lack their data
            registry: the factories to use, defaults to the ones of this
                      collection

        Returns:
            one new node for every path except this collection itself,
            in the order of the response
        """
        if registry is None:
            registry = self.registry

        index = []
        children: List[DavNode] = []
        for path, found_props in (response.body or {}).items():
            ## The server always includes the collection itself in a
            ## depth 1 answer, we are not interested in it
            if self._is_own_path(path):
                continue

            index.append(path)
            url = self.client.pathname(path)
            props = dict(found_props or {})
            resourcetype = props.get(RESOURCETYPE) or []
            contenttype = props.get(GETCONTENTTYPE)

            ## empty resourcetype property => this is no collection
            if not resourcetype and contenttype:
                log.debug(f"{path} was identified as a file")
                mimetype = contenttype.split(";")[0].strip()
                factory = registry.object_factory(mimetype)
                if factory is None:
                    log.debug(
                        f"no constructor for content-type {mimetype} ({path}) registered, treating as generic object"
                    )
                    factory = DavObject
                children.append(factory(self, self.client, url, props, is_partial))
                continue

            log.debug(f"{path} was identified as a collection")
            collection_type = next((r for r in resourcetype if r != COLLECTION), None)
            factory = registry.collection_factory(collection_type)
            if factory is None:
                log.debug(
                    f"no constructor for collection-type {collection_type} ({path}) registered, treating as generic collection"
                )
                factory = DavCollection
            children.append(factory(self, self.client, url, props))

        self.children_names.update(index)
        return children
