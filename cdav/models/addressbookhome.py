from typing import List

from cdav.collection import DavCollection
from cdav.davobject import DavNode
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.namespace import qname
from cdav.models.addressbook import AddressBook


class AddressBookHome(DavCollection):
    """The address book home collection of a principal (RFC 6352, section 7.1.1)"""

    collection_factories = {qname(NS.IETF_CARDDAV, "addressbook"): AddressBook}

    async def find_all_address_books(self) -> List[DavNode]:
        return await self.find_all_by_filter(lambda node: isinstance(node, AddressBook))

    async def create_address_book_collection(self, displayname: str) -> DavNode:
        props = [
            XMLNode(
                (NS.DAV, "resourcetype"),
                children=[
                    XMLNode((NS.DAV, "collection")),
                    XMLNode((NS.IETF_CARDDAV, "addressbook")),
                ],
            ),
            XMLNode((NS.DAV, "displayname"), value=displayname),
        ]
        return await self.create_collection(displayname, props)
