from typing import Iterable
from typing import List
from typing import Optional

from cdav.collection import DavCollection
from cdav.davobject import DAVProperty
from cdav.davobject import DavNode
from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.string_utility import uid
from cdav.models.shareable import ShareableMixin
from cdav.models.vcard import VCard
from cdav.propset import address_book_prop_set


class AddressBook(ShareableMixin, DavCollection):
    """An address book collection (RFC 6352, section 5.2)"""

    description = DAVProperty(NS.IETF_CARDDAV, "addressbook-description", mutable=True)
    enabled = DAVProperty(NS.OWNCLOUD, "enabled", mutable=True)
    read_only = DAVProperty(NS.OWNCLOUD, "read-only")

    object_factories = {"text/vcard": VCard}
    prop_set_factories = DavCollection.prop_set_factories + [address_book_prop_set]

    async def find_all_vcards(self) -> List[DavNode]:
        return await self.find_all_by_filter(lambda node: isinstance(node, VCard))

    async def create_vcard(self, data: str) -> DavNode:
        """Upload a new vCard, the name is generated"""
        name = uid() + ".vcf"
        headers = {"Content-Type": "text/vcard; charset=utf-8"}
        return await self.create_object(name, headers, data)

    async def address_book_query(
        self,
        filters: Optional[Iterable[XMLNode]] = None,
        props: Optional[Iterable[XMLNode]] = None,
        test: str = "anyof",
    ) -> List[DavNode]:
        """
        Send an addressbook-query REPORT (RFC 6352, section 8.6).

        Args:
            filters: ``cr:prop-filter`` nodes, all cards match without any
            props: the properties to ask for, by default what a ``VCard``
                   needs including the address data
            test: "anyof" or "allof", how to combine the filters
        """
        log.debug(f"sending addressbook-query to {self.url}")

        skeleton, _ = get_root_skeleton((NS.IETF_CARDDAV, "addressbook-query"))
        if props is None:
            props = [XMLNode(name) for name in VCard.get_prop_find_list()]
        props = list(props)
        is_partial = VCard.data_property not in [prop.tag for prop in props]
        skeleton.append(XMLNode((NS.DAV, "prop"), children=props))
        skeleton.append(
            XMLNode(
                (NS.IETF_CARDDAV, "filter"),
                attributes=[("test", test)],
                children=filters or [],
            )
        )

        response = await self.client.report(self.url, {"Depth": "1"}, serialize(skeleton))
        return self._handle_multi_status_response(response, is_partial)

    async def address_book_multiget(self, hrefs: Iterable[str]) -> List[DavNode]:
        """Fetch several cards with their data in one request (RFC 6352, section 8.7)"""
        hrefs = list(hrefs)
        if not hrefs:
            return []

        skeleton, _ = get_root_skeleton((NS.IETF_CARDDAV, "addressbook-multiget"))
        skeleton.append(
            XMLNode(
                (NS.DAV, "prop"),
                children=[XMLNode(name) for name in VCard.get_prop_find_list()],
            )
        )
        skeleton.append([XMLNode((NS.DAV, "href"), value=href) for href in hrefs])

        response = await self.client.report(self.url, {"Depth": "1"}, serialize(skeleton))
        return self._handle_multi_status_response(response, False)
