#!/usr/bin/env python
"""
Decoders turning a property element from a multi-status response into a
python value.

Every decoder is a callable ``decoder(document, node, resolver)``, where
``document`` is the root of the parsed response, ``node`` the property
element (a child of ``d:prop``) and ``resolver`` the prefix → namespace
map usable in XPath expressions on either of them.

Properties without a registered decoder are skipped by the multi-status
reducer, so new server side properties never break the client.
"""
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional

from lxml.etree import _Element

from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.namespace import qname

Decoder = Callable[[_Element, _Element, Dict[str, str]], Any]


def _tag(node: _Element) -> str:
    return str(node.tag)


def text(document: _Element, node: _Element, resolver: Dict[str, str]) -> str:
    return str(node.xpath("string(.)", namespaces=resolver))


def integer(document: _Element, node: _Element, resolver: Dict[str, str]) -> Optional[int]:
    value = text(document, node, resolver).strip()
    try:
        return int(value)
    except ValueError:
        log.debug(f"{_tag(node)} is not an integer: {value!r}")
        return None


def boolean(document: _Element, node: _Element, resolver: Dict[str, str]) -> bool:
    return text(document, node, resolver).strip().lower() in ("1", "true", "yes")


def href(document: _Element, node: _Element, resolver: Dict[str, str]) -> Optional[str]:
    hrefs = href_list(document, node, resolver)
    return hrefs[0] if hrefs else None


def href_list(document: _Element, node: _Element, resolver: Dict[str, str]) -> List[str]:
    return [str(h).strip() for h in node.xpath("d:href/text()", namespaces=resolver)]


def child_names(document: _Element, node: _Element, resolver: Dict[str, str]) -> List[str]:
    """The qualified names of all child elements, in document order"""
    return [_tag(child) for child in node.xpath("*", namespaces=resolver)]


def privilege_set(document: _Element, node: _Element, resolver: Dict[str, str]) -> List[str]:
    return [_tag(p) for p in node.xpath("d:privilege/*", namespaces=resolver)]


def report_set(document: _Element, node: _Element, resolver: Dict[str, str]) -> List[str]:
    return [
        _tag(r)
        for r in node.xpath("d:supported-report/d:report/*", namespaces=resolver)
    ]


def component_set(document: _Element, node: _Element, resolver: Dict[str, str]) -> List[str]:
    return [str(name) for name in node.xpath("cl:comp/@name", namespaces=resolver)]


def local_name_of_child(document: _Element, node: _Element, resolver: Dict[str, str]) -> Optional[str]:
    children = node.xpath("*", namespaces=resolver)
    if not children:
        return None
    return NS.split_qname(_tag(children[0]))[1]


def invite(document: _Element, node: _Element, resolver: Dict[str, str]) -> List[Dict[str, Any]]:
    """
    The ownCloud / Nextcloud ``oc:invite`` property - who a collection
    is shared with::

        [{"href": "principal:principals/users/bob",
          "common_name": "Bob", "invite_accepted": True, "writeable": False}]
    """
    shares = []
    for user in node.xpath("oc:user", namespaces=resolver):
        shares.append(
            {
                "href": str(user.xpath("string(d:href)", namespaces=resolver)),
                "common_name": str(user.xpath("string(oc:common-name)", namespaces=resolver)),
                "invite_accepted": bool(user.xpath("oc:invite-accepted", namespaces=resolver)),
                "writeable": bool(user.xpath("oc:access/oc:read-write", namespaces=resolver)),
            }
        )
    return shares


class Parser:
    """
    Registry of property decoders, keyed by the qualified name of the
    property (``{namespace}local-name``).  Later registrations for the
    same name replace earlier ones.
    """

    def __init__(self) -> None:
        self._parsers: Dict[str, Decoder] = {}
        self._register_defaults()

    def can_parse(self, name: str) -> bool:
        return name in self._parsers

    def parse(self, document: _Element, node: _Element, resolver: Optional[Dict[str, str]] = None) -> Any:
        return self._parsers[_tag(node)](document, node, resolver or NS.nsmap)

    def register_parser(self, name: str, decoder: Decoder) -> None:
        self._parsers[name] = decoder

    def unregister_parser(self, name: str) -> None:
        self._parsers.pop(name, None)

    def _register_defaults(self) -> None:
        ## RFC 4918, RFC 3744, RFC 5397, RFC 6578
        for local_name in (
            "displayname",
            "creationdate",
            "getcontenttype",
            "getetag",
            "getlastmodified",
            "sync-token",
        ):
            self.register_parser(qname(NS.DAV, local_name), text)
        for local_name in ("getcontentlength", "quota-available-bytes", "quota-used-bytes"):
            self.register_parser(qname(NS.DAV, local_name), integer)
        for local_name in ("owner", "current-user-principal", "principal-URL"):
            self.register_parser(qname(NS.DAV, local_name), href)
        for local_name in ("principal-collection-set", "group-membership", "alternate-URI-set"):
            self.register_parser(qname(NS.DAV, local_name), href_list)
        self.register_parser(qname(NS.DAV, "resourcetype"), child_names)
        self.register_parser(qname(NS.DAV, "current-user-privilege-set"), privilege_set)
        self.register_parser(qname(NS.DAV, "supported-report-set"), report_set)

        ## RFC 4791, RFC 6638
        for local_name in (
            "calendar-description",
            "calendar-timezone",
            "calendar-user-type",
            "calendar-data",
        ):
            self.register_parser(qname(NS.IETF_CALDAV, local_name), text)
        for local_name in ("calendar-home-set", "calendar-user-address-set"):
            self.register_parser(qname(NS.IETF_CALDAV, local_name), href_list)
        for local_name in (
            "schedule-inbox-URL",
            "schedule-outbox-URL",
            "schedule-default-calendar-URL",
        ):
            self.register_parser(qname(NS.IETF_CALDAV, local_name), href)
        self.register_parser(
            qname(NS.IETF_CALDAV, "supported-calendar-component-set"), component_set
        )
        self.register_parser(
            qname(NS.IETF_CALDAV, "schedule-calendar-transp"), local_name_of_child
        )

        ## RFC 6352
        for local_name in ("addressbook-description", "address-data"):
            self.register_parser(qname(NS.IETF_CARDDAV, local_name), text)
        self.register_parser(qname(NS.IETF_CARDDAV, "addressbook-home-set"), href_list)

        ## vendor extensions
        self.register_parser(qname(NS.APPLE, "calendar-color"), text)
        self.register_parser(qname(NS.APPLE, "calendar-order"), integer)
        self.register_parser(qname(NS.CALENDARSERVER, "getctag"), text)
        self.register_parser(qname(NS.CALENDARSERVER, "publish-url"), href)
        self.register_parser(qname(NS.CALENDARSERVER, "allowed-sharing-modes"), child_names)
        self.register_parser(qname(NS.SABREDAV, "email-address"), text)
        self.register_parser(qname(NS.OWNCLOUD, "enabled"), boolean)
        self.register_parser(qname(NS.OWNCLOUD, "calendar-enabled"), boolean)
        self.register_parser(qname(NS.OWNCLOUD, "read-only"), boolean)
        self.register_parser(qname(NS.OWNCLOUD, "invite"), invite)
        self.register_parser(qname(NS.NEXTCLOUD, "owner-displayname"), text)
        self.register_parser(qname(NS.NEXTCLOUD, "trash-bin-retention-duration"), integer)
        self.register_parser(qname(NS.NEXTCLOUD, "deleted-at"), text)
        self.register_parser(qname(NS.NEXTCLOUD, "calendar-uri"), text)
