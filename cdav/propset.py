#!/usr/bin/env python
"""
Property-set encoders.

An encoder gets the changed properties of a node as a mapping
``{"{namespace}name": value}`` and returns the XML nodes to put into the
``<d:set><d:prop>`` part of a PROPPATCH.  Properties an encoder does not
know about are left to the other encoders registered on the node.
"""
from typing import Any
from typing import Dict
from typing import List

from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.namespace import qname


def _flag(value: Any) -> str:
    return "1" if value else "0"


def dav_collection_prop_set(props: Dict[str, Any]) -> List[XMLNode]:
    """{DAV:}displayname"""
    xmlified = []
    for key, value in props.items():
        if key == qname(NS.DAV, "displayname"):
            xmlified.append(XMLNode((NS.DAV, "displayname"), value=value))
    return xmlified


def calendar_prop_set(props: Dict[str, Any]) -> List[XMLNode]:
    """
    Calendar properties: color, order, description, timezone, the
    enabled flag, the supported components and the transparency.
    """
    xmlified = []
    for key, value in props.items():
        if key == qname(NS.APPLE, "calendar-color"):
            xmlified.append(XMLNode((NS.APPLE, "calendar-color"), value=value))
        elif key == qname(NS.APPLE, "calendar-order"):
            xmlified.append(XMLNode((NS.APPLE, "calendar-order"), value=value))
        elif key == qname(NS.IETF_CALDAV, "calendar-description"):
            xmlified.append(XMLNode((NS.IETF_CALDAV, "calendar-description"), value=value))
        elif key == qname(NS.IETF_CALDAV, "calendar-timezone"):
            xmlified.append(XMLNode((NS.IETF_CALDAV, "calendar-timezone"), value=value))
        elif key == qname(NS.OWNCLOUD, "calendar-enabled"):
            xmlified.append(XMLNode((NS.OWNCLOUD, "calendar-enabled"), value=_flag(value)))
        elif key == qname(NS.IETF_CALDAV, "supported-calendar-component-set"):
            xmlified.append(
                XMLNode(
                    (NS.IETF_CALDAV, "supported-calendar-component-set"),
                    children=[
                        XMLNode((NS.IETF_CALDAV, "comp"), attributes=[("name", comp)])
                        for comp in value or []
                    ],
                )
            )
        elif key == qname(NS.IETF_CALDAV, "schedule-calendar-transp"):
            xmlified.append(
                XMLNode(
                    (NS.IETF_CALDAV, "schedule-calendar-transp"),
                    children=[XMLNode((NS.IETF_CALDAV, value))],
                )
            )
    return xmlified


def address_book_prop_set(props: Dict[str, Any]) -> List[XMLNode]:
    """
    {urn:ietf:params:xml:ns:carddav}addressbook-description and
    {http://owncloud.org/ns}enabled
    """
    xmlified = []
    for key, value in props.items():
        if key == qname(NS.IETF_CARDDAV, "addressbook-description"):
            xmlified.append(XMLNode((NS.IETF_CARDDAV, "addressbook-description"), value=value))
        elif key == qname(NS.OWNCLOUD, "enabled"):
            xmlified.append(XMLNode((NS.OWNCLOUD, "enabled"), value=_flag(value)))
    return xmlified


def principal_prop_set(props: Dict[str, Any]) -> List[XMLNode]:
    """{urn:ietf:params:xml:ns:caldav}schedule-default-calendar-URL"""
    xmlified = []
    for key, value in props.items():
        if key == qname(NS.IETF_CALDAV, "schedule-default-calendar-URL"):
            xmlified.append(
                XMLNode(
                    (NS.IETF_CALDAV, "schedule-default-calendar-URL"),
                    value={"href": value},
                )
            )
    return xmlified
