#!/usr/bin/env python
"""
Tests for building and serializing request bodies.
"""
from lxml import etree

from cdav.elements.base import get_root_skeleton
from cdav.elements.base import PrefixMap
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS


def body_of(node: XMLNode) -> str:
    """The serialized document without the xml declaration"""
    xml = serialize(node)
    assert xml.startswith("<?xml version='1.0' encoding='utf-8'?>")
    return xml.split("?>", 1)[1].strip()


class TestGetRootSkeleton:
    def test_without_nesting(self) -> None:
        skeleton, children = get_root_skeleton((NS.DAV, "propfind"))
        assert skeleton.name == (NS.DAV, "propfind")
        assert children is skeleton.children

    def test_nested(self) -> None:
        skeleton, set_children, prop_children = get_root_skeleton(
            (NS.DAV, "propertyupdate"), (NS.DAV, "set"), (NS.DAV, "prop")
        )
        assert set_children is skeleton.children[0].children
        assert prop_children is set_children[0].children

        prop_children.append(XMLNode((NS.DAV, "displayname"), value="Work"))
        assert body_of(skeleton) == (
            '<d:propertyupdate xmlns:d="DAV:"><d:set><d:prop>'
            "<d:displayname>Work</d:displayname>"
            "</d:prop></d:set></d:propertyupdate>"
        )


class TestSerialize:
    def test_childless_elements_are_self_closing(self) -> None:
        skeleton, prop = get_root_skeleton((NS.DAV, "propfind"), (NS.DAV, "prop"))
        prop.append(XMLNode((NS.DAV, "displayname")))
        assert body_of(skeleton) == (
            '<d:propfind xmlns:d="DAV:"><d:prop><d:displayname/></d:prop></d:propfind>'
        )

    def test_known_namespaces_keep_their_prefix(self) -> None:
        skeleton, prop = get_root_skeleton((NS.DAV, "propfind"), (NS.DAV, "prop"))
        prop.append(XMLNode((NS.IETF_CALDAV, "calendar-timezone")))
        prop.append(XMLNode((NS.APPLE, "calendar-color")))
        xml = body_of(skeleton)
        assert 'xmlns:cl="urn:ietf:params:xml:ns:caldav"' in xml
        assert 'xmlns:aapl="http://apple.com/ns/ical/"' in xml
        assert "<cl:calendar-timezone/><aapl:calendar-color/>" in xml

    def test_unknown_namespaces_get_generated_prefixes(self) -> None:
        skeleton, prop = get_root_skeleton((NS.DAV, "propfind"), (NS.DAV, "prop"))
        prop.append(XMLNode(("urn:example:one", "a")))
        prop.append(XMLNode(("urn:example:two", "b")))
        prop.append(XMLNode(("urn:example:one", "c")))
        xml = body_of(skeleton)
        assert 'xmlns:x0="urn:example:one"' in xml
        assert 'xmlns:x1="urn:example:two"' in xml
        assert "<x0:a/><x1:b/><x0:c/>" in xml

    def test_prefixes_are_local_to_one_serialization(self) -> None:
        first = XMLNode(("urn:example:one", "a"))
        second = XMLNode(("urn:example:two", "b"))
        assert body_of(first) == '<x0:a xmlns:x0="urn:example:one"/>'
        assert body_of(second) == '<x0:b xmlns:x0="urn:example:two"/>'

    def test_values_are_escaped(self) -> None:
        node = XMLNode((NS.DAV, "displayname"), value='Tom & Jerry <"cartoons">')
        assert body_of(node) == (
            '<d:displayname xmlns:d="DAV:">Tom &amp; Jerry &lt;"cartoons"&gt;</d:displayname>'
        )

    def test_non_string_values(self) -> None:
        node = XMLNode((NS.APPLE, "calendar-order"), value=3)
        assert body_of(node) == (
            '<aapl:calendar-order xmlns:aapl="http://apple.com/ns/ical/">3</aapl:calendar-order>'
        )

    def test_href_value(self) -> None:
        node = XMLNode(
            (NS.IETF_CALDAV, "schedule-default-calendar-URL"),
            value={"href": "/dav/calendars/alice/personal/"},
        )
        document = etree.fromstring(serialize(node).encode("utf-8"))
        assert document.xpath("string(d:href)", namespaces=NS.nsmap) == (
            "/dav/calendars/alice/personal/"
        )
        assert "<d:href>/dav/calendars/alice/personal/</d:href>" in body_of(node)

    def test_attributes(self) -> None:
        node = XMLNode(
            (NS.IETF_CALDAV, "comp-filter"),
            attributes=[("name", "VCALENDAR")],
            children=[XMLNode((NS.IETF_CALDAV, "comp-filter"), attributes=[("name", "VEVENT")])],
        )
        assert body_of(node) == (
            '<cl:comp-filter xmlns:cl="urn:ietf:params:xml:ns:caldav" name="VCALENDAR">'
            '<cl:comp-filter name="VEVENT"/></cl:comp-filter>'
        )

    def test_parses_back(self) -> None:
        skeleton, prop = get_root_skeleton((NS.DAV, "propfind"), (NS.DAV, "prop"))
        prop.append(XMLNode((NS.DAV, "resourcetype")))
        prop.append(XMLNode((NS.CALENDARSERVER, "getctag")))
        document = etree.fromstring(serialize(skeleton).encode("utf-8"))
        assert [str(e.tag) for e in document.xpath("d:prop/*", namespaces=NS.nsmap)] == [
            "{DAV:}resourcetype",
            "{http://calendarserver.org/ns/}getctag",
        ]


class TestXMLNode:
    def test_equality(self) -> None:
        assert XMLNode((NS.DAV, "prop")) == XMLNode((NS.DAV, "prop"))
        assert XMLNode((NS.DAV, "prop")) != XMLNode((NS.DAV, "prop"), value="x")

    def test_add(self) -> None:
        node = XMLNode((NS.DAV, "prop")) + XMLNode((NS.DAV, "displayname"))
        node += [XMLNode((NS.DAV, "getetag"))]
        assert [c.tag for c in node.children] == ["{DAV:}displayname", "{DAV:}getetag"]

    def test_prefix_map(self) -> None:
        prefix_map = PrefixMap()
        assert prefix_map.prefix(NS.DAV) == "d"
        assert prefix_map.prefix("urn:example") == "x0"
        assert prefix_map.prefix("urn:example") == "x0"
        assert prefix_map.nsmap == {"d": NS.DAV, "x0": "urn:example"}
