#!/usr/bin/env python
"""
Tests for the resource model: resolving multi-status answers into
typed nodes, property exposure and updates.

Rule: None of the tests in this file should initiate any internet
communication. We use Mock/MagicMock to emulate server communication.
"""
from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import pytest

from cdav.collection import DavCollection
from cdav.collection import FactoryRegistry
from cdav.davclient import DAVClient
from cdav.davclient import DAVResponse
from cdav.davobject import DAVProperty
from cdav.davobject import DavObject
from cdav.lib import namespace as NS
from cdav.models.addressbook import AddressBook
from cdav.models.calendar import Calendar
from cdav.models.calendarobject import VObject
from cdav.models.vcard import VCard

BASE_URL = "https://cloud.example.com/remote.php/dav/"
HOME = "/remote.php/dav/calendars/alice/"

RESOURCETYPE = "{DAV:}resourcetype"
CONTENTTYPE = "{DAV:}getcontenttype"
DISPLAYNAME = "{DAV:}displayname"
COLLECTION = "{DAV:}collection"
CALENDAR = "{urn:ietf:params:xml:ns:caldav}calendar"

MULTISTATUS_XML = b"""<?xml version="1.0" encoding="utf-8" ?>
<d:multistatus xmlns:d="DAV:" xmlns:cal="urn:ietf:params:xml:ns:caldav">
  <d:response>
    <d:href>calendars/alice/</d:href>
    <d:propstat>
      <d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
  <d:response>
    <d:href>calendars/alice/personal/</d:href>
    <d:propstat>
      <d:prop>
        <d:resourcetype><d:collection/><cal:calendar/></d:resourcetype>
        <d:displayname>Personal</d:displayname>
      </d:prop>
      <d:status>HTTP/1.1 200 OK</d:status>
    </d:propstat>
  </d:response>
</d:multistatus>
"""


def create_client() -> DAVClient:
    client = DAVClient(url=BASE_URL)
    client.session.request = AsyncMock()
    return client


def create_collection(body=None, cls=DavCollection, url=HOME):
    """A collection whose client answers every PROPFIND with ``body``."""
    client = create_client()
    client.propfind = AsyncMock(return_value=DAVResponse(207, body))
    return cls(None, client, url, {})


def mixed_body() -> dict:
    return {
        HOME: {RESOURCETYPE: [COLLECTION]},
        HOME + "personal/": {RESOURCETYPE: [COLLECTION, CALENDAR], DISPLAYNAME: "Personal"},
        HOME + "inbox/": {
            RESOURCETYPE: [COLLECTION, "{urn:ietf:params:xml:ns:caldav}schedule-inbox"]
        },
        HOME + "plain/": {RESOURCETYPE: [COLLECTION]},
        HOME + "event.ics": {
            RESOURCETYPE: [],
            CONTENTTYPE: "text/calendar; charset=utf-8; component=vevent",
        },
        HOME + "card.vcf": {CONTENTTYPE: "text/vcard"},
        HOME + "notes.txt": {CONTENTTYPE: "text/plain"},
    }


class TestResolution:
    def test_classification(self) -> None:
        collection = create_collection()
        collection._register_collection_factory(CALENDAR, Calendar)
        collection._register_object_factory("text/calendar", VObject)

        children = collection._handle_multi_status_response(DAVResponse(207, mixed_body()))

        assert [type(c) for c in children] == [
            Calendar,
            DavCollection,
            DavCollection,
            VObject,
            DavObject,
            DavObject,
        ]
        assert [c.url for c in children] == [
            HOME + "personal/",
            HOME + "inbox/",
            HOME + "plain/",
            HOME + "event.ics",
            HOME + "card.vcf",
            HOME + "notes.txt",
        ]
        assert all(c.parent is collection for c in children)
        assert children[0].displayname == "Personal"

    def test_object_without_resourcetype_and_unregistered_type(self) -> None:
        """resource type absent + content type text/vcard -> generic object"""
        collection = create_collection()
        children = collection._handle_multi_status_response(
            DAVResponse(207, {HOME + "card.vcf": {CONTENTTYPE: "text/vcard"}})
        )
        assert len(children) == 1
        assert type(children[0]) is DavObject

    def test_calendar_collection_with_and_without_factory(self) -> None:
        body = {HOME + "personal/": {RESOURCETYPE: [COLLECTION, CALENDAR]}}

        collection = create_collection()
        (child,) = collection._handle_multi_status_response(DAVResponse(207, body))
        assert type(child) is DavCollection

        collection._register_collection_factory(CALENDAR, Calendar)
        (child,) = collection._handle_multi_status_response(DAVResponse(207, body))
        assert type(child) is Calendar

    def test_collection_urls_end_with_slash(self) -> None:
        collection = create_collection(url="/remote.php/dav/calendars/alice")
        assert collection.url == HOME
        (child,) = collection._handle_multi_status_response(
            DAVResponse(207, {HOME + "personal": {RESOURCETYPE: [COLLECTION]}})
        )
        assert child.url == HOME + "personal/"

    def test_own_url_is_skipped(self) -> None:
        collection = create_collection()
        for own in (HOME, HOME.rstrip("/"), BASE_URL + "calendars/alice/"):
            children = collection._handle_multi_status_response(
                DAVResponse(207, {own: {RESOURCETYPE: [COLLECTION]}})
            )
            assert children == []

    def test_children_names(self) -> None:
        collection = create_collection()
        collection._handle_multi_status_response(DAVResponse(207, mixed_body()))
        assert HOME not in collection.children_names
        assert HOME + "personal/" in collection.children_names
        assert HOME + "notes.txt" in collection.children_names

    def test_resolution_is_repeatable(self) -> None:
        collection = create_collection()
        collection._register_collection_factory(CALENDAR, Calendar)
        body = mixed_body()

        first = collection._handle_multi_status_response(DAVResponse(207, body))
        second = collection._handle_multi_status_response(DAVResponse(207, body))

        assert [(type(c), c.url, c.props) for c in first] == [
            (type(c), c.url, c.props) for c in second
        ]
        for a, b in zip(first, second):
            assert a is not b
            assert a.props is not b.props

        first[0].displayname = "Changed"
        assert second[0].displayname == "Personal"
        assert body[HOME + "personal/"][DISPLAYNAME] == "Personal"

    def test_explicit_registry(self) -> None:
        collection = create_collection()
        registry = FactoryRegistry(object_factories={"text/plain": VCard})
        children = collection._handle_multi_status_response(
            DAVResponse(207, {HOME + "notes.txt": {CONTENTTYPE: "text/plain"}}), True, registry
        )
        assert type(children[0]) is VCard
        assert children[0].is_partial()

    def test_registration_last_wins(self) -> None:
        collection = create_collection()
        collection._register_object_factory("text/calendar", DavObject)
        collection._register_object_factory("text/calendar", VObject)
        assert collection.registry.object_factory("text/calendar") is VObject
        assert ("urn:ietf:params:xml:ns:caldav", "calendar-data") in collection.prop_find_list


class TestFind:
    @pytest.mark.asyncio
    async def test_find_all(self) -> None:
        collection = create_collection(mixed_body())
        children = await collection.find_all()

        assert len(children) == 6
        collection.client.propfind.assert_awaited_once()
        args = collection.client.propfind.call_args.args
        assert args[0] == HOME
        assert args[2] == 1
        assert (NS.DAV, "displayname") in args[1]
        assert (NS.DAV, "getcontenttype") in args[1]
        assert (NS.DAV, "current-user-privilege-set") in args[1]

    @pytest.mark.asyncio
    async def test_find_all_asks_for_registered_properties(self) -> None:
        collection = create_collection({})
        collection._register_collection_factory(CALENDAR, Calendar)
        await collection.find_all()
        names = collection.client.propfind.call_args.args[1]
        assert (NS.APPLE, "calendar-color") in names
        assert len(names) == len(set(names))

    @pytest.mark.asyncio
    async def test_find_all_by_filter(self) -> None:
        collection = create_collection(mixed_body())
        found = await collection.find_all_by_filter(lambda node: isinstance(node, DavObject))
        assert [node.url for node in found] == [
            HOME + "event.ics",
            HOME + "card.vcf",
            HOME + "notes.txt",
        ]

    @pytest.mark.asyncio
    async def test_find(self) -> None:
        props = {RESOURCETYPE: [COLLECTION, CALENDAR], DISPLAYNAME: "Personal"}
        collection = create_collection(props)
        collection._register_collection_factory(CALENDAR, Calendar)

        found = await collection.find("personal/")

        args = collection.client.propfind.call_args.args
        assert args[0] == HOME + "personal/"
        assert args[2] == 0
        assert isinstance(found, Calendar)
        assert found.url == HOME + "personal/"
        assert found.props == props

    @pytest.mark.asyncio
    async def test_find_missing(self) -> None:
        collection = create_collection(None)
        with pytest.raises(IndexError):
            await collection.find("missing/")

    @pytest.mark.asyncio
    async def test_end_to_end(self) -> None:
        """PROPFIND answered by the server, resolved into typed nodes"""
        client = DAVClient(url="https://host/dav/")
        resp = MagicMock()
        resp.status_code = 207
        resp.reason = "Multi-Status"
        resp.headers = {}
        resp.content = MULTISTATUS_XML
        resp.text = MULTISTATUS_XML.decode("utf-8")
        client.session.request = AsyncMock(return_value=resp)

        collection = DavCollection(None, client, "calendars/alice/")
        children = await collection.find_all()

        assert len(children) == 1
        assert isinstance(children[0], DavCollection)
        assert children[0].displayname == "Personal"
        assert children[0].url == "/dav/calendars/alice/personal/"
        assert client.session.request.call_args.args == (
            "PROPFIND",
            "https://host/dav/calendars/alice/",
        )
        assert client.session.request.call_args.kwargs["headers"]["Depth"] == "1"


class TestProperties:
    def test_exposed_properties(self) -> None:
        collection = DavCollection(
            None,
            create_client(),
            HOME,
            {
                DISPLAYNAME: "Home",
                "{DAV:}owner": "/remote.php/dav/principals/users/alice/",
                "{DAV:}sync-token": "http://sabre.io/ns/sync/3",
                "{DAV:}current-user-privilege-set": ["{DAV:}read"],
            },
        )
        assert collection.displayname == "Home"
        assert collection.owner == "/remote.php/dav/principals/users/alice/"
        assert collection.sync_token == "http://sabre.io/ns/sync/3"
        assert collection.resourcetype is None
        assert collection.is_readable()
        assert not collection.is_writeable()

    def test_read_only_property(self) -> None:
        collection = DavCollection(None, create_client(), HOME, {})
        with pytest.raises(AttributeError):
            collection.owner = "/somebody/else/"
        assert collection.dirty == set()

    def test_mutable_property_marks_dirty(self) -> None:
        collection = DavCollection(None, create_client(), HOME, {DISPLAYNAME: "Home"})
        collection.displayname = "Work"
        collection.displayname = "Work again"
        assert collection.props[DISPLAYNAME] == "Work again"
        assert collection.dirty == {DISPLAYNAME}

    def test_descriptor_table(self) -> None:
        exposed = Calendar.exposed_properties()
        assert isinstance(exposed["displayname"], DAVProperty)
        assert exposed["color"].qname == "{http://apple.com/ns/ical/}calendar-color"
        assert exposed["publish_url"].qname == "{http://calendarserver.org/ns/}publish-url"
        assert exposed["shares"].qname == "{http://owncloud.org/ns}invite"
        assert "color" not in DavCollection.exposed_properties()

    def test_same_collection_type(self) -> None:
        client = create_client()
        a = DavCollection(None, client, HOME + "a/", {RESOURCETYPE: [COLLECTION, CALENDAR]})
        b = DavCollection(None, client, HOME + "b/", {RESOURCETYPE: [CALENDAR, COLLECTION]})
        c = DavCollection(None, client, HOME + "c/", {RESOURCETYPE: [COLLECTION]})
        assert a.is_same_collection_type_as(b)
        assert not a.is_same_collection_type_as(c)


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_without_changes(self) -> None:
        collection = create_collection()
        collection.client.proppatch = AsyncMock()
        await collection.update()
        collection.client.proppatch.assert_not_awaited()
        collection.client.session.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_sends_one_proppatch(self) -> None:
        collection = create_collection()
        collection.client.proppatch = AsyncMock(return_value=DAVResponse(207, {}))
        listener = MagicMock()
        collection.add_event_listener("update", listener)

        collection.displayname = "Work & Play"
        await collection.update()

        collection.client.proppatch.assert_awaited_once()
        url, headers, body = collection.client.proppatch.call_args.args
        assert url == HOME
        assert "<d:propertyupdate" in body
        assert "<d:set><d:prop><d:displayname>Work &amp; Play</d:displayname></d:prop></d:set>" in body
        assert collection.dirty == set()
        listener.assert_called_once_with({DISPLAYNAME})

        await collection.update()
        collection.client.proppatch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_update_keeps_dirty(self) -> None:
        from cdav.lib import error

        collection = create_collection()
        collection.client.proppatch = AsyncMock(
            side_effect=error.NetworkRequestClientError(status=403)
        )
        collection.displayname = "Work"
        with pytest.raises(error.NetworkRequestClientError):
            await collection.update()
        assert collection.dirty == {DISPLAYNAME}

    @pytest.mark.asyncio
    async def test_calendar_update_uses_all_encoders(self) -> None:
        calendar = create_collection(cls=Calendar, url=HOME + "personal/")
        calendar.client.proppatch = AsyncMock(return_value=DAVResponse(207, {}))

        calendar.displayname = "Personal"
        calendar.color = "#FF0000"
        calendar.enabled = False
        await calendar.update()

        body = calendar.client.proppatch.call_args.args[2]
        assert "<d:displayname>Personal</d:displayname>" in body
        assert "<aapl:calendar-color>#FF0000</aapl:calendar-color>" in body
        assert "<oc:calendar-enabled>0</oc:calendar-enabled>" in body


class TestCreateAndDelete:
    @pytest.mark.asyncio
    async def test_create_collection(self) -> None:
        collection = create_collection({RESOURCETYPE: [COLLECTION]})
        collection.client.mkcol = AsyncMock(return_value=DAVResponse(201))
        collection.children_names.add(HOME + "new-folder/")

        created = await collection.create_collection("New Folder")

        url, headers, body = collection.client.mkcol.call_args.args
        assert url == HOME + "new-folder-1"
        assert "<d:mkcol" in body
        assert "<d:set><d:prop><d:resourcetype><d:collection/></d:resourcetype></d:prop></d:set>" in body
        assert collection.client.propfind.call_args.args[0] == HOME + "new-folder-1/"
        assert type(created) is DavCollection
        assert created.url == HOME + "new-folder-1/"

    @pytest.mark.asyncio
    async def test_create_object(self) -> None:
        collection = create_collection({CONTENTTYPE: "text/plain"})
        collection.client.put = AsyncMock(return_value=DAVResponse(201))

        created = await collection.create_object("notes.txt", {"Content-Type": "text/plain"}, "hi")

        collection.client.put.assert_awaited_once_with(
            HOME + "notes.txt", {"Content-Type": "text/plain"}, "hi"
        )
        assert type(created) is DavObject
        assert created.url == HOME + "notes.txt"

    def test_available_name(self) -> None:
        collection = create_collection()
        collection.children_names.update({HOME + "work/", HOME + "work-1/", HOME + "home"})
        assert collection._get_available_name_from_token("Work") == "work-2"
        assert collection._get_available_name_from_token("Home") == "home-1"
        assert collection._get_available_name_from_token("Other") == "other"

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        collection = create_collection()
        collection.client.delete = AsyncMock(return_value=DAVResponse(204))
        listener = MagicMock()
        collection.add_event_listener("delete", listener)

        await collection.delete()

        collection.client.delete.assert_awaited_once_with(HOME, None)
        listener.assert_called_once_with()


class TestDavObject:
    def create_object(self, props=None, cls=DavObject, is_partial=False):
        parent = create_collection()
        obj = cls(parent, parent.client, HOME + "notes.txt", props or {}, is_partial)
        return parent, obj

    def test_properties(self) -> None:
        _, obj = self.create_object(
            {"{DAV:}getetag": '"1"', CONTENTTYPE: "text/plain", "{DAV:}getcontentlength": 2}
        )
        assert obj.etag == '"1"'
        assert obj.contenttype == "text/plain"
        assert obj.size == 2
        assert not obj.is_partial()
        assert not obj.is_dirty()
        with pytest.raises(AttributeError):
            obj.size = 3

    @pytest.mark.asyncio
    async def test_fetch_complete_data(self) -> None:
        _, obj = self.create_object(is_partial=True)
        obj.client.get = AsyncMock(return_value=DAVResponse(200, "hello", {"etag": '"2"'}))

        await obj.fetch_complete_data()
        assert obj.data == "hello"
        assert obj.etag == '"2"'
        assert not obj.is_partial()

        await obj.fetch_complete_data()
        obj.client.get.assert_awaited_once()

        await obj.fetch_complete_data(True)
        assert obj.client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_update(self) -> None:
        _, obj = self.create_object({"{DAV:}getetag": '"1"', CONTENTTYPE: "text/plain; charset=utf-8"})
        obj.client.put = AsyncMock(return_value=DAVResponse(204, "", {"etag": '"2"'}))

        await obj.update()
        obj.client.put.assert_not_awaited()

        obj.data = "changed"
        assert obj.is_dirty()
        await obj.update()

        obj.client.put.assert_awaited_once_with(
            HOME + "notes.txt",
            {"Content-Type": "text/plain; charset=utf-8", "If-Match": '"1"'},
            "changed",
        )
        assert obj.etag == '"2"'
        assert not obj.is_dirty()

    @pytest.mark.asyncio
    async def test_update_without_etag_header(self) -> None:
        _, obj = self.create_object({CONTENTTYPE: "text/plain"})
        obj.client.put = AsyncMock(return_value=DAVResponse(204, ""))
        obj.client.propfind = AsyncMock(return_value=DAVResponse(207, {"{DAV:}getetag": '"3"'}))

        obj.data = "changed"
        await obj.update()
        assert obj.etag == '"3"'

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        _, obj = self.create_object({"{DAV:}getetag": '"1"'})
        obj.client.delete = AsyncMock(return_value=DAVResponse(204))
        await obj.delete()
        obj.client.delete.assert_awaited_once_with(HOME + "notes.txt", {"If-Match": '"1"'})

    @pytest.mark.asyncio
    async def test_copy(self) -> None:
        source, obj = self.create_object()
        target = create_collection({CONTENTTYPE: "text/plain"}, url=HOME + "other/")
        obj.client.copy = AsyncMock(return_value=DAVResponse(201))

        copied = await obj.copy(target, overwrite=True)

        obj.client.copy.assert_awaited_once_with(
            HOME + "notes.txt", HOME + "other/notes.txt", 0, True, None
        )
        assert target.client.propfind.call_args.args[0] == HOME + "other/notes.txt"
        assert type(copied) is DavObject
        assert copied.url == HOME + "other/notes.txt"
        assert copied.parent is target

    @pytest.mark.asyncio
    async def test_move(self) -> None:
        source, obj = self.create_object()
        target = create_collection(url=HOME + "other/")
        obj.client.move = AsyncMock(return_value=DAVResponse(201))

        await obj.move(target)

        obj.client.move.assert_awaited_once_with(
            HOME + "notes.txt", HOME + "other/notes.txt", False, None
        )
        assert obj.url == HOME + "other/notes.txt"
        assert obj.parent is target

    @pytest.mark.asyncio
    async def test_move_into_other_kind_of_collection(self) -> None:
        source, obj = self.create_object()
        target = create_collection(cls=AddressBook, url=HOME + "contacts/")
        target.props[RESOURCETYPE] = [COLLECTION, "{urn:ietf:params:xml:ns:carddav}addressbook"]
        with pytest.raises(TypeError):
            await obj.move(target)
