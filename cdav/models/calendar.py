from datetime import date
from datetime import datetime
from datetime import timezone
from typing import Iterable
from typing import List
from typing import Optional
from typing import Union

from cdav.collection import DavCollection
from cdav.davobject import DAVProperty
from cdav.davobject import DavNode
from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.string_utility import uid
from cdav.models.calendarobject import VObject
from cdav.models.publishable import PublishableMixin
from cdav.models.shareable import ShareableMixin
from cdav.propset import calendar_prop_set

utc_tz = timezone.utc


def to_utc_date_string(ts: Union[date, datetime]) -> str:
    """coerce datetimes to UTC (assume localtime if nothing is given)"""
    if isinstance(ts, datetime):
        ts = ts.astimezone(utc_tz)
    return ts.strftime("%Y%m%dT%H%M%SZ")


def comp_filter(component: str, *children: XMLNode) -> XMLNode:
    return XMLNode(
        (NS.IETF_CALDAV, "comp-filter"),
        attributes=[("name", component)],
        children=children,
    )


class Calendar(PublishableMixin, ShareableMixin, DavCollection):
    """
    A calendar collection (RFC 4791, section 4.2).  Its members are
    ``VObject`` instances.
    """

    color = DAVProperty(NS.APPLE, "calendar-color", mutable=True)
    order = DAVProperty(NS.APPLE, "calendar-order", mutable=True)
    enabled = DAVProperty(NS.OWNCLOUD, "calendar-enabled", mutable=True)
    description = DAVProperty(NS.IETF_CALDAV, "calendar-description", mutable=True)
    timezone = DAVProperty(NS.IETF_CALDAV, "calendar-timezone", mutable=True)
    components = DAVProperty(NS.IETF_CALDAV, "supported-calendar-component-set")
    transparency = DAVProperty(NS.IETF_CALDAV, "schedule-calendar-transp", mutable=True)
    ctag = DAVProperty(NS.CALENDARSERVER, "getctag")

    object_factories = {"text/calendar": VObject}
    prop_set_factories = DavCollection.prop_set_factories + [calendar_prop_set]

    async def find_all_vobjects(self) -> List[DavNode]:
        return await self.find_all_by_filter(lambda node: isinstance(node, VObject))

    async def find_by_type(self, component: str) -> List[DavNode]:
        """
        Args:
            component: VEVENT, VTODO, VJOURNAL, ...
        """
        return await self.calendar_query([comp_filter("VCALENDAR", comp_filter(component))])

    async def find_by_type_in_time_range(
        self,
        component: str,
        start: Union[date, datetime],
        end: Union[date, datetime],
    ) -> List[DavNode]:
        """
        All objects of one component type overlapping a time range
        (RFC 4791, section 9.9).  Naive datetimes are taken as local time.
        """
        time_range = XMLNode(
            (NS.IETF_CALDAV, "time-range"),
            attributes=[
                ("start", to_utc_date_string(start)),
                ("end", to_utc_date_string(end)),
            ],
        )
        return await self.calendar_query(
            [comp_filter("VCALENDAR", comp_filter(component, time_range))]
        )

    async def create_vobject(self, data: str) -> DavNode:
        """Upload a new iCalendar document, the name is generated"""
        name = uid() + ".ics"
        headers = {"Content-Type": "text/calendar; charset=utf-8"}
        return await self.create_object(name, headers, data)

    async def calendar_query(
        self,
        filters: Iterable[XMLNode],
        props: Optional[Iterable[XMLNode]] = None,
        timezone: Optional[str] = None,
    ) -> List[DavNode]:
        """
        Send a calendar-query REPORT (RFC 4791, section 7.8).

        Args:
            filters: the children of ``cl:filter``
            props: the properties to ask for, by default what a
                   ``VObject`` needs including the calendar data
            timezone: a VTIMEZONE to interpret floating times in
        """
        log.debug(f"sending calendar-query to {self.url}")

        skeleton, _ = get_root_skeleton((NS.IETF_CALDAV, "calendar-query"))
        if props is None:
            props = [XMLNode(name) for name in VObject.get_prop_find_list()]
        props = list(props)
        is_partial = VObject.data_property not in [prop.tag for prop in props]
        skeleton.append(XMLNode((NS.DAV, "prop"), children=props))
        skeleton.append(XMLNode((NS.IETF_CALDAV, "filter"), children=filters))
        if timezone:
            skeleton.append(XMLNode((NS.IETF_CALDAV, "timezone"), value=timezone))

        response = await self.client.report(self.url, {"Depth": "1"}, serialize(skeleton))
        return self._handle_multi_status_response(response, is_partial)

    async def calendar_multiget(self, hrefs: Iterable[str]) -> List[DavNode]:
        """
        Fetch several objects with their data in one request
        (RFC 4791, section 7.9).
        """
        hrefs = list(hrefs)
        if not hrefs:
            return []

        skeleton, _ = get_root_skeleton((NS.IETF_CALDAV, "calendar-multiget"))
        skeleton.append(
            XMLNode(
                (NS.DAV, "prop"),
                children=[XMLNode(name) for name in VObject.get_prop_find_list()],
            )
        )
        skeleton.append([XMLNode((NS.DAV, "href"), value=href) for href in hrefs])

        response = await self.client.report(self.url, {"Depth": "1"}, serialize(skeleton))
        return self._handle_multi_status_response(response, False)
