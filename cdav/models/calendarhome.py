from typing import Iterable
from typing import List
from typing import Optional

from cdav.collection import DavCollection
from cdav.davobject import DavNode
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.namespace import qname
from cdav.models.calendar import Calendar
from cdav.models.calendartrashbin import CalendarTrashBin


class CalendarHome(DavCollection):
    """
    The calendar home collection of a principal (RFC 4791, section 6.2.1),
    holding the calendars of the user and, on Nextcloud, the trash bin.
    """

    collection_factories = {
        qname(NS.IETF_CALDAV, "calendar"): Calendar,
        qname(NS.NEXTCLOUD, "trash-bin"): CalendarTrashBin,
    }

    async def find_all_calendars(self) -> List[DavNode]:
        return await self.find_all_by_filter(lambda node: isinstance(node, Calendar))

    async def find_trash_bin(self) -> Optional[DavNode]:
        trash_bins = await self.find_all_by_filter(
            lambda node: isinstance(node, CalendarTrashBin)
        )
        return trash_bins[0] if trash_bins else None

    async def create_calendar_collection(
        self,
        displayname: str,
        color: str,
        supported_components: Optional[Iterable[str]] = None,
        order: Optional[int] = None,
        timezone: Optional[str] = None,
    ) -> DavNode:
        """
        Create a new calendar.

        Args:
            displayname: the name shown to the user, the url is derived from it
            color: i.e. "#1E90FF"
            supported_components: i.e. ["VEVENT", "VTODO"]
            order: position in a list of calendars
            timezone: a VCALENDAR with one VTIMEZONE
        """
        props = [
            XMLNode(
                (NS.DAV, "resourcetype"),
                children=[
                    XMLNode((NS.DAV, "collection")),
                    XMLNode((NS.IETF_CALDAV, "calendar")),
                ],
            ),
            XMLNode((NS.DAV, "displayname"), value=displayname),
            XMLNode((NS.APPLE, "calendar-color"), value=color),
            XMLNode((NS.OWNCLOUD, "calendar-enabled"), value="1"),
        ]
        if timezone:
            props.append(XMLNode((NS.IETF_CALDAV, "calendar-timezone"), value=timezone))
        if supported_components:
            props.append(
                XMLNode(
                    (NS.IETF_CALDAV, "supported-calendar-component-set"),
                    children=[
                        XMLNode((NS.IETF_CALDAV, "comp"), attributes=[("name", comp)])
                        for comp in supported_components
                    ],
                )
            )
        if order is not None:
            props.append(XMLNode((NS.APPLE, "calendar-order"), value=order))

        return await self.create_collection(displayname, props)
