from typing import List

from cdav.collection import DavCollection
from cdav.davobject import DAVProperty
from cdav.davobject import DavNode
from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.models.calendar import comp_filter
from cdav.models.calendarobject import VObject


class CalendarTrashBin(DavCollection):
    """
    The Nextcloud trash bin, holding deleted calendars and calendar
    objects until the retention period is over.
    """

    retention_duration = DAVProperty(NS.NEXTCLOUD, "trash-bin-retention-duration")

    object_factories = {"text/calendar": VObject}

    async def find_deleted_objects(self) -> List[DavNode]:
        """
        All deleted calendar objects.  Besides the usual properties they
        carry ``{http://nextcloud.com/ns}calendar-uri`` (the calendar they
        were deleted from) and ``{http://nextcloud.com/ns}deleted-at``.
        """
        skeleton, _ = get_root_skeleton((NS.IETF_CALDAV, "calendar-query"))
        skeleton.append(
            XMLNode(
                (NS.DAV, "prop"),
                children=[XMLNode(name) for name in VObject.get_prop_find_list()]
                + [
                    XMLNode((NS.NEXTCLOUD, "calendar-uri")),
                    XMLNode((NS.NEXTCLOUD, "deleted-at")),
                ],
            )
        )
        skeleton.append(
            XMLNode(
                (NS.IETF_CALDAV, "filter"),
                children=[comp_filter("VCALENDAR", comp_filter("VEVENT"))],
            )
        )

        response = await self.client.report(
            self.url + "objects", {"Depth": "1"}, serialize(skeleton)
        )
        return self._handle_multi_status_response(response)

    async def restore(self, uri: str) -> None:
        """Move a deleted calendar or object back where it came from"""
        await self.client.move(uri, self.url + "restore/file")
