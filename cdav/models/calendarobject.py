from typing import Any
from typing import Optional

import icalendar

from cdav.davobject import DavObject
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.namespace import qname


class VObject(DavObject):
    """
    A calendar object resource (RFC 4791, section 4.1): one iCalendar
    document holding an event, a task or a journal entry, possibly with
    its recurrence overrides and time zones.
    """

    extra_prop_find_list = [(NS.IETF_CALDAV, "calendar-data")]
    data_property = qname(NS.IETF_CALDAV, "calendar-data")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._icalendar_instance: Any = None
        self._parsed_data: Optional[str] = None

    @property
    def icalendar_instance(self) -> Any:
        """The data parsed into an ``icalendar.Calendar``, or None"""
        data = self.data
        if not data:
            return None
        if self._parsed_data != data:
            try:
                self._icalendar_instance = icalendar.Calendar.from_ical(data)
            except ValueError as e:
                log.error(f"Failed to parse icalendar data of {self.url}: {e}")
                self._icalendar_instance = None
            self._parsed_data = data
        return self._icalendar_instance

    @property
    def icalendar_component(self) -> Any:
        """The main component (Event, Todo, Journal, ...), ignoring time zones"""
        if not self.icalendar_instance:
            return None
        for component in self.icalendar_instance.subcomponents:
            if not isinstance(component, icalendar.Timezone):
                return component
        return None

    @property
    def uid(self) -> Optional[str]:
        component = self.icalendar_component
        if component is None or "UID" not in component:
            return None
        return str(component["UID"])
