#!/usr/bin/env python
import logging

## set before anything else is imported, cdav.lib.error looks at it
__version__ = "0.1.0"

from .davclient import DAVClient
from .davclient import DAVResponse
from .davclient import get_davclient
from .collection import DavCollection
from .davobject import DavObject
from .models.addressbook import AddressBook
from .models.addressbookhome import AddressBookHome
from .models.calendar import Calendar
from .models.calendarhome import CalendarHome
from .models.calendarobject import VObject
from .models.calendartrashbin import CalendarTrashBin
from .models.principal import Principal
from .models.vcard import VCard

# Silence notification of no default logging handler
log = logging.getLogger("cdav")
log.addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "AddressBook",
    "AddressBookHome",
    "Calendar",
    "CalendarHome",
    "CalendarTrashBin",
    "DAVClient",
    "DAVResponse",
    "DavCollection",
    "DavObject",
    "Principal",
    "VCard",
    "VObject",
    "get_davclient",
]
