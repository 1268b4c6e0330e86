from typing import List
from typing import Optional

from cdav.davobject import DAVProperty
from cdav.davobject import DavObject
from cdav.lib import namespace as NS
from cdav.models.addressbookhome import AddressBookHome
from cdav.models.calendarhome import CalendarHome
from cdav.propset import principal_prop_set


class Principal(DavObject):
    """
    A principal (RFC 3744, section 2), typically a user.

    It is not a collection, but it has properties that can be changed
    and sent to the server with ``update()``.
    """

    displayname = DAVProperty(NS.DAV, "displayname")
    calendar_user_type = DAVProperty(NS.IETF_CALDAV, "calendar-user-type")
    calendar_user_address_set = DAVProperty(NS.IETF_CALDAV, "calendar-user-address-set")
    principal_url = DAVProperty(NS.DAV, "principal-URL")
    email = DAVProperty(NS.SABREDAV, "email-address")
    calendar_homes = DAVProperty(NS.IETF_CALDAV, "calendar-home-set")
    schedule_inbox = DAVProperty(NS.IETF_CALDAV, "schedule-inbox-URL")
    schedule_outbox = DAVProperty(NS.IETF_CALDAV, "schedule-outbox-URL")
    schedule_default_calendar_url = DAVProperty(
        NS.IETF_CALDAV, "schedule-default-calendar-URL", mutable=True
    )
    address_book_homes = DAVProperty(NS.IETF_CARDDAV, "addressbook-home-set")

    prop_set_factories = [principal_prop_set]

    @property
    def principal_scheme(self) -> Optional[str]:
        """
        The principal as used for sharing, i.e.
        "principal:principals/users/alice"
        """
        url = self.principal_url or self.url
        base = self.client.pathname("").rstrip("/")
        path = self.client.pathname(url)
        if base and path.startswith(base):
            path = path[len(base):]
        return "principal:" + path.strip("/")

    def _id_for_user_type(self, user_type: str) -> Optional[str]:
        if self.calendar_user_type != user_type:
            return None
        return self.client.filename(self.url)

    @property
    def user_id(self) -> Optional[str]:
        """The last url segment, if this principal is an INDIVIDUAL"""
        return self._id_for_user_type("INDIVIDUAL")

    @property
    def group_id(self) -> Optional[str]:
        return self._id_for_user_type("GROUP")

    @property
    def resource_id(self) -> Optional[str]:
        return self._id_for_user_type("RESOURCE")

    @property
    def room_id(self) -> Optional[str]:
        return self._id_for_user_type("ROOM")

    async def update(self) -> None:
        """
        Send a PROPPATCH with all properties that were changed.  No
        request is made if nothing changed.
        """
        await self._update_properties()

    async def get_calendar_homes(self) -> List[CalendarHome]:
        """The calendar home collections of this principal, with their properties"""
        homes = []
        for url in self.calendar_homes or []:
            home = CalendarHome(None, self.client, url)
            await home._update_props_from_server()
            homes.append(home)
        return homes

    async def get_address_book_homes(self) -> List[AddressBookHome]:
        """The address book home collections of this principal, with their properties"""
        homes = []
        for url in self.address_book_homes or []:
            home = AddressBookHome(None, self.client, url)
            await home._update_props_from_server()
            homes.append(home)
        return homes
