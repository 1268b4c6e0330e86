from cdav.davobject import DAVProperty
from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.lib import namespace as NS
from cdav.lib.error import log

XML_HEADERS = {"Content-Type": "application/xml; charset=utf-8"}


class PublishableMixin:
    """
    A collection that can be made available to the public, as
    implemented by the calendar server extensions (``cs:publish-calendar``).
    Mix into a ``DavCollection`` subclass.
    """

    publish_url = DAVProperty(NS.CALENDARSERVER, "publish-url")

    async def publish(self) -> None:
        """Publish the collection, ``publish_url`` is set afterwards"""
        log.debug(f"publishing {self.url}")

        skeleton, _ = get_root_skeleton((NS.CALENDARSERVER, "publish-calendar"))
        ## TODO: read cs:pre-publish-url from the response body instead of
        ## asking the server again
        await self.client.post(self.url, XML_HEADERS, serialize(skeleton))
        await self._update_props_from_server()

    async def unpublish(self) -> None:
        log.debug(f"unpublishing {self.url}")

        skeleton, _ = get_root_skeleton((NS.CALENDARSERVER, "unpublish-calendar"))
        await self.client.post(self.url, XML_HEADERS, serialize(skeleton))
        self.props.pop(PublishableMixin.publish_url.qname, None)

    def is_publishable(self) -> bool:
        modes = self.props.get(NS.qname(NS.CALENDARSERVER, "allowed-sharing-modes")) or []
        return NS.qname(NS.CALENDARSERVER, "can-be-published") in modes
