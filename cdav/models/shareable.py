from typing import Any
from typing import Dict
from typing import List

from cdav.davobject import DAVProperty
from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.models.publishable import XML_HEADERS


class ShareableMixin:
    """
    A collection that can be shared with other principals, using the
    ownCloud / Nextcloud sharing extension (``oc:share``).  Mix into a
    ``DavCollection`` subclass.

    ``shares`` lists who the collection is shared with, see
    ``cdav.parser.invite`` for the format.
    """

    shares = DAVProperty(NS.OWNCLOUD, "invite")
    allowed_sharing_modes = DAVProperty(NS.CALENDARSERVER, "allowed-sharing-modes")

    async def share(self, principal: str, writeable: bool = False, summary: str = "") -> None:
        """
        Share this collection.

        Args:
            principal: the sharee, i.e. "principal:principals/users/bob"
            writeable: grant write access
            summary: a message for the sharee
        """
        log.debug(f"sharing {self.url} with {principal}")

        skeleton, set_children = get_root_skeleton((NS.OWNCLOUD, "share"), (NS.OWNCLOUD, "set"))
        set_children.append(XMLNode((NS.DAV, "href"), value=principal))
        if writeable:
            set_children.append(XMLNode((NS.OWNCLOUD, "read-write")))
        if summary:
            set_children.append(XMLNode((NS.OWNCLOUD, "summary"), value=summary))

        await self.client.post(self.url, XML_HEADERS, serialize(skeleton))

        shares: List[Dict[str, Any]] = list(self.shares or [])
        existing = [s for s in shares if s["href"] == principal]
        if existing:
            existing[0]["writeable"] = writeable
        else:
            shares.append(
                {
                    "href": principal,
                    "common_name": "",
                    "invite_accepted": True,
                    "writeable": writeable,
                }
            )
        self.props[ShareableMixin.shares.qname] = shares

    async def unshare(self, principal: str) -> None:
        log.debug(f"unsharing {self.url} with {principal}")

        skeleton, remove_children = get_root_skeleton(
            (NS.OWNCLOUD, "share"), (NS.OWNCLOUD, "remove")
        )
        remove_children.append(XMLNode((NS.DAV, "href"), value=principal))

        await self.client.post(self.url, XML_HEADERS, serialize(skeleton))

        self.props[ShareableMixin.shares.qname] = [
            s for s in self.shares or [] if s["href"] != principal
        ]

    def is_shareable(self) -> bool:
        return NS.qname(NS.CALENDARSERVER, "can-be-shared") in (self.allowed_sharing_modes or [])
