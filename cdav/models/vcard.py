from typing import Any
from typing import Optional

import vobject

from cdav.davobject import DavObject
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.namespace import qname


class VCard(DavObject):
    """An address object resource (RFC 6352, section 5.1), one vCard"""

    extra_prop_find_list = [(NS.IETF_CARDDAV, "address-data")]
    data_property = qname(NS.IETF_CARDDAV, "address-data")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._vobject_instance: Any = None
        self._parsed_data: Optional[str] = None

    @property
    def vobject_instance(self) -> Any:
        """The data parsed by ``vobject.readOne``, or None"""
        data = self.data
        if not data:
            return None
        if self._parsed_data != data:
            try:
                self._vobject_instance = vobject.readOne(data)
            except vobject.base.ParseError as e:
                log.error(f"Failed to parse vcard data of {self.url}: {e}")
                self._vobject_instance = None
            self._parsed_data = data
        return self._vobject_instance

    @property
    def full_name(self) -> Optional[str]:
        card = self.vobject_instance
        if card is None or not hasattr(card, "fn"):
            return None
        return card.fn.value
