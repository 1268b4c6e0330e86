#!/usr/bin/env python
from typing import Dict
from typing import Optional
from typing import Tuple

DAV = "DAV:"
IETF_CALDAV = "urn:ietf:params:xml:ns:caldav"
IETF_CARDDAV = "urn:ietf:params:xml:ns:carddav"
OWNCLOUD = "http://owncloud.org/ns"
NEXTCLOUD = "http://nextcloud.com/ns"
APPLE = "http://apple.com/ns/ical/"
CALENDARSERVER = "http://calendarserver.org/ns/"
SABREDAV = "http://sabredav.org/ns"

## The prefixes below are the ones the XPath evaluator knows about, and
## the ones the serializer prefers when it meets one of these namespaces.
nsmap: Dict[str, str] = {
    "d": DAV,
    "cl": IETF_CALDAV,
    "cr": IETF_CARDDAV,
    "oc": OWNCLOUD,
    "nc": NEXTCLOUD,
    "aapl": APPLE,
    "cs": CALENDARSERVER,
    "sd": SABREDAV,
}

prefixes: Dict[str, str] = {uri: prefix for prefix, uri in nsmap.items()}


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % nsmap[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name


def qname(namespace: str, local_name: str) -> str:
    """The canonical string form of a qualified name, ``{namespace}local``"""
    return "{%s}%s" % (namespace, local_name)


def split_qname(name: str) -> Tuple[str, str]:
    """Inverse of :func:`qname`.  A name without namespace gets ``""``."""
    if name.startswith("{"):
        namespace, _, local_name = name[1:].partition("}")
        return (namespace, local_name)
    return ("", name)

