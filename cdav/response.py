#!/usr/bin/env python
"""
Reduction of 207 Multi-Status response bodies (RFC 4918, section 14.16)
into a ``{path: {property-name: value}}`` mapping.

The general format of inbound data is something like this::

    <d:multistatus xmlns:d="DAV:">
      <d:response>
        <d:href>/dav/calendars/alice/personal/</d:href>
        <d:propstat>
          <d:prop><d:displayname>Personal</d:displayname></d:prop>
          <d:status>HTTP/1.1 200 OK</d:status>
        </d:propstat>
        <d:propstat>
          <d:prop><d:getetag/></d:prop>
          <d:status>HTTP/1.1 404 Not Found</d:status>
        </d:propstat>
      </d:response>
    </d:multistatus>

Only propstat blocks with a 2xx status contribute properties.  A path
without any successful property still shows up, with an empty mapping.
"""
from typing import Any
from typing import Dict
from typing import Optional
from typing import Union

from lxml import etree

from cdav.lib import error
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.parser import Parser

PropertyMap = Dict[str, Any]
MultiStatusResult = Dict[str, PropertyMap]


def was_request_successful(status: Optional[int]) -> bool:
    """Check if a status code is in the 2xx range"""
    return status is not None and 200 <= status < 300


def get_status_code_from_string(status: str) -> Optional[int]:
    """
    Extract the numeric status code from a status line like
    "HTTP/1.1 200 OK".  Returns None if there is no such code.
    """
    parts = status.split()
    if len(parts) < 2:
        return None
    try:
        return int(parts[1])
    except ValueError:
        return None


def parse_multistatus(
    body: Union[str, bytes],
    parser: Parser,
    huge_tree: bool = False,
) -> MultiStatusResult:
    """
    Parse a multi status response (207), sort the properties by path
    and drop everything in unsuccessful propstat blocks.

    Args:
        body: the raw response body
        parser: decides which properties are known and decodes them
        huge_tree: allow parsing very large XML documents

    Returns:
        ``{href: {"{namespace}name": value, ...}, ...}``

    Raises:
        lxml.etree.XMLSyntaxError if the body is not well-formed XML
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    document = etree.fromstring(
        body, parser=etree.XMLParser(remove_blank_text=True, huge_tree=huge_tree)
    )

    result: MultiStatusResult = {}
    for response in document.xpath("/d:multistatus/d:response", namespaces=NS.nsmap):
        href = str(response.xpath("string(d:href)", namespaces=NS.nsmap)).strip()
        error.assert_(href)
        ## A path is not expected to show up in two responses.  If it
        ## does, the properties are merged, and the last one wins.
        properties = result.setdefault(href, {})

        for propstat in response.xpath("d:propstat", namespaces=NS.nsmap):
            status = str(propstat.xpath("string(d:status)", namespaces=NS.nsmap))
            code = get_status_code_from_string(status)
            if code is None:
                error.weirdness("propstat without a valid status", propstat)
            if not was_request_successful(code):
                continue

            for prop in propstat.xpath("d:prop/*", namespaces=NS.nsmap):
                name = str(prop.tag)
                if not parser.can_parse(name):
                    log.debug(f"no decoder for {name} ({href}), skipping it")
                    continue
                properties[name] = parser.parse(document, prop, NS.nsmap)

    return result
