#!/usr/bin/env python
import re
import uuid
from typing import Callable


def uid() -> str:
    """A new random identifier, upper case, as used for UIDs and object names"""
    return str(uuid.uuid4()).upper()


def uri(start: str, is_available: Callable[[str], bool]) -> str:
    """
    Turn ``start`` into something usable as the last segment of a URL
    and append (or increase) a numeric suffix until ``is_available``
    accepts it.

    >>> uri("My Calendar", lambda name: name != "my-calendar")
    'my-calendar-1'
    """
    name = str(start or "").lower()
    name = re.sub(r"\s+", "-", name)
    name = re.sub(r"[^\w-]+", "", name, flags=re.ASCII)
    name = re.sub(r"--+", "-", name)
    name = name.strip("-")

    if not name:
        name = "-"

    if is_available(name):
        return name

    if "-" not in name:
        name += "-1"
        if is_available(name):
            return name

    while True:
        head, _, tail = name.rpartition("-")
        if tail.isdigit():
            name = "%s-%d" % (head, int(tail) + 1)
        else:
            name += "-1"
        if is_available(name):
            return name
