#!/usr/bin/env python
import sys
from typing import Optional
from typing import Union
from urllib.parse import ParseResult
from urllib.parse import quote
from urllib.parse import SplitResult
from urllib.parse import unquote
from urllib.parse import urljoin
from urllib.parse import urlparse
from urllib.parse import urlunparse

from cdav.lib.python_utilities import to_normal_str

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self


class URL:
    """
    This class is for wrapping URLs into objects.  It's used
    internally in the library, end users should not need to know
    anything about this class.  All methods that accept URLs can be
    fed either with a URL object, a string or a urlparse.ParseResult
    object.

    Addresses may be one out of three:

    1) a path relative to the DAV root, i.e. "calendars/alice/" may
    refer to "https://dav.example.com/remote.php/dav/calendars/alice/"

    2) an absolute path, i.e. "/remote.php/dav/calendars/alice/"

    3) a fully qualified URL, i.e.
    "https://dav.example.com/remote.php/dav/calendars/alice/"

    Relative references are resolved the way a browser resolves them
    (RFC 3986 section 5), so a base URL should end with a slash.
    """

    def __init__(self, url: Union[str, ParseResult, SplitResult]) -> None:
        if isinstance(url, (ParseResult, SplitResult)):
            url = url.geturl()
        self.url_raw: str = to_normal_str(url) or ""
        self.url_parsed: ParseResult = urlparse(self.url_raw)

    @classmethod
    def objectify(cls, url: Union[Self, str, ParseResult, SplitResult, None]) -> Optional["URL"]:
        if url is None or isinstance(url, URL):
            return url
        return URL(url)

    def __bool__(self) -> bool:
        return bool(self.url_raw)

    def __str__(self) -> str:
        return self.url_raw

    def __repr__(self) -> str:
        return "URL(%s)" % str(self)

    def __eq__(self, other: object) -> bool:
        if str(self) == str(other):
            return True
        if isinstance(other, (str, ParseResult, SplitResult)):
            other = URL(other)
        if not isinstance(other, URL):
            return False
        return str(self.canonical()) == str(other.canonical())

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __hash__(self) -> int:
        return hash(str(self))

    @property
    def scheme(self) -> str:
        return self.url_parsed.scheme

    @property
    def hostname(self) -> Optional[str]:
        return self.url_parsed.hostname

    @property
    def port(self) -> Optional[int]:
        return self.url_parsed.port

    @property
    def username(self) -> Optional[str]:
        return self.url_parsed.username

    @property
    def password(self) -> Optional[str]:
        return self.url_parsed.password

    @property
    def path(self) -> str:
        return self.url_parsed.path

    def is_auth(self) -> bool:
        return self.username is not None

    def unauth(self) -> "URL":
        """The same URL, with username and password stripped away"""
        if not self.is_auth():
            return self
        netloc = self.hostname or ""
        if self.port:
            netloc = "%s:%s" % (netloc, self.port)
        return URL(self.url_parsed._replace(netloc=netloc))

    def canonical(self) -> "URL":
        """
        a canonical URL ... remove authentication details, make sure there
        are no double slashes and make sure the path is properly quoted
        """
        parsed = self.unauth().url_parsed
        path = quote(unquote(parsed.path.replace("//", "/")))
        return URL(urlunparse(parsed._replace(path=path)))

    def join(self, path: Union["URL", str, None]) -> "URL":
        """
        Resolve ``path`` relative to this URL.  An absolute path keeps
        the scheme and host of this URL, a relative path is appended to
        the last directory of this URL's path.
        """
        if not path or not str(path):
            return self
        return URL(urljoin(str(self), str(path)))
