#!/usr/bin/env python
"""
The ``DAVClient`` class handles the basic communication with a WebDAV,
CalDAV or CardDAV server.  It issues one HTTP request per method, sets
the default headers, turns any non-2xx answer into one of the network
request errors in ``cdav.lib.error`` and reduces 207 Multi-Status
bodies into a ``{path: {property-name: value}}`` mapping before handing
them to the caller.

The ``DAVResponse`` class holds what came back.  In most use-cases
library users will not interface with this class directly.

``get_davclient`` will return a DAVClient object, based either on
parameters, environmental variables or a configuration file.
"""
import asyncio
import os
import sys
from collections.abc import Mapping
from types import TracebackType
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union
from urllib.parse import unquote

import niquests
from niquests import AsyncSession
from niquests.auth import AuthBase

from cdav import __version__
from cdav.elements.base import get_root_skeleton
from cdav.elements.base import serialize
from cdav.elements.base import XMLNode
from cdav.lib import error
from cdav.lib import namespace as NS
from cdav.lib.error import log
from cdav.lib.namespace import split_qname
from cdav.lib.python_utilities import to_normal_str
from cdav.lib.python_utilities import to_wire
from cdav.lib.url import URL
from cdav.parser import Parser
from cdav.response import parse_multistatus
from cdav.response import was_request_successful

if sys.version_info < (3, 11):
    from typing_extensions import Self
else:
    from typing import Self

## TODO: this is also declared in DAVClient.__init__(...), the two lists
## have to be kept in sync by hand
CONNKEYS = set(
    (
        "url",
        "proxy",
        "username",
        "password",
        "timeout",
        "headers",
        "huge_tree",
        "ssl_verify_cert",
        "ssl_cert",
        "auth",
        "auth_type",
    )
)

PropertyName = Union[str, Tuple[str, str]]


class HTTPBearerAuth(AuthBase):
    def __init__(self, password: str) -> None:
        self.password = password

    def __eq__(self, other: object) -> bool:
        return self.password == getattr(other, "password", None)

    def __call__(self, r):
        r.headers["Authorization"] = f"Bearer {self.password}"
        return r


def get_default_headers() -> Dict[str, str]:
    """
    Headers included in every request unless the caller overrides them.
    """
    ## RFC 4918, section 9.1: "Servers SHOULD treat request without a
    ## Depth header as if a "Depth: infinity" header was included."
    ## We'd rather be explicit.
    return {
        "Depth": "0",
        "Content-Type": "application/xml; charset=utf-8",
    }


def _is_depth_zero(depth: Any) -> bool:
    try:
        return int(str(depth)) == 0
    except ValueError:
        return False


class DAVResponse:
    """
    What came back from one successful DAV request.

    For a 207 Multi-Status answer ``body`` holds the reduced mapping
    ``{path: {property-name: value}}`` - or, for a PROPFIND with depth 0,
    the property mapping of the one resource that was asked for.  For
    everything else ``body`` is the response text.
    """

    status: int = 0
    body: Any = None
    reason: str = ""
    headers: Mapping = None

    def __init__(
        self,
        status: int,
        body: Any = None,
        headers: Optional[Mapping] = None,
        reason: str = "",
    ) -> None:
        self.status = status
        self.body = body
        self.headers = headers if headers is not None else {}
        self.reason = reason

    def __repr__(self) -> str:
        return "DAVResponse(%s)" % self.status


class DAVClient:
    """
    Basic client for webdav, uses the niquests lib; gives access to
    low-level operations towards the server.

    All paths given to the methods may be relative to the base url,
    absolute paths or complete urls.
    """

    proxy: Optional[str] = None
    url: URL = None
    huge_tree: bool = False

    def __init__(
        self,
        url: str,
        proxy: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        auth: Optional[AuthBase] = None,
        auth_type: Optional[str] = None,
        timeout: Optional[int] = None,
        ssl_verify_cert: Union[bool, str] = True,
        ssl_cert: Union[str, Tuple[str, str], None] = None,
        headers: Optional[Mapping[str, str]] = None,
        huge_tree: bool = False,
        parser: Optional[Parser] = None,
    ) -> None:
        """
        Sets up a connection object towards a DAV server.

        Args:
            url: the root url of the DAV server, i.e.
                 https://cloud.example.com/remote.php/dav/ - mind the
                 trailing slash, relative paths are resolved against it.
            proxy: proxy server (scheme://hostname:port).
            username: username for authentication.
            password: password for authentication.
            auth: custom auth object (niquests.auth.AuthBase).
            auth_type: 'bearer', 'digest' or 'basic'.  If not given, it
                 is negotiated the first time the server answers 401.
            timeout: request timeout in seconds.  No timeout by default.
            ssl_verify_cert: SSL certificate verification (bool or CA bundle path).
            ssl_cert: client SSL certificate (path or (cert, key) tuple).
            headers: additional headers for all requests.
            huge_tree: enable XMLParser huge_tree for very large responses.
            parser: property decoders used when reducing 207 responses.
        """
        headers = headers or {}

        self.session = AsyncSession()
        self.url = URL.objectify(url)
        self.huge_tree = huge_tree
        self.parser = parser or Parser()

        # Combine credentials (explicit params take precedence over the url)
        url_username = unquote(self.url.username) if self.url.username else None
        url_password = unquote(self.url.password) if self.url.password else None
        self.username = username if username is not None else url_username
        self.password = password if password is not None else url_password
        if self.url.is_auth():
            self.url = self.url.unauth()

        self.auth = auth
        self.auth_type = auth_type
        if not self.auth and self.auth_type:
            self.build_auth_object([self.auth_type])

        self.proxy = proxy
        if self.proxy is not None and "://" not in self.proxy:
            self.proxy = "http://" + self.proxy

        self.timeout = timeout
        self.ssl_verify_cert = ssl_verify_cert
        self.ssl_cert = ssl_cert

        self.headers: Dict[str, str] = {
            "User-Agent": f"python-cdav/{__version__}",
        }
        self.headers.update(headers)

    @property
    def base_url(self) -> str:
        return str(self.url)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the session."""
        if hasattr(self, "session"):
            await self.session.close()

    # ==================== HTTP / DAV methods ====================

    async def get(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        return await self.request("GET", url, headers, body)

    async def patch(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        return await self.request("PATCH", url, headers, body)

    async def post(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        return await self.request("POST", url, headers, body)

    async def put(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        return await self.request("PUT", url, headers, body)

    async def delete(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        return await self.request("DELETE", url, headers, body)

    async def copy(
        self,
        url: str,
        destination: str,
        depth: Union[int, str] = 0,
        overwrite: bool = False,
        headers: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> DAVResponse:
        """
        Send a COPY request, RFC 4918 section 9.8.

        Args:
            url: the resource to copy.
            destination: where to copy it to.
            depth: 0 copies a collection without its members,
                   "Infinity" copies a collection with everything in it.
            overwrite: whether an existing destination may be replaced.
            headers: additional headers.
        """
        headers = dict(headers or {})
        headers["Destination"] = self.absolute_url(destination)
        headers["Depth"] = str(depth)
        headers["Overwrite"] = "T" if overwrite else "F"
        return await self.request("COPY", url, headers, body)

    async def move(
        self,
        url: str,
        destination: str,
        overwrite: bool = False,
        headers: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> DAVResponse:
        """
        Send a MOVE request, RFC 4918 section 9.9.  A collection is always
        moved with all its members, so Depth is forced to Infinity.
        """
        headers = dict(headers or {})
        headers["Destination"] = self.absolute_url(destination)
        headers["Depth"] = "Infinity"
        headers["Overwrite"] = "T" if overwrite else "F"
        return await self.request("MOVE", url, headers, body)

    async def lock(
        self,
        url: str,
        headers: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        timeout: Optional[int] = None,
        depth: Union[int, str, None] = None,
        owner: Optional[str] = None,
    ) -> DAVResponse:
        """
        Send a LOCK request, RFC 4918 section 9.10.

        Without a body, an exclusive write lock is requested.  The lock
        token handed out by the server is in the ``Lock-Token`` header
        of the response.

        Args:
            url: the resource to lock.
            timeout: requested lock lifetime in seconds.
            depth: 0 or "Infinity".
            owner: an href identifying the owner of the lock.
        """
        headers = dict(headers or {})
        if timeout is not None:
            headers["Timeout"] = f"Second-{timeout}"
        if depth is not None:
            headers["Depth"] = str(depth)
        if body is None:
            skeleton, _ = get_root_skeleton((NS.DAV, "lockinfo"))
            skeleton.append(
                XMLNode(
                    (NS.DAV, "lockscope"), children=[XMLNode((NS.DAV, "exclusive"))]
                )
            )
            skeleton.append(
                XMLNode((NS.DAV, "locktype"), children=[XMLNode((NS.DAV, "write"))])
            )
            if owner:
                skeleton.append(XMLNode((NS.DAV, "owner"), value={"href": owner}))
            body = serialize(skeleton)
        return await self.request("LOCK", url, headers, body)

    async def unlock(
        self,
        url: str,
        lock_token: Optional[str] = None,
        headers: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> DAVResponse:
        """
        Send an UNLOCK request, RFC 4918 section 9.11.
        """
        headers = dict(headers or {})
        if lock_token:
            if not lock_token.startswith("<"):
                lock_token = f"<{lock_token}>"
            headers["Lock-Token"] = lock_token
        return await self.request("UNLOCK", url, headers, body)

    async def propfind(
        self,
        url: str,
        properties: Iterable[PropertyName],
        depth: Union[int, str] = 0,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> DAVResponse:
        """
        Send a PROPFIND request, RFC 4918 section 9.1.

        Args:
            url: the resource to query.
            properties: the properties to ask for, either as
                        ``(namespace, name)`` tuples or as
                        ``{namespace}name`` strings.
            depth: 0 for the resource only, 1 to include its members.

        Returns:
            a DAVResponse, where body is ``{path: {property: value}}``,
            or just ``{property: value}`` for depth 0.
        """
        headers = dict(headers or {})
        headers["Depth"] = str(depth)

        skeleton, prop = get_root_skeleton((NS.DAV, "propfind"), (NS.DAV, "prop"))
        prop.extend(
            XMLNode(split_qname(p) if isinstance(p, str) else p) for p in properties
        )
        return await self.request("PROPFIND", url, headers, serialize(skeleton))

    async def proppatch(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        """Send a PROPPATCH request, RFC 4918 section 9.2."""
        return await self.request("PROPPATCH", url, headers, body)

    async def mkcol(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        """Send a MKCOL request, RFC 4918 section 9.3 and RFC 5689."""
        return await self.request("MKCOL", url, headers, body)

    async def report(
        self, url: str, headers: Optional[Mapping[str, Any]] = None, body: Any = None
    ) -> DAVResponse:
        """Send a REPORT request, RFC 3253 section 3.6."""
        return await self.request("REPORT", url, headers, body)

    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> DAVResponse:
        """
        Send a generic request.

        Args:
            method: HTTP method name.
            url: request URL, may be relative to the base url.
            headers: additional headers, they override the defaults.
            body: request body.

        Returns:
            DAVResponse for any 2xx answer.

        Raises:
            NetworkRequestAbortedError: the request was cancelled.
            NetworkRequestError: no response was received.
            NetworkRequestClientError: the server answered 4xx.
            NetworkRequestServerError: the server answered 5xx.
            NetworkRequestHttpError: any other non-2xx answer.
        """
        combined_headers = self.headers.copy()
        combined_headers.update(get_default_headers())
        for key, value in (headers or {}).items():
            combined_headers[key] = str(value)

        absolute_url = self.absolute_url(url)

        proxies = None
        if self.proxy is not None:
            proxies = {URL(absolute_url).scheme: self.proxy}
            log.debug(f"using proxy - {proxies}")

        log.debug(
            f"sending request - method={method}, url={absolute_url}, headers={combined_headers}\nbody:\n{to_normal_str(body)}"
        )

        try:
            r = await self.session.request(
                method,
                absolute_url,
                data=to_wire(body),
                headers=combined_headers,
                proxies=proxies,
                auth=self.auth,
                timeout=self.timeout,
                verify=self.ssl_verify_cert,
                cert=self.ssl_cert,
            )
        except asyncio.CancelledError as err:
            raise error.NetworkRequestAbortedError(
                url=absolute_url, reason="request aborted"
            ) from err
        except niquests.exceptions.RequestException as err:
            raise error.NetworkRequestError(url=absolute_url, reason=str(err)) from err

        log.debug(f"server responded with {r.status_code} {r.reason}")

        if (
            r.status_code == 401
            and "WWW-Authenticate" in r.headers
            and not self.auth
            and (self.username or self.password)
        ):
            auth_types = self.extract_auth_types(r.headers["WWW-Authenticate"])
            self.build_auth_object(list(auth_types))
            return await self.request(method, url, headers, body)

        if not was_request_successful(r.status_code):
            raise error.error_for_status(
                r.status_code, url=absolute_url, reason=r.reason, body=r.text
            )

        response_body: Any = r.text
        if r.status_code == 207:
            response_body = parse_multistatus(r.content, self.parser, self.huge_tree)
            if method == "PROPFIND" and _is_depth_zero(combined_headers.get("Depth")):
                if len(response_body) > 1:
                    error.weirdness(
                        f"depth 0 propfind on {absolute_url} returned {len(response_body)} resources"
                    )
                response_body = next(iter(response_body.values()), None)

        return DAVResponse(r.status_code, response_body, r.headers, r.reason)

    # ==================== Paths ====================

    def filename(self, url: str) -> str:
        """
        The last segment of the path of a url, i.e. "personal" for
        "/dav/calendars/alice/personal/"
        """
        pathname = self.pathname(url)
        if pathname.endswith("/"):
            pathname = pathname[:-1]
        return pathname.rpartition("/")[2]

    def pathname(self, url: str) -> str:
        """The path of a url, resolved against the base url"""
        return self.url.join(url).path

    def absolute_url(self, url: str) -> str:
        """A url resolved against the base url"""
        return str(self.url.join(url))

    # ==================== Entry point ====================

    async def principal(self, url: Optional[str] = None) -> Any:
        """
        The principal of the logged in user (RFC 5397), or the one at
        ``url``, with its properties.

        Raises:
            NotFoundError if the server does not tell who we are
        """
        ## late import to avoid a circular dependency
        from cdav.models.principal import Principal

        if url is None:
            response = await self.propfind(
                self.base_url, [(NS.DAV, "current-user-principal")]
            )
            url = (response.body or {}).get(NS.qname(NS.DAV, "current-user-principal"))
            if not url:
                raise error.NotFoundError(
                    url=self.base_url, reason="no current-user-principal"
                )

        response = await self.propfind(url, Principal.get_prop_find_list())
        return Principal(None, self, self.pathname(url), response.body or {})

    # ==================== Authentication ====================

    def extract_auth_types(self, header: str) -> set:
        """
        Extract authentication types from a WWW-Authenticate header.
        """
        # https://developer.mozilla.org/en-US/docs/Web/HTTP/Headers/WWW-Authenticate#syntax
        return {h.split()[0] for h in header.lower().split(",") if h.strip()}

    def build_auth_object(self, auth_types: Optional[List[str]] = None) -> None:
        """
        Build an authentication object from the configured credentials.

        Args:
            auth_types: auth types acceptable to the server.
        """
        auth_type = self.auth_type
        if not auth_type and not auth_types:
            raise error.AuthorizationError(reason="No auth-type given")
        if auth_types and auth_type and auth_type not in auth_types:
            raise error.AuthorizationError(
                reason=f"Auth type {auth_type} not supported by server. Supported: {auth_types}"
            )

        ## Prefer digest, then basic, then bearer
        if not auth_type:
            for candidate in ("digest", "basic", "bearer"):
                if candidate in auth_types:
                    auth_type = candidate
                    break

        if auth_type == "bearer":
            self.auth = HTTPBearerAuth(self.password)
        elif auth_type == "digest":
            from niquests.auth import AsyncHTTPDigestAuth

            self.auth = AsyncHTTPDigestAuth(self.username, self.password)
        elif auth_type == "basic":
            from niquests.auth import HTTPBasicAuth

            self.auth = HTTPBasicAuth(self.username, self.password)
        else:
            raise error.AuthorizationError(reason=f"Unsupported auth type: {auth_type}")


def get_davclient(
    check_config_file: bool = True,
    config_file: Optional[str] = None,
    config_section: Optional[str] = None,
    environment: bool = True,
    **config_data: Any,
) -> Optional[DAVClient]:
    """
    This function will yield a DAVClient object.  It will not try to
    connect.  It will read configuration from various sources, dependent
    on the parameters given, in this order:

    * Data from the parameters given
    * Environment variables prepended with `CDAV_`, like `CDAV_URL`,
      `CDAV_USERNAME`, `CDAV_PASSWORD`.
    * Environment variables `CDAV_CONFIG_FILE` and `CDAV_CONFIG_SECTION`
    * Configuration file, see ``cdav.config.read_config``

    Returns None if no configuration was found.
    """
    if config_data:
        return DAVClient(**config_data)

    if environment:
        conf = {}
        for conf_key in (
            x
            for x in os.environ
            if x.startswith("CDAV_") and not x.startswith("CDAV_CONFIG")
        ):
            conf[conf_key[5:].lower()] = os.environ[conf_key]
        if conf:
            return DAVClient(**conf)
        if not config_file:
            config_file = os.environ.get("CDAV_CONFIG_FILE")
        if not config_section:
            config_section = os.environ.get("CDAV_CONFIG_SECTION")

    if check_config_file:
        from cdav import config

        cfg = config.read_config(config_file)
        if cfg:
            conn_params = config.connection_params(
                config.config_section(cfg, config_section or "default")
            )
            if conn_params:
                return DAVClient(**conn_params)
    return None
