"""
fldigi XML-RPC client

fldigi serves XML-RPC on http://host:7362/RPC2 by default. Only the calls
needed to follow the rig frequency are wrapped here.
"""
import http.client
import logging
import math
import xmlrpc.client
from typing import List
from xml.parsers.expat import ExpatError

from bandmon import DEFAULT_HOST, DEFAULT_PORT, BandmonError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0  # seconds

# Errors the transport and XML codec can raise for an unreachable or misbehaving server.
# The unmarshaller raises ValueError/TypeError for bad scalars like <double>abc</double>.
TRANSPORT_ERRORS = (
    xmlrpc.client.Error,
    http.client.HTTPException,
    ExpatError,
    OSError,
    ValueError,
    TypeError,
)


class FetchError(BandmonError):
    """fldigi could not be reached or returned unusable data"""


class TimeoutTransport(xmlrpc.client.Transport):
    """HTTP transport with a socket timeout"""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        super().__init__()
        self.timeout = timeout

    def make_connection(self, host):
        conn = super().make_connection(host)
        conn.timeout = self.timeout
        return conn


class FldigiClient:
    """Thin wrapper around fldigi's XML-RPC interface"""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT):
        self.host = host
        self.port = port
        self.url = f"http://{host}:{port}/RPC2"
        self._proxy = xmlrpc.client.ServerProxy(
            self.url,
            transport=TimeoutTransport(timeout),
        )

    def __repr__(self):
        return f"FldigiClient({self.url!r})"

    def _call(self, method: str, *params):
        try:
            return getattr(self._proxy, method)(*params)
        except xmlrpc.client.Fault as e:
            raise FetchError(f"XML-RPC fault from {method}: {e.faultString} (code {e.faultCode})") from e
        except TRANSPORT_ERRORS as e:
            raise FetchError(f"{method} request to {self.url} failed: {e}") from e

    def get_frequency(self) -> float:
        """
        Read the current VFO frequency in Hz

        fldigi answers rig.get_vfo with a string, but double and int
        values are accepted too.
        """
        value = self._call("rig.get_vfo")
        if value is None or (isinstance(value, str) and not value.strip()):
            raise FetchError("empty frequency response")
        if isinstance(value, bool):
            raise FetchError(f"unexpected frequency value {value!r}")

        try:
            freq = float(value)
        except (TypeError, ValueError) as e:
            raise FetchError(f"failed to parse frequency {value!r}: {e}") from e

        if not math.isfinite(freq):
            raise FetchError(f"failed to parse frequency {value!r}")

        logger.debug(f"rig.get_vfo -> {freq:.0f} Hz")
        return freq

    def list_methods(self) -> List[str]:
        """List the XML-RPC methods fldigi exposes"""
        methods = self._call("system.listMethods")
        if not isinstance(methods, list):
            raise FetchError(f"unexpected system.listMethods response: {methods!r}")
        return [str(m) for m in methods]
