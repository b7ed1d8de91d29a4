"""
BankMock Requests Adapter

Transport adapter that routes ``requests.Session`` traffic to a Backend, so
provider clients built on requests can run against scripted scenarios
without a network:

    session = requests.Session()
    session.mount('https://', MockAdapter(backend))
    session.get('https://sandbox.plaid.com/accounts/42')
"""

from http import HTTPStatus
from typing import Optional

from requests import PreparedRequest, Response
from requests.adapters import BaseAdapter
from requests.exceptions import ConnectionError
from requests.structures import CaseInsensitiveDict

from ..common.errors import NoMatchError
from .backend import Backend, HttpRequest, HttpResponse


def _reason(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ''


class MockAdapter(BaseAdapter):
    """requests adapter backed by a Backend (usually a MockBackend)."""

    def __init__(self, backend: Backend):
        super().__init__()
        self.backend = backend

    def send(
        self,
        request: PreparedRequest,
        stream: bool = False,
        timeout=None,
        verify=True,
        cert=None,
        proxies=None
    ) -> Response:
        """
        Execute a prepared request against the backend.

        Raises:
            requests.exceptions.ConnectionError: If no mock matches; the
                NoMatchError is chained as the cause
        """
        body: Optional[str] = request.body
        if isinstance(body, bytes):
            body = body.decode('utf-8', errors='replace')

        call = HttpRequest(
            method=request.method or 'GET',
            url=request.url or '/',
            headers=dict(request.headers),
            body=body
        )

        try:
            result = self.backend.execute(call)
        except NoMatchError as e:
            raise ConnectionError(str(e), request=request) from e

        return self.build_response(request, result)

    def build_response(self, request: PreparedRequest, result: HttpResponse) -> Response:
        response = Response()
        response.status_code = result.status
        response.reason = _reason(result.status)
        response.headers = CaseInsensitiveDict(result.headers)
        response.encoding = 'utf-8'
        response._content = result.body.encode('utf-8')
        response.url = request.url
        response.request = request
        response.connection = self
        return response

    def close(self):
        pass
