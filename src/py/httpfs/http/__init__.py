from .model import (
	HTTPRequest,
	HTTPResponse,
	HTTPHeaders,
	HTTPBodyBlob,
	HTTPRequestError,
)  # NOQA: F401
from .parser import HTTPParser  # NOQA: F401
from .status import HTTP_STATUS  # NOQA: F401

# EOF
