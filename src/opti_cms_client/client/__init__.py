"""Client package for the CMS API.

- ``cms_client``: ``CmsClient`` facade with the content operations
- ``token_manager``: OAuth2 client-credentials token lifecycle
- ``dispatcher``: request building, header precedence and response decoding
- ``transport``: deadline-bounded sends over a shared ``httpx.AsyncClient``
"""

from .cms_client import CmsClient
from .dispatcher import RequestDispatcher
from .token_manager import TokenManager

__all__ = ["CmsClient", "RequestDispatcher", "TokenManager"]
