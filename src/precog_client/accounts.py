# Precog Client
# File: accounts.py
# Version: v2

"""Account creation and lookup against the accounts service.

Account calls do not use an API key, so they live outside PrecogClient
and take the endpoint explicitly. Only HTTPS endpoints are accepted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .auth import BasicCredentials, require_https
from .config import DEFAULT_ENDPOINT
from .decoders import decode_account_id, decode_account_info
from .errors import AuthenticationFailedError, InvalidArgumentError
from .models import AccountInfo
from .transport import HttpTransport, check_status

logger = logging.getLogger(__name__)

ACCOUNTS_PATH = "/accounts/v1/accounts/"


def _open(
    endpoint: str,
    verify_tls: bool,
    timeout: Optional[float],
    transport: Optional[httpx.BaseTransport],
) -> HttpTransport:
    require_https(endpoint)
    return HttpTransport(endpoint, verify_tls=verify_tls, timeout=timeout, transport=transport)


def _describe(http: HttpTransport, credentials: BasicCredentials, account_id: str) -> AccountInfo:
    if not account_id:
        raise InvalidArgumentError("accountId must not be empty")

    response = http.request(
        "GET",
        ACCOUNTS_PATH + account_id,
        headers={**credentials.header(), "Accept": "application/json"},
    )
    if response.status_code in (401, 403):
        raise AuthenticationFailedError(
            f"Accounts service rejected credentials for '{credentials.email}'",
            status_code=response.status_code,
            body=response.text,
        )
    check_status(response, 200, f"fetch details for account '{account_id}'")
    return decode_account_info(response.text)


def account_details(
    email: str,
    password: str,
    account_id: str,
    *,
    endpoint: str = DEFAULT_ENDPOINT,
    verify_tls: bool = True,
    timeout: Optional[float] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> AccountInfo:
    """Fetch the full record of an account.

    This is the primary way to recover an account's master API key.
    """
    credentials = BasicCredentials(email=email, password=password)
    with _open(endpoint, verify_tls, timeout, transport) as http:
        return _describe(http, credentials, account_id)


def create_account(
    email: str,
    password: str,
    profile: Any = None,
    *,
    endpoint: str = DEFAULT_ENDPOINT,
    verify_tls: bool = True,
    timeout: Optional[float] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> AccountInfo:
    """Create an account and return its details.

    The creation response only carries the new ``accountId``; the full
    record comes from a second, Basic-authenticated details call.
    """
    payload: Dict[str, Any] = {"email": email, "password": password}
    if profile:
        payload["profile"] = profile

    with _open(endpoint, verify_tls, timeout, transport) as http:
        response = http.request("POST", ACCOUNTS_PATH, json=payload)
        check_status(response, 200, f"create account for '{email}'")
        account_id = decode_account_id(response.text)
        logger.info("Created account %s", account_id)

        credentials = BasicCredentials(email=email, password=password)
        return _describe(http, credentials, account_id)
