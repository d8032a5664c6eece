"""IndieAuth client - discovery, authorization URLs and code exchange."""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from .auth import pkce
from .auth.state import StateToken, generate_state, validate_state
from .config import ClientConfiguration
from .errors import ConfigurationError, ProtocolError, ValidationError
from .net.discovery import (
    AUTHORIZATION_ENDPOINT,
    TOKEN_ENDPOINT,
    canonicalize_url,
    resolve_with_redirects,
    select_endpoints,
)
from .net.http_client import HttpResponse, HttpTransport
from .net.protocols import RelationExtractor, Transport
from .net.rels import extract_relations
from .validate import is_valid_url

__all__ = ["IndieAuthClient", "TokenResult"]

logger = logging.getLogger(__name__)

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
    "Accept": "application/json, application/x-www-form-urlencoded",
}


@dataclass
class TokenResult:
    """Accepted token endpoint response."""

    me: str
    scope: str
    access_token: str
    raw: dict = field(default_factory=dict)


def _strip_trailing_slashes(url: str) -> str:
    return url.rstrip("/")


def _hostname(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


class IndieAuthClient:
    """IndieAuth client for a single user/client pair.

    Flow:
    1. discover_endpoints() finds the user's authorization/token endpoints
    2. get_auth_url() builds the URL to send the user to
    3. The user authenticates; the callback carries `code` and `state`
    4. validate_state() checks the callback state
    5. verify_code() (authentication) or get_token() (authorization)

    Not safe for concurrent use: operations write back to `config`.
    """

    def __init__(
        self,
        config: Optional[ClientConfiguration] = None,
        transport: Optional[Transport] = None,
        rel_extractor: Optional[RelationExtractor] = None,
        **options: Optional[str],
    ):
        """Initialize client.

        Args:
            config: Client configuration (built from `options` if None)
            transport: HTTP transport (creates an HttpTransport if None)
            rel_extractor: Link relation parser (defaults to extract_relations)
            **options: ClientConfiguration fields, e.g. me=..., client_id=...
        """
        if config is not None and options:
            raise TypeError("Pass either a config or configuration options, not both")
        self.config = config or ClientConfiguration(**options)
        self._transport = transport or HttpTransport()
        self._owns_transport = transport is None
        self._extract_relations = rel_extractor or extract_relations

    # Options

    def check_required_options(self, names: Sequence[str]) -> bool:
        """Check that the given configuration options are set.

        Raises:
            ConfigurationError: Listing every missing option
        """
        missing = [name for name in names if not getattr(self.config, name)]
        if missing:
            raise ConfigurationError(f"Missing required options: {', '.join(missing)}")
        return True

    # State

    def generate_state(self) -> str:
        """Generate an encrypted state bound to the configured me and client_id."""
        self.check_required_options(["secret", "me", "client_id"])
        return generate_state(self.config.me, self.config.client_id, self.config.secret)

    def auto_generate_state(self) -> None:
        """Set config.state from generate_state() if it is empty.

        Does nothing when secret, me or client_id is missing; callers without a
        secret supply their own state.
        """
        if self.config.state:
            return
        try:
            self.config.state = self.generate_state()
        except ConfigurationError:
            logger.debug("Not generating state: missing secret, me or client_id")

    def validate_state(self, state: str) -> Optional[StateToken]:
        """Validate a state created by generate_state().

        Returns:
            The decoded StateToken, or None if the state is not valid
        """
        self.check_required_options(["secret", "client_id"])
        try:
            token = validate_state(
                state, self.config.client_id, self.config.secret, self.config.me
            )
        except ProtocolError as e:
            logger.warning(f"Rejected state: {e}")
            return None

        if not self.config.me:
            self.config.me = token.me
        return token

    # Discovery

    def discover_endpoints(
        self, url: Optional[str] = None, extra_rels: Iterable[str] = ()
    ) -> dict[str, Optional[str]]:
        """Find the endpoints advertised by a user's URL.

        Updates config.me to the canonical final URL, config.auth_endpoint,
        and config.token_endpoint when one is advertised.

        Args:
            url: The user's URL (defaults to config.me)
            extra_rels: Extra rels to look up, lower-cased

        Returns:
            Mapping of authorization_endpoint, token_endpoint and extra rels
            to the first URL found, or None

        Raises:
            NetworkError: If the URL cannot be fetched
            ProtocolError: If no authorization endpoint is advertised, or an
                advertised endpoint is not an http(s) URL
        """
        if url is None:
            self.check_required_options(["me"])
            url = self.config.me

        response = resolve_with_redirects(self._transport, canonicalize_url(url))
        rels = self._extract_relations(response.url, response.body, response.headers)
        found = select_endpoints(rels, extra_rels)

        if found[AUTHORIZATION_ENDPOINT] is None:
            raise ProtocolError("No authorization endpoint found")

        changes = {"me": response.url, "auth_endpoint": found[AUTHORIZATION_ENDPOINT]}
        if found[TOKEN_ENDPOINT] is not None:
            changes["token_endpoint"] = found[TOKEN_ENDPOINT]
        try:
            self.config.update(**changes)
        except ValidationError as e:
            raise ProtocolError(f"Invalid endpoint advertised by {response.url}") from e

        logger.info(
            f"Discovered endpoints for {response.url}: "
            f"authorization={found[AUTHORIZATION_ENDPOINT]} token={found[TOKEN_ENDPOINT]}"
        )
        return found

    # Authorization request

    def get_auth_url(self, response_type: str = "id", scopes: Sequence[str] = ()) -> str:
        """Build the URL of the authorization endpoint to send the user to.

        Args:
            response_type: "id" for authentication, "code" for authorization
            scopes: Scopes to request (required for "code")

        Returns:
            Authorization URL

        Raises:
            ConfigurationError: If a required option is missing
            ProtocolError: If "code" is requested without scopes, or discovery fails
        """
        self.auto_generate_state()
        self.check_required_options(["me", "state"])
        if response_type == "code" and not scopes:
            raise ProtocolError('You need to provide some scopes when using response type "code"')

        if not self.config.auth_endpoint:
            self.discover_endpoints(self.config.me)

        self.check_required_options(["me", "state", "client_id", "redirect_uri", "auth_endpoint"])

        params = [
            ("me", self.config.me),
            ("client_id", self.config.client_id),
            ("redirect_uri", self.config.redirect_uri),
            ("response_type", response_type),
            ("state", self.config.state),
        ]
        if scopes:
            params.append(("scope", " ".join(scopes)))

        # Add a PKCE code challenge if a code verifier is set
        if response_type == "code" and self.config.code_verifier:
            challenge = pkce.compute_code_challenge(self.config.code_verifier)
            params.append(("code_challenge_method", pkce.CODE_CHALLENGE_METHOD))
            params.append(("code_challenge", quote(challenge, safe="")))

        parts = urlsplit(self.config.auth_endpoint)
        query = parse_qsl(parts.query, keep_blank_values=True) + params
        return urlunsplit(parts._replace(query=urlencode(query)))

    # Code exchange

    def _post_form(self, url: str, data: dict) -> HttpResponse:
        return self._transport.request("POST", url, headers=FORM_HEADERS, data=data)

    @staticmethod
    def _decode(response: HttpResponse) -> dict:
        """Decode a JSON or form-encoded response body."""
        if "application/json" in response.content_type.lower():
            try:
                data = json.loads(response.body)
            except ValueError as e:
                raise ProtocolError("Response is not valid JSON", response.status) from e
            if not isinstance(data, dict):
                raise ProtocolError("Response is not a JSON object", response.status)
            return data
        return dict(parse_qsl(response.body, keep_blank_values=True))

    def _decode_checked(self, response: HttpResponse, failure_message: str) -> dict:
        """Decode a response and raise the error it carries, if any."""
        if not response.ok:
            try:
                data = self._decode(response)
            except ProtocolError:
                data = {}
            message = data.get("error_description") or data.get("error") or failure_message
            raise ProtocolError(str(message), response.status)

        data = self._decode(response)
        if data.get("error_description"):
            raise ProtocolError(str(data["error_description"]), response.status)
        if data.get("error"):
            raise ProtocolError(str(data["error"]), response.status)
        return data

    def verify_code(self, code: str) -> str:
        """Verify an authorization code with the authorization endpoint.

        Args:
            code: Code received in the callback

        Returns:
            The `me` value confirmed by the authorization endpoint

        Raises:
            ConfigurationError: If a required option is missing
            ProtocolError: If the code is rejected or the me values differ
            NetworkError: If the endpoint cannot be reached
        """
        self.check_required_options(["client_id", "redirect_uri", "auth_endpoint"])

        response = self._post_form(
            self.config.auth_endpoint,
            {
                "code": code,
                "client_id": self.config.client_id,
                "redirect_uri": self.config.redirect_uri,
            },
        )
        data = self._decode_checked(response, "Error verifying code")

        me = data.get("me")
        if not me or not isinstance(me, str):
            raise ProtocolError(
                'The auth endpoint did not return the "me" parameter while verifying the code'
            )
        if not is_valid_url(me):
            raise ProtocolError('The auth endpoint returned an invalid "me"')

        if self.config.me and _strip_trailing_slashes(me) != _strip_trailing_slashes(
            self.config.me
        ):
            logger.warning(f"Auth endpoint returned me={me}, expected {self.config.me}")
            raise ProtocolError("The me values did not match")

        if not self.config.me:
            self.config.me = me

        logger.info(f"Authorization code verified for {me}")
        return me

    def exchange_code(self, code: str) -> TokenResult:
        """Exchange an authorization code at the token endpoint.

        Raises:
            ConfigurationError: If a required option is missing
            ProtocolError: If the response is an error, is incomplete, or its
                me is on a different hostname
            NetworkError: If the endpoint cannot be reached
        """
        self.check_required_options(["me", "client_id", "redirect_uri", "token_endpoint"])

        data = {
            "grant_type": "authorization_code",
            "me": self.config.me,
            "code": code,
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
        }
        if self.config.code_verifier:
            data["code_verifier"] = self.config.code_verifier

        response = self._post_form(self.config.token_endpoint, data)
        result = self._decode_checked(response, "Error requesting token endpoint")

        if not all(result.get(key) for key in ("me", "scope", "access_token")):
            raise ProtocolError("The token endpoint did not return the expected parameters")

        returned_host = _hostname(str(result["me"]))
        if returned_host is None or returned_host != _hostname(self.config.me):
            logger.warning(
                f"Token endpoint returned me={result['me']}, expected host of {self.config.me}"
            )
            raise ProtocolError("The me values do not share the same hostname")

        logger.info(f"Access token granted for {result['me']} (scope: {result['scope']})")
        return TokenResult(
            me=str(result["me"]),
            scope=str(result["scope"]),
            access_token=str(result["access_token"]),
            raw=result,
        )

    def get_token(self, code: str) -> str:
        """Exchange an authorization code for an access token.

        Returns:
            The access token
        """
        return self.exchange_code(code).access_token

    def verify_token(self, token: str) -> bool:
        """Check an access token against the token endpoint.

        Returns:
            True if the token endpoint accepts the token

        Raises:
            ProtocolError: If the token endpoint rejects it
        """
        self.check_required_options(["token_endpoint"])
        response = self._transport.request(
            "GET",
            self.config.token_endpoint,
            headers={"Authorization": f"Bearer {token}", "Accept": FORM_HEADERS["Accept"]},
        )
        if response.status != 200:
            raise ProtocolError("Error verifying token", response.status)
        return True

    # Helpers

    @staticmethod
    def generate_random_string(length: int = 100) -> str:
        """Generate a cryptographically random string, e.g. for a secret."""
        return pkce.generate_random_string(length)

    def close(self) -> None:
        """Close the transport if we own it."""
        if self._owns_transport and isinstance(self._transport, HttpTransport):
            self._transport.close()

    def __enter__(self) -> "IndieAuthClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


