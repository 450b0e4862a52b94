"""Bearer token minter for the tenant's metrics scraper.

Issues long-lived JWTs binding an access key (``sub``) to the tenant's
current secret key, and verifies them.  The scraper presents the token to
the storage servers, which recompute the HMAC with the same secret key.

Tokens use HMAC-SHA512 via PyJWT, following the identity manager and
ticket issuer pattern: a symmetric key shared by issuer and consumer.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import jwt

from tenant_artifacts.config import DEFAULT_TOKEN_HORIZON
from tenant_artifacts.models import CredentialToken, TokenVerificationResult

logger = logging.getLogger(__name__)

_ALGORITHM = "HS512"

# Only the HMAC family is accepted on verification.  A token claiming any
# other algorithm (``none``, RS*, ES*) is rejected before the signature is
# looked at.
_ACCEPTED_ALGORITHMS = ["HS256", "HS384", "HS512"]

DEFAULT_ISSUER = "prometheus"


class CredentialMinterError(Exception):
    """Raised when the minter is misconfigured or signing fails."""


class CredentialMinter:
    """Issues and verifies scraper bearer tokens for one secret key.

    Stateless apart from its configuration; safe to share across threads.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str = DEFAULT_ISSUER,
        horizon: timedelta | None = None,
    ) -> None:
        if not secret_key:
            raise CredentialMinterError("Secret key must not be empty")
        self._secret_key = secret_key
        self._issuer = issuer
        self._horizon = horizon if horizon is not None else DEFAULT_TOKEN_HORIZON

    @property
    def issuer(self) -> str:
        return self._issuer

    def issue(self, access_key: str, now: datetime | None = None) -> CredentialToken:
        """Sign a token asserting *access_key*.

        Raises:
            CredentialMinterError: If the signing primitive fails.  This
                indicates a key-format or programming defect and must not
                be retried or ignored.
        """
        if not access_key:
            raise CredentialMinterError("Access key must not be empty")

        # JWT timestamps have one-second resolution.
        issued_at = (now or datetime.now(tz=UTC)).replace(microsecond=0)
        expires_at = issued_at + self._horizon

        payload = {
            "sub": access_key,
            "iss": self._issuer,
            "iat": issued_at,
            "exp": expires_at,
        }

        try:
            token = jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise CredentialMinterError(f"Bearer token signing failed: {e}") from e

        return CredentialToken(
            token=token,
            subject=access_key,
            issuer=self._issuer,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def verify(
        self,
        token: str,
        expected_subject: str | None = None,
    ) -> TokenVerificationResult:
        """Check that *token* was signed with the current secret key.

        Never raises for a bad token: a rotated key, a forged or truncated
        token, an unexpected algorithm and an expired token all come back
        as ``valid=False`` with a reason.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=_ACCEPTED_ALGORITHMS,
                issuer=self._issuer,
                options={"require": ["sub", "iss", "exp"]},
            )
        except jwt.InvalidAlgorithmError as e:
            return TokenVerificationResult(
                valid=False, reason=f"Unexpected signing algorithm: {e}",
            )
        except jwt.ExpiredSignatureError:
            return TokenVerificationResult(valid=False, reason="Token has expired")
        except jwt.InvalidIssuerError:
            return TokenVerificationResult(valid=False, reason="Invalid token issuer")
        except jwt.InvalidTokenError as e:
            return TokenVerificationResult(valid=False, reason=f"Invalid token: {e}")

        subject = payload["sub"]
        if expected_subject is not None and subject != expected_subject:
            return TokenVerificationResult(
                valid=False,
                reason="Token subject does not match the current access key",
                subject=subject,
            )

        return TokenVerificationResult(valid=True, reason="Token is valid", subject=subject)


def issue_bearer_token(
    access_key: str,
    secret_key: str,
    issuer: str = DEFAULT_ISSUER,
    horizon: timedelta | None = None,
) -> CredentialToken:
    """Shorthand for ``CredentialMinter(secret_key, ...).issue(access_key)``."""
    return CredentialMinter(secret_key, issuer=issuer, horizon=horizon).issue(access_key)


def verify_bearer_token(
    token: str,
    secret_key: str,
    issuer: str = DEFAULT_ISSUER,
    expected_subject: str | None = None,
) -> bool:
    """True iff *token* verifies under *secret_key*."""
    result = CredentialMinter(secret_key, issuer=issuer).verify(
        token, expected_subject=expected_subject,
    )
    if not result.valid:
        logger.debug("Bearer token rejected: %s", result.reason)
    return result.valid
