import logging

from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer
from jose import jwt
from jose.exceptions import JWTError
from requests import RequestException

from tutoring_scheduler.core.config import settings
from tutoring_scheduler.utils.keycloak_client import get_jwks

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_public_key(kid: str):
    """
    Return the correct JWK entry for this kid from the JWKS list.
    An unknown kid triggers one refresh in case the realm rotated its keys.
    """
    for force_refresh in (False, True):
        jwks = get_jwks(force_refresh=force_refresh)
        for key in jwks.get("keys", []):
            if key.get("kid") == kid:
                return key
    return None


def verify_token(credentials=Depends(security)):
    token = credentials.credentials

    try:
        headers = jwt.get_unverified_header(token)

        try:
            jwk = get_public_key(headers["kid"])
        except RequestException as e:
            logger.error("Keycloak JWKS unavailable: %s", e)
            raise HTTPException(status_code=503, detail="Identity provider unavailable")
        if not jwk:
            raise HTTPException(status_code=401, detail="Invalid token: unknown KID")

        payload = jwt.decode(
            token,
            jwk,
            algorithms=[jwk["alg"]],
            issuer=settings.KEYCLOAK_ISSUER,
            options={"verify_aud": False},
        )

        return payload

    except (JWTError, KeyError) as e:
        logger.warning("JWT decode error: %s", e)
        raise HTTPException(status_code=401, detail="Invalid token")
