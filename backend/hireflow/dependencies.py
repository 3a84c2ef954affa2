"""
FastAPI dependencies - the composition layer that turns settings into
the oracle, the blob store and the caller's owner identity.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from .config import get_settings
from .errors import OracleError
from .services.oracle import GeminiOracle, build_oracle
from .services.storage import build_blob_store


async def get_current_owner(x_owner_id: Optional[str] = Header(default=None)) -> str:
    """Owner identity supplied by the upstream auth layer."""
    owner_id = (x_owner_id or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return owner_id


@lru_cache()
def get_optional_oracle() -> Optional[GeminiOracle]:
    """The oracle, or None when GEMINI_API_KEY is not set."""
    return build_oracle(get_settings())


def get_oracle(oracle: Optional[GeminiOracle] = Depends(get_optional_oracle)) -> GeminiOracle:
    if oracle is None:
        raise OracleError(OracleError.NOT_CONFIGURED, "GEMINI_API_KEY is not set")
    return oracle


@lru_cache()
def get_blob_store():
    return build_blob_store(get_settings())
