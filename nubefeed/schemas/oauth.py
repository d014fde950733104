"""
OAuth and webhook schemas.
"""

from pydantic import BaseModel, ConfigDict
from typing import Optional, Union


class TokenExchangeResponse(BaseModel):
    """Body returned by Tiendanube's token endpoint."""
    model_config = ConfigDict(extra="ignore")

    access_token: str
    user_id: Union[int, str]
    token_type: Optional[str] = None
    scope: Optional[str] = None


class WebhookPayload(BaseModel):
    """Tiendanube webhook notification."""
    model_config = ConfigDict(extra="ignore")

    store_id: Optional[Union[int, str]] = None
    event: Optional[str] = None
    id: Optional[Union[int, str]] = None
