"""
Router Dependencies
====================

Shared FastAPI dependencies for router authentication and authorization.
"""

from fastapi import Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth_middleware import CurrentUser, get_current_user
from storefront.database import get_db
from storefront.models import Shop


async def require_seller(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    Dependency that requires the caller to own a shop.

    Returns:
        CurrentUser: The authenticated seller.

    Raises:
        HTTPException(401): If JWT is invalid.
        HTTPException(403): If the user is not a seller or has no shop.
    """
    if not user.is_seller:
        raise HTTPException(status_code=403, detail="Not a seller or no shop")

    shop_id = await db.scalar(select(Shop.id).where(Shop.user_id == user.user_id))
    if shop_id is None:
        raise HTTPException(status_code=403, detail="Not a seller or no shop")

    return user
