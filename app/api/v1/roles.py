"""Read-only role listing."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.v1.auth import get_store, require_operation
from app.schemas.auth import CurrentUser
from app.schemas.users import RolesListResponse, to_role_response
from app.services import users as users_service
from app.services.authorization import OP_LIST_ROLES
from app.services.credential_store import CredentialStore

router = APIRouter()


@router.get("", response_model=RolesListResponse)
def list_roles(
    _caller: Annotated[CurrentUser, Depends(require_operation(OP_LIST_ROLES))],
    store: Annotated[CredentialStore, Depends(get_store)],
) -> RolesListResponse:
    """List all roles (admin or manager)."""
    return RolesListResponse(
        roles=[to_role_response(r) for r in users_service.list_roles(store)]
    )
