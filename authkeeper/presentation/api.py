from fastapi import APIRouter, Depends

from authkeeper.presentation.routers.v1.auth import router as auth_router
from authkeeper.presentation.routers.v1.users import router as users_router
from authkeeper.presentation.security import authenticate_request

# Every route below passes the request gate; public ones are allowlisted there.
api = APIRouter(dependencies=[Depends(authenticate_request)])

# Add all v1 routers here
routers = (auth_router, users_router)
for router in routers:
    api.include_router(router, prefix="/v1")
