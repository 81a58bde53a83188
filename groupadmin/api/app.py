"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI

from .dependencies import SETTINGS
from .errors import add_exception_handlers
from .groups import group_admin_routes
from .setup import initial_setup


async def lifespan(app: FastAPI):
    settings = SETTINGS()
    app.settings = settings

    initial_setup(settings=settings)

    yield


app = FastAPI(
    lifespan=lifespan,
    title="Group Administration API",
    summary="Administration of group membership, ownership, and automatic membership rules.",
    version=version("groupadmin"),
)

app = add_exception_handlers(app)

app.include_router(group_admin_routes, prefix="/admin/groups")
