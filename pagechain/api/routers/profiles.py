import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from pagechain.exceptions import ProfileNotFoundError, ProfileValidationError
from pagechain.services.profile_file_store import ProfileFileStore

logger = logging.getLogger(__name__)


def create_profiles_router(profile_store: ProfileFileStore):
    router = APIRouter(prefix="/profiles", tags=["Profiles"])

    @router.get("/")
    def list_profiles():
        return profile_store.list_profiles()

    @router.get("/{name}")
    def get_profile(name: str):
        try:
            profile = profile_store.load_profile(name)
        except ProfileNotFoundError:
            raise HTTPException(status_code=404, detail="profile not found")
        except ProfileValidationError as e:
            logger.warning("Invalid profile %s: %s", name, e)
            raise HTTPException(status_code=422, detail=str(e))
        return asdict(profile)

    return router
