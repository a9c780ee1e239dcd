from fastapi import APIRouter, Depends, File, UploadFile

from jobboard.config import Settings
from jobboard.routers.dependencies import RequestIdentity, get_app_settings, get_services, require_applicant
from jobboard.schemas.profile import ProfileRead
from jobboard.services import ServiceRegistry


router = APIRouter()


@router.post("/upload", response_model=ProfileRead)
def upload_resume(
    resume: UploadFile = File(...),
    identity: RequestIdentity = Depends(require_applicant),
    settings: Settings = Depends(get_app_settings),
    services: ServiceRegistry = Depends(get_services),
) -> ProfileRead:
    # One byte past the limit is enough for the size check to reject the upload.
    content = resume.file.read(settings.max_resume_bytes + 1)
    return services.resumes.process_resume(identity.user_id, resume.filename or "", content)


@router.get("/me", response_model=ProfileRead)
def read_my_resume(
    identity: RequestIdentity = Depends(require_applicant),
    services: ServiceRegistry = Depends(get_services),
) -> ProfileRead:
    return services.resumes.get_resume_data(identity.user_id)
