from jobboard.schemas.job import (  # noqa: F401
    JobApplicationRead,
    JobCreate,
    JobFilters,
    JobRead,
    JobUpdate,
    JobWithApplicants,
)
from jobboard.schemas.pagination import Page  # noqa: F401
from jobboard.schemas.profile import ParsedResume, ProfileRead  # noqa: F401
from jobboard.schemas.user import (  # noqa: F401
    ApplicantRead,
    PasswordChange,
    Token,
    UserCreate,
    UserLogin,
    UserRead,
    UserSummary,
    UserUpdate,
)
