# __init__.py
from jobboard.models.job import Job, JobApplication
from jobboard.models.user import Profile, User, UserType

__all__ = [
	"Job",
	"JobApplication",
	"Profile",
	"User",
	"UserType",
]
