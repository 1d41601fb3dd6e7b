"""
Domain model representing a Provider (the public face of a trader).
"""
from dataclasses import asdict, dataclass, fields


# Profile attributes a trader may edit; anything omitted from an update keeps
# its stored value.
PROFILE_FIELDS = (
    "bio",
    "location",
    "website",
    "phone",
    "specialties",
    "hourly_rate",
    "availability",
    "experience_years",
    "languages",
    "certifications",
    "portfolio",
)


@dataclass
class Provider:
    id: str
    name: str
    created_at: str
    updated_at: str
    role: str = "PROVIDER"
    rating: float = 5.0
    completed_jobs: int = 0
    bio: str = ""
    location: str = ""
    website: str = ""
    phone: str = ""
    specialties: str = ""
    hourly_rate: float = 0.0
    availability: str = ""
    experience_years: int = 0
    languages: str = ""
    certifications: str = ""
    portfolio: str = ""

    @classmethod
    def from_row(cls, row) -> "Provider":
        """Build a Provider from a store record, ignoring unknown columns."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in dict(row).items() if k in known and v is not None}
        values["rating"] = float(values.get("rating", 5.0))
        values["completed_jobs"] = int(values.get("completed_jobs", 0))
        values["hourly_rate"] = float(values.get("hourly_rate", 0.0))
        values["experience_years"] = int(values.get("experience_years", 0))
        return cls(**values)

    def to_row(self) -> dict:
        return asdict(self)
