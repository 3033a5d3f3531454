"""Populate the database with verified sample accounts and full profiles.

Usage: ``python -m scripts.seed`` (reads the same environment as the API).
Existing accounts with the sample emails are replaced.
"""

from typing import Any, Dict, List

from viziopath.core.app_factory import build_container
from viziopath.core.config import Settings
from viziopath.core.container import ApplicationContainer
from viziopath.domain.models import Role, User

SAMPLE_USERS: List[Dict[str, Any]] = [
    {
        "name": "Admin User",
        "email": "admin@viziopath.info",
        "password": "admin123",
        "role": Role.ADMIN,
    },
    {
        "name": "John Doe",
        "email": "john@example.com",
        "password": "password123",
        "role": Role.USER,
    },
    {
        "name": "Jane Smith",
        "email": "jane@example.com",
        "password": "password123",
        "role": Role.USER,
    },
    {
        "name": "Bob Johnson",
        "email": "bob@example.com",
        "password": "password123",
        "role": Role.USER,
    },
]

SAMPLE_PROFILES: List[Dict[str, Any]] = [
    {
        "bio": "Experienced software engineer with passion for web development",
        "location": "San Francisco, CA",
        "company": "Tech Corp",
        "job_title": "Senior Software Engineer",
        "skills": ["JavaScript", "Node.js", "React", "MongoDB", "AWS"],
        "education": [
            {
                "institution": "Stanford University",
                "degree": "Bachelor of Science",
                "field": "Computer Science",
                "startDate": "2015-09-01",
                "endDate": "2019-06-01",
                "description": "Focused on software engineering and web technologies",
            }
        ],
        "experience": [
            {
                "company": "Tech Corp",
                "position": "Senior Software Engineer",
                "startDate": "2019-07-01",
                "current": True,
                "description": "Leading development of scalable web applications",
            }
        ],
        "social": {
            "linkedin": "https://linkedin.com/in/johndoe",
            "github": "https://github.com/johndoe",
        },
    },
    {
        "bio": "UX/UI designer creating beautiful and functional user experiences",
        "location": "New York, NY",
        "company": "Design Studio",
        "job_title": "Lead UX Designer",
        "skills": ["UI/UX Design", "Figma", "Adobe Creative Suite", "User Research", "Prototyping"],
        "education": [
            {
                "institution": "Parsons School of Design",
                "degree": "Bachelor of Fine Arts",
                "field": "Design and Technology",
                "startDate": "2016-09-01",
                "endDate": "2020-06-01",
                "description": "Specialized in digital design and user experience",
            }
        ],
        "experience": [
            {
                "company": "Design Studio",
                "position": "Lead UX Designer",
                "startDate": "2020-07-01",
                "current": True,
                "description": "Leading design team and creating user-centered solutions",
            }
        ],
        "social": {"linkedin": "https://linkedin.com/in/janesmith"},
    },
    {
        "bio": "Data scientist passionate about machine learning and analytics",
        "location": "Seattle, WA",
        "company": "Data Analytics Inc",
        "job_title": "Senior Data Scientist",
        "skills": ["Python", "Machine Learning", "Data Analysis", "SQL", "TensorFlow"],
        "education": [
            {
                "institution": "University of Washington",
                "degree": "Master of Science",
                "field": "Data Science",
                "startDate": "2017-09-01",
                "endDate": "2019-06-01",
                "description": "Focused on machine learning algorithms and data analysis",
            }
        ],
        "experience": [
            {
                "company": "Data Analytics Inc",
                "position": "Senior Data Scientist",
                "startDate": "2019-07-01",
                "current": True,
                "description": "Developing ML models and providing data-driven insights",
            }
        ],
        "social": {
            "linkedin": "https://linkedin.com/in/bobjohnson",
            "github": "https://github.com/bobjohnson",
        },
    },
]


def seed_database(container: ApplicationContainer) -> List[User]:
    persistence = container.persistence
    credentials = container.credential_store

    users: List[User] = []
    for sample in SAMPLE_USERS:
        existing = persistence.get_user_by_email(sample["email"])
        if existing:
            persistence.delete_user(existing.id)
        user = persistence.create_user(
            name=sample["name"],
            email=sample["email"],
            password_hash=credentials.hash_password(sample["password"]),
            role=sample["role"],
            is_verified=True,
        )
        users.append(user)
        print(f"Created user: {user.name} ({user.email})")

    # The admin account is first and gets no sample profile.
    for user, profile in zip(users[1:], SAMPLE_PROFILES):
        persistence.update_profile(user.id, profile)
        print(f"Created profile for: {user.name}")

    return users


def main() -> None:
    settings = Settings()
    container = build_container(settings)
    try:
        users = seed_database(container)
    finally:
        container.persistence.close()

    print(f"Seeded {len(users)} users into {settings.database_path}")
    print("Sample login credentials:")
    for sample in SAMPLE_USERS:
        print(f"   {sample['email']} / {sample['password']}")


if __name__ == "__main__":
    main()
