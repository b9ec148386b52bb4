"""
Configuration loader for the listing query layer.

Loads settings from environment variables (.env file).
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Storage defaults, read once when the package is imported.

    RepositoryConfig.from_env starts from these values; environment variables
    set after import still take precedence. NO SECRETS IN CODE.
    """

    # ===== MongoDB =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    MONGO_DB_NAME: str = os.getenv("MONGO_DB_NAME", "listings")

    # Collections per listing type
    JOBS_COLLECTION: str = os.getenv("JOBS_COLLECTION", "job_posts")
    TRAINING_COLLECTION: str = os.getenv("TRAINING_COLLECTION", "training_programs")
