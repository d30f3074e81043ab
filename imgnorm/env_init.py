"""
Environment initialization.

Locates the project root and loads the .env file.
"""

from pathlib import Path

from dotenv import load_dotenv


def init_environment() -> Path:
    """
    Initialize the project environment.

    1. Locate the project root (parent of the imgnorm package)
    2. Load .env from the project root, falling back to the default search
    """
    package_dir = Path(__file__).parent
    project_root = package_dir.parent

    env_path = project_root / '.env'
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()

    return project_root


# Initialize on import
PROJECT_ROOT = init_environment()
