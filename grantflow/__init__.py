"""grantflow

An OAuth 2.0 authorization orchestrator: drives one authorization attempt
through a grant flow and returns a normalized token.
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("grantflow")
except PackageNotFoundError:
    # Source checkout without an install
    __version__ = "0.1.0"
__author__ = "grantflow"
