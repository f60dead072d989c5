import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings."""
    # Subgraph endpoints
    SUBGRAPH_URL: str = os.getenv("SUBGRAPH_URL", "")
    # ENS subgraph on The Graph Network; the gateway needs an API key.
    # ENS_SUBGRAPH_URL overrides the gateway URL built from the two below.
    THE_GRAPH_API_KEY: str = os.getenv("THE_GRAPH_API_KEY", "")
    ENS_SUBGRAPH_ID: str = os.getenv("ENS_SUBGRAPH_ID", "5XqPmWe6gjyrJtFn9cLy237i4cWw2j9HcUJEXsP5qGtH")
    ENS_SUBGRAPH_URL: str = os.getenv("ENS_SUBGRAPH_URL", "")

    # DAO descriptor used by the CLI
    DAO_NAME: str = os.getenv("DAO_NAME", "")
    DAO_URL: str = os.getenv("DAO_URL", "")

    # Request settings
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))  # seconds
    MAX_CONCURRENCY: int = int(os.getenv("MAX_CONCURRENCY", "5"))
    LATEST_PROPOSALS_LIMIT: int = int(os.getenv("LATEST_PROPOSALS_LIMIT", "10"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def ens_subgraph_endpoint(self) -> str:
        """ENS subgraph URL, or "" when neither a URL nor an API key is set."""
        if self.ENS_SUBGRAPH_URL:
            return self.ENS_SUBGRAPH_URL
        if self.THE_GRAPH_API_KEY:
            return (f"https://gateway.thegraph.com/api/{self.THE_GRAPH_API_KEY}"
                    f"/subgraphs/id/{self.ENS_SUBGRAPH_ID}")
        return ""

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"
    }


# Create settings instance
settings = Settings()
