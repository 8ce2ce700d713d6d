from .gitea_client import GiteaClient
from .llm import LLMWorker

__all__ = ["GiteaClient", "LLMWorker"]
