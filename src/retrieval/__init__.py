# Retrieval - Phonetic "sounds like" search
from retrieval.search_executor import SearchExecutor

__all__ = ["SearchExecutor"]
