import os

from dotenv import load_dotenv

load_dotenv()


CACHE_BACKEND = os.getenv("STATSENGINE_CACHE_BACKEND", "dogpile.cache.memory")
CACHE_EXPIRATION = int(os.getenv("STATSENGINE_CACHE_EXPIRATION", "3600"))

# joblib convention: -1 uses every core
BATCH_N_JOBS = int(os.getenv("STATSENGINE_N_JOBS", "-1"))
MAX_WORKERS = int(os.getenv("STATSENGINE_MAX_WORKERS", "4"))
