import os

# Set up test environment variables before importing any application code;
# src.shared.config reads the environment at import time.
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("BABBLER_CORPUS_FILES", "missing_chain.txt")
