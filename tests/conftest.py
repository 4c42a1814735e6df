import os

# Settings are read at import time; point them at SQLite before anything imports storefront
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")
