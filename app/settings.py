import os

db_url = os.environ.get("DB_URL", "sqlite://:memory:")
generate_schemas = os.environ.get("GENERATE_SCHEMAS", "true").lower() == "true"
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
SETTINGS_CACHE_TTL = int(os.environ.get("SETTINGS_CACHE_TTL", "30"))
TRANSACTION_TIMEOUT = float(os.environ.get("TRANSACTION_TIMEOUT", "5.0"))
TORTOISE_MODULES = {"models": ["app.models"]}
