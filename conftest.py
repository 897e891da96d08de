import os

# session_service refuses to import without a signing key
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("FIREBASE_PROJECT_ID", "demo-project")
os.environ.setdefault("CORS_ORIGINS", "*")
