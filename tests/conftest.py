import os
import tempfile

# must run before db.py is imported anywhere
_DB_DIR = tempfile.mkdtemp(prefix="practice-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'practice.db')}"
os.environ["GOOGLE_API_KEY"] = ""

from db import Base, engine  # noqa: E402
import models  # noqa: E402,F401

Base.metadata.create_all(engine)
