import os
import tempfile
from uuid import uuid4

# Point the app at a throwaway database before anything imports core.config
_DB_DIR = tempfile.mkdtemp(prefix="formrules-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/formrules-test.db"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from formschema.builders import boolean, obj, string  # noqa: E402


@pytest.fixture
def login_schema():
    return obj({
        "username": string().min(3).max(20),
        "password": string().min(6),
        "rememberMe": boolean().optional(),
    })


@pytest.fixture
def signup_document():
    return {
        "schema": {
            "type": "object",
            "fields": {
                "email": {"type": "string", "constraints": [{"kind": "email"}]},
                "password": {"type": "string", "constraints": [{"kind": "min_length", "value": 8}]},
                "confirm": {"type": "string"},
                "age": {"type": "number", "optional": True, "constraints": [{"kind": "gte", "value": 13}]},
            },
            "refinements": [{"kind": "fields_match", "fields": ["password", "confirm"]}],
        },
    }


@pytest.fixture(scope="session")
def client():
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unique_name():
    return f"form-{uuid4().hex[:10]}"
