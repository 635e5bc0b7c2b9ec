"""Print the OpenAPI schema of the FastAPI app as JSON."""

import json

from app.main import app

if __name__ == "__main__":
    print(json.dumps(app.openapi()))
