import uvicorn

from league.config import PORT
from league.main import app


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
